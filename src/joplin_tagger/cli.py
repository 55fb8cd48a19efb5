"""Command line entry point for the Joplin notebook tagger."""

import argparse
import logging
import sys
from typing import List, Optional

from joplin_tagger.config import ConfigError, MissingTokenError, TaggerConfig
from joplin_tagger.exceptions import TaggerError
from joplin_tagger.sync import NotebookTagSync

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tag every Joplin note with a tag named after its notebook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The API token is read from JOPLIN_TOKEN (or the config file).

Examples:
  joplin-notebook-tagger                          # Tag notes with 'notebook.<title>'
  joplin-notebook-tagger --prefix nb/             # Use a different tag prefix
  joplin-notebook-tagger --config tagger.yaml     # Load settings from a file
        """,
    )

    parser.add_argument(
        "--config", "-c", type=str, help="Configuration file path (.json, .yaml, .yml)"
    )
    parser.add_argument(
        "--prefix", type=str, default=None, help="Tag prefix (default: notebook.)"
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Joplin data API URL (default: http://localhost:41184)",
    )
    parser.add_argument(
        "--resolve-conflicts",
        action="store_true",
        default=None,
        help="Reload tags after 'already exists' errors to find their ids",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run a tagging pass and return the process exit code."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = TaggerConfig.load(
            args.config,
            tag_prefix=args.prefix,
            base_url=args.base_url,
            resolve_conflicts=args.resolve_conflicts,
        )
        config.validate()
    except MissingTokenError as e:
        print(f"ERROR: {e}. Set the JOPLIN_TOKEN environment variable.", file=sys.stderr)
        return EXIT_CONFIG
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    print("=== START: Tagging Joplin notes by notebook ===")
    try:
        with NotebookTagSync(config) as sync:
            report = sync.run()
    except TaggerError as e:
        logger.error(f"Critical error, aborting: {e}")
        return EXIT_FAILED

    print("\n=== COMPLETED ===")
    for line in report.summary_lines():
        print(line)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
