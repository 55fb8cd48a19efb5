"""Notebook to tag synchronization pipeline."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from joplin_tagger.applier import TagApplier
from joplin_tagger.config import TaggerConfig
from joplin_tagger.models import Note, Notebook, Tag
from joplin_tagger.pagination import fetch_all
from joplin_tagger.reconcile import FolderTagMap, TagReconciler, normalize_tag_name
from joplin_tagger.transport import JoplinTransport

logger = logging.getLogger(__name__)

FOLDERS_ENDPOINT = "/folders?fields=id,title"
TAGS_ENDPOINT = "/tags?fields=id,title"
NOTES_ENDPOINT = "/notes?fields=id,title,parent_id"


@dataclass
class SyncReport:
    """Counts reported at the end of a run."""

    notebooks_found: int = 0
    required_tags: int = 0
    existing_tags: int = 0
    tags_created: int = 0
    tag_conflicts: int = 0
    tag_failures: int = 0
    notes_loaded: int = 0
    tags_applied: int = 0
    notes_skipped: int = 0
    tag_apply_failures: int = 0

    def summary_lines(self) -> List[str]:
        return [
            f"Notebooks found: {self.notebooks_found}",
            f"Unique tags required (with prefix): {self.required_tags}",
            f"Existing tags found: {self.existing_tags}",
            f"New tags created: {self.tags_created}",
            f"Tags that already existed but could not be resolved: {self.tag_conflicts}",
            f"Tag creation failures: {self.tag_failures}",
            f"Notes processed: {self.notes_loaded}",
            f"Tags successfully applied: {self.tags_applied}",
            f"Notes skipped: {self.notes_skipped}",
            f"Tagging failures: {self.tag_apply_failures}",
        ]


class NotebookTagSync:
    """Tags every note with a tag named after its notebook.

    Phases run in order and each must finish before the next starts:
    load notebooks, load tags, create missing tags, load notes, tag notes.
    A failure while loading any collection propagates to the caller.
    """

    def __init__(
        self, config: TaggerConfig, transport: Optional[JoplinTransport] = None
    ):
        config.validate()
        self.config = config
        self.transport = transport or JoplinTransport(config)

    def _load(self, endpoint: str, item_type):
        return fetch_all(
            self.transport, endpoint, item_type, page_size=self.config.page_size
        )

    def load_notebooks(self) -> List[Notebook]:
        return self._load(FOLDERS_ENDPOINT, Notebook)

    def load_tags(self) -> List[Tag]:
        return self._load(TAGS_ENDPOINT, Tag)

    def load_notes(self) -> List[Note]:
        return self._load(NOTES_ENDPOINT, Note)

    def run(self, echo=print) -> SyncReport:
        """Run the whole pipeline and return the counts.

        Args:
            echo: Receives the human-readable progress lines
        """
        report = SyncReport()
        echo(f"The tag prefix to use: {self.config.tag_prefix}")

        echo("\n--- 1. Loading notebooks ---")
        notebooks = self.load_notebooks()
        folder_map = FolderTagMap.from_notebooks(notebooks, self.config.tag_prefix)
        report.notebooks_found = len(notebooks)
        report.required_tags = len(folder_map.required_tags)
        echo(
            f"Found {report.notebooks_found} notebooks. "
            f"{report.required_tags} unique tags are needed."
        )

        echo("\n--- 2. Loading existing tags ---")
        existing_tags = self.load_tags()
        report.existing_tags = len(existing_tags)
        echo(f"Found {report.existing_tags} existing tags.")

        echo("\n--- 3. Creating missing notebook tags ---")
        reconciler = TagReconciler(
            self.transport,
            refetch_tags=self.load_tags if self.config.resolve_conflicts else None,
        )
        reconciled = reconciler.reconcile(folder_map, existing_tags)
        report.tags_created = reconciled.tags_created
        report.tag_failures = len(reconciled.failures)
        report.tag_conflicts = len(
            [
                title
                for title in reconciled.conflicts
                if normalize_tag_name("", title) not in reconciled.tag_index
            ]
        )
        echo(f"Finished creating tags. Created: {report.tags_created}.")

        echo("\n--- 4. Loading notes ---")
        notes = self.load_notes()
        report.notes_loaded = len(notes)
        echo(f"Loaded {report.notes_loaded} notes for processing.")

        echo("\n--- 5. Applying tags to notes ---")
        applied = TagApplier(self.transport).apply(
            notes, folder_map, reconciled.tag_index
        )
        report.tags_applied = applied.tags_applied
        report.notes_skipped = applied.skipped
        report.tag_apply_failures = len(applied.failures)

        logger.info(
            f"Sync finished: tagsCreated={report.tags_created}, tagsApplied={report.tags_applied}"
        )
        return report

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
