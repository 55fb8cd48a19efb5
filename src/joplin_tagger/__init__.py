"""
Joplin notebook tagger - mirror notebook membership as tags.

Every note in a Joplin notebook gets a tag named after that notebook
(``notebook.<title>`` by default). Runs are idempotent: tags are matched
case-insensitively and re-tagging a note is a no-op, so the tool can be
re-run safely after an interruption.

Example usage:
    >>> from joplin_tagger import NotebookTagSync, TaggerConfig
    >>> config = TaggerConfig.load()
    >>> with NotebookTagSync(config) as sync:
    ...     report = sync.run()
"""

import logging

from .applier import ApplyResult, TagApplier
from .config import ConfigError, MissingTokenError, TaggerConfig
from .exceptions import (
    HardStatusError,
    ResponseParseError,
    SoftConflictError,
    TaggerError,
    TransportError,
    TransportExhaustedError,
)
from .models import Note, Notebook, PageEnvelope, Tag
from .pagination import fetch_all
from .reconcile import (
    FolderTagMap,
    ReconcileResult,
    TagIndex,
    TagReconciler,
    normalize_tag_name,
)
from .sync import NotebookTagSync, SyncReport
from .transport import JoplinTransport, RetryPolicy, is_already_exists

__version__ = "0.1.0"
__license__ = "MIT"
__description__ = "Tag Joplin notes with the title of their notebook"

__all__ = [
    # Pipeline
    "NotebookTagSync",
    "SyncReport",
    "TaggerConfig",
    # Components
    "JoplinTransport",
    "RetryPolicy",
    "is_already_exists",
    "fetch_all",
    "FolderTagMap",
    "TagIndex",
    "TagReconciler",
    "ReconcileResult",
    "TagApplier",
    "ApplyResult",
    "normalize_tag_name",
    # Models
    "Notebook",
    "Tag",
    "Note",
    "PageEnvelope",
    # Exceptions
    "TaggerError",
    "ConfigError",
    "MissingTokenError",
    "TransportError",
    "TransportExhaustedError",
    "HardStatusError",
    "SoftConflictError",
    "ResponseParseError",
    "__version__",
]

# Package-level logging: silent unless the application configures it
logging.getLogger(__name__).addHandler(logging.NullHandler())
