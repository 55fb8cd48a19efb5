"""Attach each note to the tag derived from its notebook."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from joplin_tagger.exceptions import TaggerError
from joplin_tagger.models import Note
from joplin_tagger.reconcile import FolderTagMap, TagIndex
from joplin_tagger.transport import JoplinTransport

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Per-note outcome counts of the tagging phase."""

    applied: List[str] = field(default_factory=list)
    skipped_unmapped: List[str] = field(default_factory=list)
    skipped_unresolved: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def tags_applied(self) -> int:
        return len(self.applied)

    @property
    def skipped(self) -> int:
        return len(self.skipped_unmapped) + len(self.skipped_unresolved)


class TagApplier:
    """Tags notes one at a time; a failed note never affects the others."""

    def __init__(self, transport: JoplinTransport):
        self.transport = transport

    def tag_note(self, tag_id: str, note_id: str) -> None:
        """Associate a tag with a note. Re-adding an existing link is harmless."""
        self.transport.request("POST", f"/tags/{tag_id}/notes", {"id": note_id})

    def apply(
        self, notes: Iterable[Note], folder_map: FolderTagMap, tag_index: TagIndex
    ) -> ApplyResult:
        result = ApplyResult()

        for note in notes:
            tag_name = folder_map.tag_name_for(note.parent_id)
            if tag_name is None:
                # Root note, or its notebook was not loaded
                result.skipped_unmapped.append(note.id)
                continue

            tag_id = tag_index.get(tag_name)
            if tag_id is None:
                logger.error(
                    f"Could not find tag id for normalized name: {tag_name}. Skipping note: {note.title}"
                )
                result.skipped_unresolved.append(note.id)
                continue

            logger.debug(f"Tagging note '{note.id}' with tag '{tag_id}'")
            try:
                self.tag_note(tag_id, note.id)
            except TaggerError as e:
                logger.error(f"Error tagging note '{note.title}': {e}")
                result.failures[note.id] = str(e)
                continue

            result.applied.append(note.id)

        logger.info(f"Tags applied: {result.tags_applied}")
        return result
