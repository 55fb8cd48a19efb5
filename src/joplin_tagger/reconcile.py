"""Work out which notebook tags are missing and create them."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from joplin_tagger.exceptions import (
    ResponseParseError,
    SoftConflictError,
    TaggerError,
)
from joplin_tagger.models import Notebook, Tag
from joplin_tagger.transport import JoplinTransport

logger = logging.getLogger(__name__)


def normalize_tag_name(prefix: str, title: str) -> str:
    """Key used for every tag comparison: the prefixed title, lowercased."""
    return (prefix + title).lower()


class FolderTagMap:
    """Which tag each notebook wants, fixed once the notebooks are loaded."""

    def __init__(
        self,
        folder_to_tag: Mapping[str, str],
        required: Mapping[str, str],
    ):
        self._folder_to_tag = MappingProxyType(dict(folder_to_tag))
        # normalized name -> prefixed title in the case first seen
        self._required = MappingProxyType(dict(required))

    @classmethod
    def from_notebooks(
        cls, notebooks: Iterable[Notebook], prefix: str
    ) -> "FolderTagMap":
        """Build the map; notebooks that normalize alike share one tag."""
        folder_to_tag: Dict[str, str] = {}
        required: Dict[str, str] = {}
        for notebook in notebooks:
            prefixed = prefix + notebook.title
            normalized = normalize_tag_name(prefix, notebook.title)
            folder_to_tag[notebook.id] = normalized
            required.setdefault(normalized, prefixed)
        return cls(folder_to_tag, required)

    def tag_name_for(self, folder_id: str) -> Optional[str]:
        """Normalized tag name for a notebook id, or None if not loaded."""
        return self._folder_to_tag.get(folder_id)

    @property
    def required_tags(self) -> Mapping[str, str]:
        """Normalized name -> title to create it with."""
        return self._required

    def __len__(self) -> int:
        return len(self._folder_to_tag)


class TagIndex:
    """Read-only mapping from normalized tag name to tag id."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_tags(cls, tags: Iterable[Tag]) -> "TagIndex":
        return cls({normalize_tag_name("", tag.title): tag.id for tag in tags})

    def get(self, normalized_name: str) -> Optional[str]:
        return self._entries.get(normalized_name)

    def with_entries(self, entries: Mapping[str, str]) -> "TagIndex":
        """Return a new index with ``entries`` added."""
        merged = dict(self._entries)
        merged.update(entries)
        return TagIndex(merged)

    def with_entry(self, normalized_name: str, tag_id: str) -> "TagIndex":
        return self.with_entries({normalized_name: tag_id})

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, normalized_name: object) -> bool:
        return normalized_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ReconcileResult:
    """Outcome of the tag creation phase."""

    tag_index: TagIndex
    created: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def tags_created(self) -> int:
        return len(self.created)

    def unresolved(self, folder_map: FolderTagMap) -> List[str]:
        """Required normalized names that still have no tag id."""
        return [
            name for name in folder_map.required_tags if name not in self.tag_index
        ]


class TagReconciler:
    """Creates the notebook tags that do not exist yet.

    Creation is strictly sequential: at most one creation call is made per
    normalized name, which keeps re-runs from producing duplicates.
    """

    def __init__(self, transport: JoplinTransport, refetch_tags=None):
        """Initialize the reconciler.

        Args:
            transport: Transport used for ``POST /tags``
            refetch_tags: Optional callable returning the current remote tags.
                When given, it is called once after soft conflicts so the ids
                of tags that already existed can be resolved.
        """
        self.transport = transport
        self.refetch_tags = refetch_tags

    def create_tag(self, title: str) -> Tag:
        """Create a tag and return it as the server stored it."""
        data = self.transport.request_json("POST", "/tags", {"title": title})
        try:
            return Tag.model_validate(data)
        except ValueError as e:
            raise ResponseParseError(f"Error parsing new tag '{title}': {e}") from e

    def reconcile(
        self, folder_map: FolderTagMap, existing_tags: Iterable[Tag]
    ) -> ReconcileResult:
        """Create every required tag missing from ``existing_tags``."""
        index: Dict[str, str] = dict(TagIndex.from_tags(existing_tags).items())
        result = ReconcileResult(tag_index=TagIndex())

        for normalized, title in folder_map.required_tags.items():
            if normalized in index:
                continue

            logger.info(f"Creating tag: {title}")
            try:
                tag = self.create_tag(title)
            except SoftConflictError as e:
                logger.warning(
                    f"Tag '{title}' already exists but was not in the loaded tag list; "
                    f"notes needing it will be skipped: {e}"
                )
                result.conflicts.append(title)
                continue
            except TaggerError as e:
                logger.error(f"Error creating tag '{title}': {e}. The tag will be skipped.")
                result.failures[title] = str(e)
                continue

            index[normalized] = tag.id
            result.created.append(title)

        if result.conflicts and self.refetch_tags is not None:
            index.update(self._resolve_conflicts(folder_map, index))

        result.tag_index = TagIndex(index)
        logger.info(f"Finished creating tags. Created: {result.tags_created}")
        return result

    def _resolve_conflicts(
        self, folder_map: FolderTagMap, index: Mapping[str, str]
    ) -> Dict[str, str]:
        """Look up ids for required tags that were reported as existing."""
        logger.info("Reloading tags to resolve tags that already existed")
        try:
            tags = self.refetch_tags()
        except TaggerError as e:
            logger.error(f"Could not reload tags: {e}")
            return {}

        found = {}
        for tag in tags:
            normalized = normalize_tag_name("", tag.title)
            if normalized in folder_map.required_tags and normalized not in index:
                found[normalized] = tag.id
        logger.info(f"Resolved {len(found)} existing tags")
        return found
