"""Data models for the Joplin data API objects the tagger reads."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class JoplinItem(BaseModel):
    """Common base: every item has an id and a title; other fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    title: str = ""


class Notebook(JoplinItem):
    """A notebook (a ``folder`` in the API)."""


class Tag(JoplinItem):
    """A tag as stored remotely."""


class Note(JoplinItem):
    """A note and the id of the notebook that contains it."""

    # Empty for notes at the root
    parent_id: str = ""


class PageEnvelope(BaseModel, Generic[T]):
    """One page of a listing endpoint."""

    model_config = ConfigDict(extra="ignore")

    items: List[T] = Field(default_factory=list)
    has_more: bool = False
    total_items: int = 0
