"""Load complete collections from paged listing endpoints."""

import logging
from typing import List, Type, TypeVar

from pydantic import ValidationError

from joplin_tagger.exceptions import ResponseParseError
from joplin_tagger.models import PageEnvelope
from joplin_tagger.transport import JoplinTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100


def page_path(endpoint: str, page: int, limit: int) -> str:
    """Append paging parameters to an endpoint that may already have a query."""
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}limit={limit}&page={page}"


def fetch_all(
    transport: JoplinTransport,
    endpoint: str,
    item_type: Type[T],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[T]:
    """Fetch every page of ``endpoint`` and return the items in server order.

    Pages are requested until the server reports ``has_more`` false. Any
    request or parse failure propagates, so a caller never sees a truncated
    collection.

    Args:
        transport: Transport used for each page request
        endpoint: Listing path, e.g. ``/folders?fields=id,title``
        item_type: Model class each item is parsed into
        page_size: Items requested per page

    Raises:
        TransportError: A page request failed
        ResponseParseError: A page or one of its items is malformed
    """
    envelope_type = PageEnvelope[item_type]
    items: List[T] = []
    page = 1

    while True:
        body = transport.request("GET", page_path(endpoint, page, page_size))
        try:
            envelope = envelope_type.model_validate_json(body)
        except ValidationError as e:
            raise ResponseParseError(
                f"Paginated response parsing error for {endpoint} (page {page}): {e}"
            ) from e

        items.extend(envelope.items)
        logger.debug(
            f"{endpoint}: page {page} gave {len(envelope.items)} items (has_more={envelope.has_more})"
        )

        if not envelope.has_more:
            break
        page += 1

    logger.info(f"{endpoint}: {len(items)} items loaded")
    return items
