"""
Pagination engine for Spotify collection endpoints.

Spotify library endpoints come in two flavors:

    Offset-paginated (saved tracks/albums/shows, playlists, playlist items):
        GET ...?limit=50&offset=100
        -> {"items": [...], "next": "https://...offset=150" | null, ...}

    Cursor-paginated (followed artists):
        GET ...?type=artist&limit=50&after=<last artist id>
        -> {"artists": {"items": [...], "cursors": {"after": "..." | null}, ...}}

CollectionPage hides the difference behind one value. drain_offset() and
drain_cursor() turn a page-fetch callable into the complete, ordered list
of raw items. Nothing is written anywhere until a drain returns, so an
exception from any page fetch discards the items gathered so far.

Usage:
    from spot_exporter.spotify.pagination import drain_offset, drain_cursor

    albums = drain_offset(client.saved_albums)
    artists = drain_cursor(client.followed_artists)
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from spot_exporter.core.logger import get_logger

logger = get_logger(__name__)


# Spotify's documented maximum for library endpoints
DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class CollectionPage:
    """
    One page of a paginated collection.

    Attributes:
        items: Raw item dicts, in API order.
        has_next: True if another page exists.
        next_cursor: Opaque 'after' cursor for cursor-paginated endpoints.
                     Always None for offset-paginated endpoints.
    """
    items: list[dict[str, Any]] = field(default_factory=list)
    has_next: bool = False
    next_cursor: str | None = None

    @classmethod
    def from_offset_response(cls, response: dict[str, Any] | None) -> "CollectionPage":
        """
        Build a page from an offset-paginated Spotify paging object.

        A page has a successor when the response carries a non-null 'next' URL.
        """
        if not response:
            return cls()
        return cls(
            items=list(response.get("items") or []),
            has_next=response.get("next") is not None,
        )

    @classmethod
    def from_cursor_response(
        cls,
        response: dict[str, Any] | None,
        key: str = "artists"
    ) -> "CollectionPage":
        """
        Build a page from a cursor-paginated Spotify response.

        Args:
            response: Raw response. The paging object is nested under `key`
                      for the followed-artists endpoint; a bare paging
                      object is accepted too.
            key: Name of the wrapping field.

        The iteration continues while cursors.after is present.
        """
        if not response:
            return cls()
        paging = response.get(key, response)
        cursor = (paging.get("cursors") or {}).get("after")
        return cls(
            items=list(paging.get("items") or []),
            has_next=cursor is not None,
            next_cursor=cursor,
        )


def drain_offset(
    fetch_page: Callable[..., CollectionPage],
    page_size: int = DEFAULT_PAGE_SIZE
) -> list[dict[str, Any]]:
    """
    Fetch every page of an offset-paginated endpoint.

    Args:
        fetch_page: Callable accepting the keyword arguments limit and
                    offset and returning a page. Arguments are always
                    passed by name, so parameter order does not matter.
        page_size: Items requested per page.

    Returns:
        All items, concatenated in page order.

    Behavior:
        The offset advances by page_size after every request, whatever
        the size of the page actually returned. Iteration stops at the
        first page with has_next False, even if earlier pages were empty.

    Raises:
        Whatever fetch_page raises (typically SpotifyError); items already
        accumulated are dropped with the stack frame.
    """
    items: list[dict[str, Any]] = []
    offset = 0

    while True:
        page = fetch_page(limit=page_size, offset=offset)
        items.extend(page.items)
        logger.debug(f"Fetched {len(page.items)} items at offset {offset}")

        if not page.has_next:
            break
        offset += page_size

    return items


def drain_cursor(
    fetch_page: Callable[..., CollectionPage],
    page_size: int = DEFAULT_PAGE_SIZE
) -> list[dict[str, Any]]:
    """
    Fetch every page of a cursor-paginated endpoint.

    Args:
        fetch_page: Callable accepting the keyword arguments limit and
                    after and returning a page. The first call receives
                    after=None.
        page_size: Items requested per page.

    Returns:
        All items, concatenated in page order.

    Behavior:
        Each response's next_cursor is passed to the following request.
        Iteration stops when the cursor is null or absent.
    """
    items: list[dict[str, Any]] = []
    after: str | None = None

    while True:
        page = fetch_page(limit=page_size, after=after)
        items.extend(page.items)
        logger.debug(f"Fetched {len(page.items)} items after cursor {after!r}")

        after = page.next_cursor
        if after is None:
            break

    return items
