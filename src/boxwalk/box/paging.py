"""Lazy offset/limit enumeration of Box collections."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

# Box collection response keys
FIELD_ENTRIES = "entries"
FIELD_OFFSET = "offset"
FIELD_LIMIT = "limit"
FIELD_TOTAL_COUNT = "total_count"

logger = logging.getLogger(__name__)

T = TypeVar("T")

# fetch_page(offset, limit) -> decoded collection response
PageFetcher = Callable[[int, int], dict[str, Any]]


class PageIterator(Generic[T]):
    """Pull-based iterator over an offset-paged collection.

    Holds one page of entries at a time. The next page is requested only
    when the consumer asks for an entry past the end of the buffered page.

    The next request's offset advances by the number of entries actually
    received, so a short page neither skips nor repeats items. Enumeration
    ends once the last response satisfies ``offset + limit >= total_count``,
    using the server-reported offset and limit so a clamped limit is honored.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        wrap: Callable[[dict[str, Any]], T],
        limit: int = 100,
        offset: int = 0,
    ) -> None:
        self._fetch_page = fetch_page
        self._wrap = wrap
        self._limit = limit
        self._offset = offset
        self._buffer: list[dict[str, Any]] = []
        self._position = 0
        self._exhausted = False
        self.pages_fetched = 0

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        raw = self._buffer[self._position]
        self._position += 1
        return self._wrap(raw)

    def has_next(self) -> bool:
        """Return whether another entry is available, fetching a page if needed."""
        while self._position >= len(self._buffer):
            if self._exhausted:
                return False
            self._fetch_next_page()
        return True

    def _fetch_next_page(self) -> None:
        response = self._fetch_page(self._offset, self._limit)
        self.pages_fetched += 1
        entries: list[dict[str, Any]] = response.get(FIELD_ENTRIES, [])
        self._buffer = entries
        self._position = 0
        self._offset += len(entries)

        offset = int(response.get(FIELD_OFFSET, 0))
        limit = int(response.get(FIELD_LIMIT, 0))
        total_count = int(response.get(FIELD_TOTAL_COUNT, 0))
        logger.debug(
            "[_fetch_next_page] fetched page; offset:%d;limit:%d;total_count:%d;entries:%d",
            offset,
            limit,
            total_count,
            len(entries),
        )
        if offset + limit >= total_count:
            self._exhausted = True
        elif not entries:
            # A page with no entries can never reach total_count; stop rather than loop forever.
            logger.warning(
                "[_fetch_next_page] empty page before total_count reached; stopping;"
                " offset:%d;total_count:%d",
                offset,
                total_count,
            )
            self._exhausted = True
