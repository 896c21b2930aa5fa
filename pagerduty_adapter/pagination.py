"""
Pagination support for the PagerDuty adapter.

PagerDuty's classic pagination is offset based. The cursor handed back to the
host is the next offset encoded as a decimal string; an empty cursor means the
collection is exhausted.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class PageResponse:
    """
    Represents a single page fetched from the datasource.

    Attributes:
        status_code: HTTP status code returned by the datasource
        objects: Records of this page, each a mapping of field name to value
        next_cursor: Cursor for the next page (empty if no more pages)
        retry_after_header: Value of the Retry-After header, if any
    """

    status_code: int
    objects: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str = ""
    retry_after_header: str = ""

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return self.next_cursor != ""

    @property
    def count(self) -> int:
        return len(self.objects)


def parse_cursor(cursor: str) -> int | None:
    """
    Converts a cursor string back to an offset.

    Returns None for the empty (first page) cursor.

    Raises:
        ValueError: If the cursor is not a decimal integer
    """
    if cursor == "":
        return None
    # int() alone would also accept signs, whitespace and digit separators
    if not (cursor.isascii() and cursor.isdigit()):
        raise ValueError(f"cursor {cursor!r} is not a non-negative integer")
    return int(cursor)


def next_cursor(limit: int, offset: int, more: bool) -> str:
    """
    Computes the cursor of the following page from the values echoed by the datasource.

    The datasource may cap the page size below what was requested, so the
    echoed limit is used rather than the requested page size.
    """
    if not more:
        return ""
    return str(limit + offset)
