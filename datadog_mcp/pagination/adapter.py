"""
Datadog MCP — Pagination Adapter

Normalizes the three pagination styles found across Datadog APIs into one
PageResult shape:

- In-memory/offset: the full result set is local, a window is sliced from it
- Cursor: the upstream returns an opaque continuation token
- Single page: the upstream returns up to ``limit`` items and nothing else

Plus upstream-offset APIs (hosts, service catalog) that page server-side and
may or may not report a total.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..errors import MalformedRequestError

T = TypeVar("T")
U = TypeVar("U")

DEFAULT_PAGE_SIZE = 50

HEURISTIC_NOTE = (
    "has_next is estimated: the API reports no total, so a page that comes back "
    "exactly full is assumed to have more results"
)


@dataclass(frozen=True)
class PageRequest:
    """A requested window: 0-based page index and page size."""

    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        _validate_window(self.page_index, self.page_size)

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def is_first_page(self) -> bool:
        return self.page_index == 0


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """
    One page of results in the client-facing shape.

    Built fresh on every call and never cached; only the underlying full
    result set is.

    Attributes:
        items: Items on this page only
        page_index: Requested page index
        page_size: Requested page size
        total: Total number of items when known
        has_next: Whether another page is (believed to be) available
        next_cursor: Upstream continuation token (cursor style)
        next_offset: Offset of the next page (offset styles)
        approximate: True when has_next comes from the full-page heuristic
    """

    items: tuple[T, ...]
    page_index: int
    page_size: int
    total: int | None = None
    has_next: bool = False
    next_cursor: str | None = None
    next_offset: int | None = None
    approximate: bool = False

    def __len__(self) -> int:
        return len(self.items)

    def pagination(self) -> dict[str, Any]:
        """Pagination descriptor without the items."""
        descriptor: dict[str, Any] = {
            "page": self.page_index,
            "page_size": self.page_size,
            "has_next": self.has_next,
        }
        if self.total is not None:
            descriptor["total"] = self.total
        if self.next_cursor:
            descriptor["next_cursor"] = self.next_cursor
        if self.next_offset is not None:
            descriptor["next_offset"] = self.next_offset
        if self.approximate:
            descriptor["approximate"] = True
            descriptor["note"] = HEURISTIC_NOTE
        return descriptor

    def to_dict(self) -> dict[str, Any]:
        return {"items": list(self.items), "pagination": self.pagination()}

    def map(self, func: Callable[[T], U]) -> "PageResult[U]":
        """Same descriptor, items transformed."""
        return PageResult(
            items=tuple(func(item) for item in self.items),
            page_index=self.page_index,
            page_size=self.page_size,
            total=self.total,
            has_next=self.has_next,
            next_cursor=self.next_cursor,
            next_offset=self.next_offset,
            approximate=self.approximate,
        )


@dataclass(frozen=True)
class CursorPage(Generic[T]):
    """What an upstream cursor call returns: its items and the next token."""

    items: Sequence[T]
    next_cursor: str | None = None
    total: int | None = None
    meta: dict[str, Any] = field(default_factory=dict)


def _validate_window(page_index: int, page_size: int) -> None:
    if page_index < 0:
        raise MalformedRequestError("page must be >= 0", {"page": page_index})
    if page_size < 1:
        raise MalformedRequestError("page_size must be >= 1", {"page_size": page_size})


def paginate(full_set: Sequence[T], page_index: int, page_size: int) -> PageResult[T]:
    """
    Slice one page out of a complete, locally held result set.

    Out-of-range pages yield an empty page with ``has_next=False``.

    Args:
        full_set: The complete result set
        page_index: 0-based page index
        page_size: Items per page

    Returns:
        PageResult with an exact total
    """
    _validate_window(page_index, page_size)

    total = len(full_set)
    start = page_index * page_size
    items = tuple(full_set[start : start + page_size]) if start < total else ()
    has_next = (page_index + 1) * page_size < total

    return PageResult(
        items=items,
        page_index=page_index,
        page_size=page_size,
        total=total,
        has_next=has_next,
        next_offset=start + page_size if has_next else None,
    )


async def paginate_by_cursor(
    fetch_page: Callable[[str | None, int], Awaitable[CursorPage[T]]],
    cursor: str | None,
    page_size: int,
) -> PageResult[T]:
    """
    Fetch one page from a cursor-paginated upstream and normalize it.

    No local slicing happens: whatever the upstream returns is the page.

    Args:
        fetch_page: Upstream call taking (cursor, page_size)
        cursor: Token from the previous page, None for the first page
        page_size: Items requested per page

    Returns:
        PageResult with ``has_next`` set when the upstream returned a cursor
    """
    _validate_window(0, page_size)

    page = await fetch_page(cursor or None, page_size)
    next_cursor = page.next_cursor or None

    return PageResult(
        items=tuple(page.items),
        page_index=0,
        page_size=page_size,
        total=page.total,
        has_next=next_cursor is not None,
        next_cursor=next_cursor,
    )


def single_page_heuristic(items: Sequence[T], requested_limit: int) -> PageResult[T]:
    """
    Describe a capped, un-paginated upstream result.

    The upstream gives no total, so ``has_next`` is true exactly when the
    result filled the limit. This is an estimate: a final page that happens to
    be exactly full is reported as having more. The result is flagged
    ``approximate`` so consumers can tell.

    Args:
        items: Items returned by the upstream
        requested_limit: The limit sent upstream

    Returns:
        Approximate PageResult without a total
    """
    if requested_limit < 1:
        raise MalformedRequestError("limit must be >= 1", {"limit": requested_limit})

    return PageResult(
        items=tuple(items),
        page_index=0,
        page_size=requested_limit,
        total=None,
        has_next=len(items) == requested_limit,
        approximate=True,
    )


def from_upstream_offset(
    items: Sequence[T],
    page_index: int,
    page_size: int,
    total: int | None = None,
) -> PageResult[T]:
    """
    Describe a page the upstream already sliced server-side.

    With a total the answer is exact; without one it falls back to the
    full-page heuristic.

    Args:
        items: Items of the requested page, as returned by the upstream
        page_index: 0-based page index that was requested
        page_size: Page size that was requested
        total: Total matching items if the upstream reports it

    Returns:
        PageResult with ``next_offset`` when another page exists
    """
    _validate_window(page_index, page_size)

    offset = page_index * page_size
    if total is not None:
        has_next = offset + len(items) < total
        approximate = False
    else:
        has_next = len(items) == page_size
        approximate = True

    return PageResult(
        items=tuple(items),
        page_index=page_index,
        page_size=page_size,
        total=total,
        has_next=has_next,
        next_offset=offset + page_size if has_next else None,
        approximate=approximate,
    )
