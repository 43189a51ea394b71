"""
Datadog MCP — Pagination Module

One client-facing page shape for in-memory, cursor and single-page upstreams.
"""

from .adapter import (
    DEFAULT_PAGE_SIZE,
    HEURISTIC_NOTE,
    CursorPage,
    PageRequest,
    PageResult,
    from_upstream_offset,
    paginate,
    paginate_by_cursor,
    single_page_heuristic,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "HEURISTIC_NOTE",
    "CursorPage",
    "PageRequest",
    "PageResult",
    "paginate",
    "paginate_by_cursor",
    "single_page_heuristic",
    "from_upstream_offset",
]
