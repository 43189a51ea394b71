"""
Datadog MCP — Handler Helpers

Shared plumbing for resource handlers: the dependencies they run against,
paging and time-range parsing, and the response envelope.

Every successful tool response has the shape
``{"data": ..., "pagination": {...}?, "meta": {...}?}``; an empty result is
``{"data": []}``, never an error.
"""

from dataclasses import dataclass
from typing import Any

from ..datadog import DatadogClient
from ..orchestration import CacheOrchestrator
from ..pagination import DEFAULT_PAGE_SIZE, PageRequest, PageResult
from ..utils import parse_time

DEFAULT_TIME_FROM = "1 hour ago"
DEFAULT_TIME_TO = "now"


@dataclass(frozen=True)
class HandlerContext:
    """What a handler needs: the API client and the orchestrator."""

    client: DatadogClient
    orchestrator: CacheOrchestrator


def parse_pagination(page: int | None = None, page_size: int | None = None) -> PageRequest:
    """Build a PageRequest, defaulting to page 0 of DEFAULT_PAGE_SIZE items."""
    return PageRequest(
        page_index=0 if page is None else page,
        page_size=DEFAULT_PAGE_SIZE if page_size is None else page_size,
    )


def parse_time_range(time_from: str | None = None, time_to: str | None = None) -> tuple[int, int]:
    """Resolve a (from, to) pair of time expressions to unix seconds."""
    start = parse_time(time_from or DEFAULT_TIME_FROM)
    end = parse_time(time_to or DEFAULT_TIME_TO)
    return start, end


def format_list(
    data: Any,
    pagination: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    response: dict[str, Any] = {"data": data}
    if pagination is not None:
        response["pagination"] = pagination
    if meta is not None:
        response["meta"] = meta
    return response


def format_detail(data: Any) -> dict[str, Any]:
    return {"data": data}


def format_page(page: PageResult[Any], meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """Envelope for a PageResult."""
    return format_list(list(page.items), page.pagination(), meta)
