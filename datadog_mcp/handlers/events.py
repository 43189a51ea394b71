"""
Datadog MCP — Events Handler

Events for a time range are fetched in one call, cached, and paged locally.
The cache key is built from the time expressions as given, so a client
walking pages of "1 hour ago".."now" keeps reading the snapshot taken on
page 0 instead of missing because "now" moved. The resolved window is cached
with the events, so the reported from/to always matches the data.
"""

from dataclasses import dataclass
from typing import Any

from ..cache import make_cache_key
from ..pagination import paginate
from ..utils import format_timestamp
from .common import HandlerContext, format_page, parse_pagination, parse_time_range


def summarize_event(event: dict[str, Any]) -> dict[str, Any]:
    date = event.get("date_happened")
    return {
        "id": event.get("id"),
        "title": event.get("title"),
        "text": event.get("text"),
        "date": format_timestamp(date) if isinstance(date, int) else None,
        "priority": event.get("priority"),
        "host": event.get("host"),
        "source": event.get("source_type_name") or event.get("source"),
        "alert_type": event.get("alert_type"),
    }


@dataclass(frozen=True)
class EventWindow:
    """Events fetched for a resolved time range; cached as one value."""

    start: int
    end: int
    events: tuple[dict[str, Any], ...]


async def query_events(
    ctx: HandlerContext,
    time_from: str = "1 hour ago",
    time_to: str = "now",
    priority: str | None = None,
    sources: str | None = None,
    tags: str | None = None,
    page: int = 0,
    page_size: int = 50,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """
    Query events in a time range.

    Args:
        ctx: Handler dependencies
        time_from: Start of the range (any expression accepted by parse_time)
        time_to: End of the range
        priority: "normal" or "low"
        sources: Comma-separated sources
        tags: Comma-separated tags
        page: 0-based page index
        page_size: Events per page
        force_refresh: Fetch fresh for pages after the first too

    Returns:
        ``{"data": [...], "pagination": {...}, "meta": {"from", "to"}}``; on a
        cache hit ``from``/``to`` describe the window the snapshot was fetched for
    """
    request = parse_pagination(page, page_size)
    start, end = parse_time_range(time_from, time_to)
    key = make_cache_key(
        "events",
        {"from": time_from, "to": time_to, "priority": priority, "sources": sources, "tags": tags},
    )

    async def fetch() -> EventWindow:
        events = await ctx.client.query_events(start, end, priority=priority, sources=sources, tags=tags)
        return EventWindow(start=start, end=end, events=tuple(events))

    window = await ctx.orchestrator.load_snapshot(
        key,
        fetch,
        fresh=request.is_first_page or force_refresh,
    )
    result = paginate(window.events, request.page_index, request.page_size)
    meta = {"from": format_timestamp(window.start), "to": format_timestamp(window.end)}
    return format_page(result.map(summarize_event), meta)
