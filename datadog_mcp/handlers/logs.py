"""
Datadog MCP — Logs Handler

Log search returns at most ``limit`` entries and no total, so the page is
described with the full-page heuristic and never cached.
"""

from typing import Any

from ..pagination import single_page_heuristic
from ..shaping import TagFilterSpec, filter_tags
from ..utils import timestamp_to_iso8601
from .common import HandlerContext, format_page, parse_time_range


def summarize_log(log: dict[str, Any], tag_filter: TagFilterSpec) -> dict[str, Any]:
    attrs = log.get("attributes") or {}
    tags = attrs.get("tags")
    return {
        "id": log.get("id"),
        "timestamp": attrs.get("timestamp"),
        "message": attrs.get("message"),
        "host": attrs.get("host"),
        "service": attrs.get("service"),
        "tags": filter_tags(tags, tag_filter) if isinstance(tags, list) else None,
        "status": attrs.get("status"),
    }


async def search_logs(
    ctx: HandlerContext,
    query: str,
    time_from: str = "1 hour ago",
    time_to: str = "now",
    limit: int = 10,
    tag_filter: str | None = None,
) -> dict[str, Any]:
    """
    Search logs.

    Args:
        ctx: Handler dependencies
        query: Datadog log query
        time_from: Start of the range
        time_to: End of the range
        limit: Maximum entries requested upstream
        tag_filter: Tag filter expression; None uses the configured default

    Returns:
        ``{"data": [...], "pagination": {..., "approximate": true}, "meta": {...}}``
    """
    start, end = parse_time_range(time_from, time_to)
    from_iso = timestamp_to_iso8601(start)
    to_iso = timestamp_to_iso8601(end)
    spec = ctx.orchestrator.tag_filter(tag_filter)

    logs = await ctx.orchestrator.call(
        lambda: ctx.client.search_logs(query, from_iso, to_iso, limit=limit),
        name="search_logs",
    )

    page = single_page_heuristic(logs, limit).map(lambda log: summarize_log(log, spec))
    meta = {"query": query, "from": from_iso, "to": to_iso, "total": len(page)}
    return format_page(page, meta)
