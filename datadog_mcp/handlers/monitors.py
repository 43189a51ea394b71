"""
Datadog MCP — Monitors Handler

The monitors API returns every matching monitor at once, so the full list is
cached and paged locally.
"""

from typing import Any

from ..cache import make_cache_key
from .common import HandlerContext, format_detail, format_page, parse_pagination


def summarize_monitor(monitor: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": monitor.get("id"),
        "name": monitor.get("name"),
        "type": monitor.get("type"),
        "query": monitor.get("query"),
        "status": monitor.get("overall_state"),
        "tags": monitor.get("tags", []),
        "priority": monitor.get("priority"),
    }


async def list_monitors(
    ctx: HandlerContext,
    tags: str | None = None,
    monitor_tags: str | None = None,
    page: int = 0,
    page_size: int = 50,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """
    List monitors, one page at a time.

    Args:
        ctx: Handler dependencies
        tags: Scope tags filter passed upstream
        monitor_tags: Monitor tags filter passed upstream
        page: 0-based page index; page 0 is always fetched fresh
        page_size: Monitors per page
        force_refresh: Fetch fresh for pages after the first too

    Returns:
        ``{"data": [...], "pagination": {...}}``
    """
    request = parse_pagination(page, page_size)
    key = make_cache_key("monitors", {"tags": tags, "monitor_tags": monitor_tags})

    async def fetch() -> list[dict[str, Any]]:
        return await ctx.client.list_monitors(tags=tags, monitor_tags=monitor_tags)

    result = await ctx.orchestrator.fetch_page(key, fetch, request, force_refresh=force_refresh)
    return format_page(result.map(summarize_monitor))


async def get_monitor(ctx: HandlerContext, monitor_id: int) -> dict[str, Any]:
    """Fetch one monitor with its options."""
    monitor = await ctx.orchestrator.call(lambda: ctx.client.get_monitor(monitor_id), name="get_monitor")

    options = monitor.get("options")
    return format_detail(
        {
            "id": monitor.get("id"),
            "name": monitor.get("name"),
            "type": monitor.get("type"),
            "query": monitor.get("query"),
            "message": monitor.get("message"),
            "tags": monitor.get("tags", []),
            "created": monitor.get("created"),
            "modified": monitor.get("modified"),
            "overall_state": monitor.get("overall_state"),
            "priority": monitor.get("priority"),
            "options": (
                {
                    "thresholds": options.get("thresholds"),
                    "notify_no_data": options.get("notify_no_data"),
                    "notify_audit": options.get("notify_audit"),
                    "timeout_h": options.get("timeout_h"),
                    "silenced": options.get("silenced"),
                }
                if isinstance(options, dict)
                else None
            ),
        }
    )
