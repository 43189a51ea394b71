"""
Datadog MCP — RUM Handler

RUM event search is cursor-paginated like spans. Events are reduced to the
fields useful for triage; sub-objects with nothing left in them are dropped.
"""

from collections.abc import Iterable
from typing import Any

from ..pagination import CursorPage
from ..shaping import ResponseShaper
from ..utils import timestamp_to_iso8601
from .common import HandlerContext, format_page, parse_time_range


def _pick(source: Any, fields: Iterable[str], rename: dict[str, str] | None = None) -> dict[str, Any]:
    if not isinstance(source, dict):
        return {}
    rename = rename or {}
    return {rename.get(f, f): source[f] for f in fields if source.get(f) is not None}


def summarize_rum_event(event: dict[str, Any], shaper: ResponseShaper) -> dict[str, Any]:
    attrs = event.get("attributes") or {}
    summary: dict[str, Any] = {"id": event.get("id")}
    summary.update(_pick(event, ("type",)))
    summary.update(_pick(attrs, ("timestamp", "service")))

    application = _pick(attrs.get("application"), ("name",))
    view = _pick(attrs.get("view"), ("name", "url_path", "loading_time", "time_spent"))
    session = _pick(attrs.get("session"), ("id", "type"))
    if (attrs.get("session") or {}).get("has_replay") is True:
        session["has_replay"] = True
    action = _pick(attrs.get("action"), ("name", "type", "loading_time"))
    resource = _pick(attrs.get("resource"), ("url", "method", "status_code", "duration"))

    raw_error = attrs.get("error") or {}
    error = _pick(raw_error, ("message", "source", "type"))
    if isinstance(raw_error.get("stack"), str):
        error["stack"] = shaper.stack_trace(raw_error["stack"])
    if raw_error.get("is_crash") is True:
        error["is_crash"] = True

    for name, value in (
        ("application", application),
        ("view", view),
        ("session", session),
        ("action", action),
        ("resource", resource),
        ("error", error),
    ):
        if value:
            summary[name] = value

    tags = attrs.get("tags")
    if isinstance(tags, list):
        kept = shaper.filter_tags(tags)
        if kept:
            summary["tags"] = kept
    return summary


async def search_rum_events(
    ctx: HandlerContext,
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    limit: int = 10,
    cursor: str | None = None,
    sort: str | None = None,
    tag_filter: str | None = None,
    full_stack_trace: bool = False,
) -> dict[str, Any]:
    """
    Search Real User Monitoring events.

    Args:
        ctx: Handler dependencies
        query: RUM search query, e.g. "@type:error"
        time_from: Start of the range
        time_to: End of the range
        limit: Events per page
        cursor: ``next_cursor`` from the previous response
        sort: "timestamp" or "-timestamp"
        tag_filter: Tag filter expression; None uses the configured default
        full_stack_trace: Keep error stack traces whole

    Returns:
        ``{"data": [...], "pagination": {..., "next_cursor"?}}``
    """
    start, end = parse_time_range(time_from, time_to)
    from_iso = timestamp_to_iso8601(start)
    to_iso = timestamp_to_iso8601(end)
    shaper = ResponseShaper.for_request(
        {"full_stack_trace": full_stack_trace},
        tag_filter=ctx.orchestrator.tag_filter(tag_filter),
    )

    async def fetch_page(page_cursor: str | None, size: int) -> CursorPage[dict[str, Any]]:
        response = await ctx.client.search_rum_events(
            query, from_iso, to_iso, limit=size, cursor=page_cursor, sort=sort
        )
        after = ((response.get("meta") or {}).get("page") or {}).get("after")
        return CursorPage(items=response.get("data") or [], next_cursor=after, meta=response.get("meta") or {})

    page = await ctx.orchestrator.paginate_cursor(fetch_page, cursor, limit, name="search_rum_events")
    return format_page(page.map(lambda event: summarize_rum_event(event, shaper)))
