"""
Datadog MCP — APM Spans Handler

Spans are cursor-paginated upstream; each call returns one page and the
token for the next. Span payloads are large, so they go through the response
shaper: tag filtering, stack-trace truncation, removal of verbose HTTP
fields and of empty values.
"""

from typing import Any

from ..pagination import CursorPage
from ..shaping import ResponseShaper
from ..utils import timestamp_to_iso8601
from .common import HandlerContext, format_page, parse_time_range


def _shorten_kafka_servers(span: dict[str, Any], shaper: ResponseShaper) -> dict[str, Any]:
    node: Any = span
    for key in ("attributes", "custom", "messaging", "kafka", "bootstrap"):
        node = node.get(key) if isinstance(node, dict) else None
    if isinstance(node, dict) and isinstance(node.get("servers"), str):
        node["servers"] = shaper.long_string(node["servers"])
    return span


def shape_span(span: dict[str, Any], shaper: ResponseShaper) -> dict[str, Any]:
    # shape_record returns a fresh copy, safe to edit
    return _shorten_kafka_servers(shaper.shape_record(span), shaper)


async def list_spans(
    ctx: HandlerContext,
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    page_size: int = 10,
    cursor: str | None = None,
    sort: str | None = None,
    tag_filter: str | None = None,
    full_stack_trace: bool = False,
) -> dict[str, Any]:
    """
    List spans matching a query.

    Args:
        ctx: Handler dependencies
        query: Span search query
        time_from: Start of the range
        time_to: End of the range
        page_size: Spans per page
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
        response = await ctx.client.list_spans(query, from_iso, to_iso, limit=size, cursor=page_cursor, sort=sort)
        after = ((response.get("meta") or {}).get("page") or {}).get("after")
        return CursorPage(items=response.get("data") or [], next_cursor=after, meta=response.get("meta") or {})

    page = await ctx.orchestrator.paginate_cursor(fetch_page, cursor, page_size, name="list_spans")
    return format_page(page.map(lambda span: shape_span(span, shaper)))
