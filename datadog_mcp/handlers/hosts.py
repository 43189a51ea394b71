"""
Datadog MCP — Hosts Handler

The hosts API pages server-side with ``start``/``count`` and reports
``total_matching``, so pagination is exact and nothing is cached.
"""

from typing import Any

from ..pagination import from_upstream_offset
from ..shaping import TagFilterSpec, filter_tag_map
from ..utils import format_timestamp, parse_time
from .common import HandlerContext, format_page, parse_pagination


def summarize_host(host: dict[str, Any], tag_filter: TagFilterSpec) -> dict[str, Any]:
    tags_by_source = host.get("tags_by_source")
    last_reported = host.get("last_reported_time")
    return {
        "name": host.get("name"),
        "host_name": host.get("host_name"),
        "up": host.get("up"),
        "is_muted": host.get("is_muted"),
        "last_reported": format_timestamp(last_reported) if isinstance(last_reported, int) else None,
        "aws_name": host.get("aws_name"),
        "apps": host.get("apps"),
        "sources": host.get("sources"),
        "tags": filter_tag_map(tags_by_source, tag_filter) if isinstance(tags_by_source, dict) else None,
    }


async def list_hosts(
    ctx: HandlerContext,
    filter: str | None = None,
    time_from: str = "1 hour ago",
    sort_field: str | None = None,
    sort_dir: str | None = None,
    tag_filter: str | None = None,
    page: int = 0,
    page_size: int = 50,
) -> dict[str, Any]:
    request = parse_pagination(page, page_size)
    from_ts = parse_time(time_from)
    spec = ctx.orchestrator.tag_filter(tag_filter)

    response = await ctx.orchestrator.call(
        lambda: ctx.client.list_hosts(
            filter=filter,
            from_ts=from_ts,
            sort_field=sort_field,
            sort_dir=sort_dir,
            start=request.offset,
            count=request.page_size,
        ),
        name="list_hosts",
    )

    total = response.get("total_matching")
    result = from_upstream_offset(
        response.get("host_list") or [],
        request.page_index,
        request.page_size,
        total=total if isinstance(total, int) else None,
    )
    meta = {"total_matching": total, "total_returned": response.get("total_returned")}
    return format_page(result.map(lambda host: summarize_host(host, spec)), meta)
