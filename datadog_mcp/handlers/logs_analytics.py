"""
Datadog MCP — Logs Analytics Handler

Aggregations and timeseries over logs share one upstream endpoint. Both are
single calls that return computed buckets, so nothing is cached or paged.
Times are sent as unix milliseconds, the form the analytics API expects.
"""

from typing import Any

from .common import HandlerContext, format_list, parse_time_range

DEFAULT_COMPUTE = {"aggregation": "count", "type": "total"}


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def compute_body(compute: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Upstream ``compute`` list; a count of all matching logs when none is given."""
    if not compute:
        return [dict(DEFAULT_COMPUTE)]
    return [
        _drop_none(
            {
                "aggregation": item.get("aggregation") or "count",
                "type": item.get("type") or "total",
                "interval": item.get("interval"),
                "metric": item.get("metric"),
            }
        )
        for item in compute
    ]


def group_by_body(group_by: list[dict[str, Any]] | None, with_sort: bool = True) -> list[dict[str, Any]] | None:
    if not group_by:
        return None
    body = []
    for item in group_by:
        sort = item.get("sort") if with_sort else None
        body.append(
            _drop_none(
                {
                    "facet": item.get("facet") or "status",
                    "limit": item.get("limit"),
                    "type": item.get("type") or "facet",
                    "sort": _drop_none(
                        {
                            "order": sort.get("order"),
                            "type": sort.get("type") or "measure",
                            "aggregation": sort.get("aggregation"),
                            "metric": sort.get("metric"),
                        }
                    )
                    if sort
                    else None,
                }
            )
        )
    return body


def _time_range_ms(time_from: str, time_to: str) -> tuple[str, str]:
    start, end = parse_time_range(time_from, time_to)
    return str(start * 1000), str(end * 1000)


def _buckets_count(data: Any) -> int:
    buckets = data.get("buckets") if isinstance(data, dict) else None
    return len(buckets) if isinstance(buckets, list) else 0


async def aggregate_logs(
    ctx: HandlerContext,
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    compute: list[dict[str, Any]] | None = None,
    group_by: list[dict[str, Any]] | None = None,
    timezone: str | None = None,
) -> dict[str, Any]:
    """
    Aggregate logs into buckets.

    Args:
        ctx: Handler dependencies
        query: Log search query
        time_from: Start of the range
        time_to: End of the range
        compute: Aggregations, e.g. ``[{"aggregation": "avg", "metric": "@duration"}]``
        group_by: Facets to group by, each with optional ``limit`` and ``sort``
        timezone: Timezone used for bucket boundaries

    Returns:
        ``{"data": {"buckets": [...]}, "meta": {"query", "from", "to", "buckets_count", "timezone"}}``
    """
    from_ms, to_ms = _time_range_ms(time_from, time_to)

    response = await ctx.orchestrator.call(
        lambda: ctx.client.aggregate_logs(
            query,
            from_ms,
            to_ms,
            compute=compute_body(compute),
            group_by=group_by_body(group_by),
            timezone=timezone,
        ),
        name="aggregate_logs",
    )

    data = response.get("data")
    meta = {
        "query": query,
        "from": from_ms,
        "to": to_ms,
        "buckets_count": _buckets_count(data),
        "timezone": timezone,
    }
    return format_list(data, meta=meta)


async def logs_timeseries(
    ctx: HandlerContext,
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    interval: str = "1h",
    aggregation: str = "count",
    metric: str | None = None,
    group_by: list[dict[str, Any]] | None = None,
    timezone: str | None = None,
) -> dict[str, Any]:
    """Bucket logs over time with one aggregation; ``group_by`` sorting is ignored."""
    from_ms, to_ms = _time_range_ms(time_from, time_to)
    compute = [
        _drop_none({"aggregation": aggregation, "type": "timeseries", "interval": interval, "metric": metric})
    ]

    response = await ctx.orchestrator.call(
        lambda: ctx.client.aggregate_logs(
            query,
            from_ms,
            to_ms,
            compute=compute,
            group_by=group_by_body(group_by, with_sort=False),
            timezone=timezone,
        ),
        name="logs_timeseries",
    )

    data = response.get("data")
    meta = {
        "query": query,
        "from": from_ms,
        "to": to_ms,
        "interval": interval,
        "aggregation": aggregation,
        "metric": metric,
        "buckets_count": _buckets_count(data),
        "timezone": timezone,
    }
    return format_list(data, meta=meta)
