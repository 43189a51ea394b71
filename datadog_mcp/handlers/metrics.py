"""
Datadog MCP — Metrics Handler

Timeseries queries are a single upstream call and are never cached. When the
caller caps the number of points, a ``.rollup()`` is appended so Datadog
aggregates server-side instead of returning every raw point.
"""

from typing import Any

from ..utils import format_timestamp
from .common import HandlerContext, format_list, parse_time_range

# Rollup intervals Datadog accepts without rounding, in seconds
ROLLUP_STEPS = (60, 300, 600, 1800, 3600, 7200, 21600, 43200)
MAX_ROLLUP = 86400

ROLLUP_AGGREGATIONS = ("avg", "max", "min", "sum")


def rollup_interval(start: int, end: int, max_points: int) -> int:
    """Smallest standard interval that keeps the range within ``max_points``."""
    interval = (end - start) // max(max_points, 1)
    for step in ROLLUP_STEPS:
        if interval < step:
            return step
    return MAX_ROLLUP


def add_rollup(query: str, interval: int) -> str:
    """Append ``.rollup(<agg>, <interval>)`` unless the query already has one."""
    if ".rollup(" in query:
        return query
    prefix = query.split(":", 1)[0].strip() if ":" in query else ""
    aggregation = prefix if prefix in ROLLUP_AGGREGATIONS else "avg"
    return f"{query}.rollup({aggregation}, {interval})"


def _format_point(point: list[Any]) -> dict[str, Any]:
    timestamp = point[0] if point else None
    value = point[1] if len(point) > 1 else None
    return {
        "timestamp": format_timestamp(int(timestamp) // 1000) if isinstance(timestamp, int | float) else "N/A",
        "value": value,
    }


def _first_unit(units: Any) -> dict[str, Any] | None:
    unit = next((u for u in units or [] if isinstance(u, dict)), None)
    if unit is None:
        return None
    summary = {"name": unit.get("name"), "family": unit.get("family")}
    if unit.get("short_name"):
        summary["short_name"] = unit["short_name"]
    return summary


def summarize_series(series: dict[str, Any]) -> dict[str, Any]:
    points = [_format_point(p) for p in series.get("pointlist") or [] if isinstance(p, list)]
    summary: dict[str, Any] = {
        "metric": series.get("metric"),
        "scope": series.get("scope"),
        "points": {"count": len(points), "data": points},
    }
    for field in ("aggr", "interval"):
        if series.get(field) is not None:
            summary[field] = series[field]
    unit = _first_unit(series.get("unit"))
    if unit:
        summary["unit"] = unit
    return summary


async def query_metrics(
    ctx: HandlerContext,
    query: str,
    time_from: str = "1 hour ago",
    time_to: str = "now",
    max_points: int | None = None,
) -> dict[str, Any]:
    """
    Query metric timeseries.

    Args:
        ctx: Handler dependencies
        query: Datadog metrics query, e.g. "avg:system.cpu.user{*}"
        time_from: Start of the range
        time_to: End of the range
        max_points: Cap on points per series; adds a rollup when set

    Returns:
        ``{"data": [series...], "meta": {"query", "status", "from", "to", ...}}``
    """
    start, end = parse_time_range(time_from, time_to)
    effective_query = query
    if max_points is not None:
        effective_query = add_rollup(query, rollup_interval(start, end, max_points))

    response = await ctx.orchestrator.call(
        lambda: ctx.client.query_metrics(effective_query, start, end),
        name="query_metrics",
    )

    series = [summarize_series(s) for s in response.get("series") or [] if isinstance(s, dict)]
    meta: dict[str, Any] = {
        "query": response.get("query", effective_query),
        "status": response.get("status"),
        "from": format_timestamp(start),
        "to": format_timestamp(end),
    }
    for field in ("error", "message", "group_by"):
        if response.get(field):
            meta[field] = response[field]
    if max_points is not None:
        meta["rollup_applied"] = True
        meta["requested_max_points"] = max_points
    return format_list(series, meta=meta)
