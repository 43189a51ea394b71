"""
Datadog MCP — Server

FastMCP server using stdio transport (Model Context Protocol).

- Lifespan loads configuration, sets up observability and builds the single
  process-scoped cache, retry executor, orchestrator and Datadog client
- Tools validate their input, delegate to a handler, and turn handler errors
  into structured error payloads
- Graceful shutdown closes the HTTP client and releases the cache
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastmcp import FastMCP

from . import handlers
from .cache import create_cache
from .config import DatadogMCPConfig, load_config
from .datadog import DatadogClient
from .errors import DatadogMCPError, ErrorCode, make_error_response
from .handlers import HandlerContext
from .observability import get_observability, initialize_observability
from .orchestration import CacheOrchestrator
from .resilience import RetryExecutor, RetryPolicy
from .validation import validate_input
from .validation.tool_schemas import (
    CacheStatsInput,
    DashboardGetInput,
    DashboardsListInput,
    EventsQueryInput,
    HostsListInput,
    LogsAggregateInput,
    LogsSearchInput,
    LogsTimeseriesInput,
    MetricsQueryInput,
    MonitorGetInput,
    MonitorsListInput,
    RumEventsSearchInput,
    ServicesListInput,
    SpansListInput,
)

logger = logging.getLogger(__name__)

# Global state, owned by the lifespan
_context: HandlerContext | None = None


def _on_retry(attempt: int, error: BaseException) -> None:
    get_observability().increment("retry.attempts", tags={"error_type": type(error).__name__})


def build_context(config: DatadogMCPConfig, client: DatadogClient | None = None) -> HandlerContext:
    """
    Wire the data-access layer from configuration.

    Args:
        config: Loaded configuration
        client: Pre-built client (tests pass one backed by httpx.MockTransport)

    Returns:
        HandlerContext sharing one cache and one retry executor
    """
    cache = create_cache(config.cache)
    executor = RetryExecutor(RetryPolicy.from_config(config.retry), on_retry=_on_retry)
    orchestrator = CacheOrchestrator(cache, executor, default_tag_filter=config.datadog.tag_filter)
    return HandlerContext(client=client or DatadogClient.from_config(config.datadog), orchestrator=orchestrator)


async def initialize_server(context: HandlerContext | None = None) -> HandlerContext:
    """Initialize server resources on startup."""
    global _context

    if _context is not None:
        return _context

    logger.info("Initializing Datadog MCP server...")

    try:
        config = load_config()
        logger.info(f"Configuration loaded: environment={config.environment}")

        obs = initialize_observability(
            enable_metrics=config.observability.enable_metrics,
            enable_tracing=config.observability.enable_tracing,
            log_format=str(getattr(config.observability.log_format, "value", config.observability.log_format)),
            log_level=str(config.log_level),
        )

        _context = context or build_context(config)

        obs.increment("server.startup")
        obs.event(
            "server_started",
            {
                "environment": config.environment,
                "site": config.datadog.site,
                "cache_ttl_seconds": config.cache.ttl_seconds,
                "cache_max_size": config.cache.max_size,
            },
        )
        logger.info("Datadog MCP server initialized successfully")
        return _context

    except Exception as e:
        logger.error(f"Failed to initialize server: {e}", exc_info=True)
        raise


async def cleanup_server() -> None:
    """Cleanup server resources on shutdown."""
    global _context

    if _context is None:
        return

    logger.info("Cleaning up Datadog MCP server...")

    try:
        await _context.client.close()
        await _context.orchestrator.cache.close()

        obs = get_observability()
        obs.increment("server.shutdown")
        obs.event("server_stopped", {})
        logger.info("Datadog MCP server cleanup complete")
    except Exception as e:
        logger.error(f"Error during cleanup: {e}", exc_info=True)
    finally:
        _context = None


@asynccontextmanager
async def server_lifespan(server: Any) -> Any:
    """Server lifespan manager (startup/shutdown)."""
    await initialize_server()
    yield
    await cleanup_server()


mcp = FastMCP("Datadog MCP", lifespan=server_lifespan)


async def run_tool(
    tool_name: str,
    handler: Callable[..., Awaitable[dict[str, Any]]],
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Run a handler for a tool and convert failures into error payloads.

    Args:
        tool_name: Tool name used for metrics and logs
        handler: Handler coroutine function taking a HandlerContext first
        **kwargs: Validated tool arguments

    Returns:
        Handler response, or a ``make_error_response`` payload
    """
    obs = get_observability()
    obs.increment(f"tools.{tool_name}")
    obs.set_request_id(str(uuid4()))

    if _context is None:
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Server is not initialized", {"tool": tool_name})

    try:
        with obs.trace(f"tool.{tool_name}"):
            return await handler(_context, **kwargs)
    except DatadogMCPError as e:
        obs.increment("tools.errors", tags={"tool": tool_name, "error_code": e.error_code.value})
        logger.warning(
            f"{tool_name} failed: {e.message}",
            extra={"tool": tool_name, "error_code": e.error_code.value, "details": e.details},
        )
        return make_error_response(e.error_code, e.message, {**e.details, "tool": tool_name})
    except Exception as e:
        obs.increment("tools.errors", tags={"tool": tool_name, "error_code": ErrorCode.INTERNAL_ERROR.value})
        logger.error(f"{tool_name} failed unexpectedly: {e}", exc_info=True)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR,
            f"Unexpected error: {e}",
            {"tool": tool_name, "error_type": type(e).__name__},
        )


@mcp.tool()
@validate_input(MonitorsListInput)
async def datadog_monitors_list(
    tags: str | None = None,
    monitor_tags: str | None = None,
    page: int = 0,
    page_size: int = 50,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """
    List Datadog monitors with pagination.

    Page 0 is always fetched fresh; later pages are served from the snapshot
    taken on page 0.

    Args:
        tags: Comma-separated scope tags, e.g. "env:prod"
        monitor_tags: Comma-separated monitor tags
        page: 0-based page index
        page_size: Monitors per page (1-1000)
        force_refresh: Bypass the cache for any page

    Returns:
        Monitor summaries with pagination
    """
    return await run_tool(
        "datadog_monitors_list",
        handlers.list_monitors,
        tags=tags,
        monitor_tags=monitor_tags,
        page=page,
        page_size=page_size,
        force_refresh=force_refresh,
    )


@mcp.tool()
@validate_input(MonitorGetInput)
async def datadog_monitors_get(monitor_id: int) -> dict[str, Any]:
    """
    Get one Datadog monitor by ID.

    Args:
        monitor_id: Numeric monitor ID
    """
    return await run_tool("datadog_monitors_get", handlers.get_monitor, monitor_id=monitor_id)


@mcp.tool()
@validate_input(DashboardsListInput)
async def datadog_dashboards_list(page: int = 0, page_size: int = 50, force_refresh: bool = False) -> dict[str, Any]:
    """
    List Datadog dashboards with pagination.

    Args:
        page: 0-based page index
        page_size: Dashboards per page (1-1000)
        force_refresh: Bypass the cache for any page
    """
    return await run_tool(
        "datadog_dashboards_list",
        handlers.list_dashboards,
        page=page,
        page_size=page_size,
        force_refresh=force_refresh,
    )


@mcp.tool()
@validate_input(DashboardGetInput)
async def datadog_dashboards_get(dashboard_id: str) -> dict[str, Any]:
    """
    Get one Datadog dashboard with a widget summary.

    Args:
        dashboard_id: Dashboard ID, e.g. "abc-def-ghi"
    """
    return await run_tool("datadog_dashboards_get", handlers.get_dashboard, dashboard_id=dashboard_id)


@mcp.tool()
@validate_input(EventsQueryInput)
async def datadog_events_query(
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
    Query Datadog events in a time range.

    Args:
        time_from: Start of the range ("now", unix seconds, ISO-8601, "2 hours ago", "yesterday")
        time_to: End of the range
        priority: "normal" or "low"
        sources: Comma-separated event sources
        tags: Comma-separated event tags
        page: 0-based page index
        page_size: Events per page (1-1000)
        force_refresh: Bypass the cache for any page
    """
    return await run_tool(
        "datadog_events_query",
        handlers.query_events,
        time_from=time_from,
        time_to=time_to,
        priority=priority,
        sources=sources,
        tags=tags,
        page=page,
        page_size=page_size,
        force_refresh=force_refresh,
    )


@mcp.tool()
@validate_input(MetricsQueryInput)
async def datadog_metrics_query(
    query: str,
    time_from: str = "1 hour ago",
    time_to: str = "now",
    max_points: int | None = None,
) -> dict[str, Any]:
    """
    Query Datadog metric timeseries.

    Args:
        query: Metrics query, e.g. "avg:system.cpu.user{host:web-1}"
        time_from: Start of the range
        time_to: End of the range
        max_points: Cap on points per series; a rollup is added to the query when set
    """
    return await run_tool(
        "datadog_metrics_query",
        handlers.query_metrics,
        query=query,
        time_from=time_from,
        time_to=time_to,
        max_points=max_points,
    )


@mcp.tool()
@validate_input(LogsSearchInput)
async def datadog_logs_search(
    query: str,
    time_from: str = "1 hour ago",
    time_to: str = "now",
    limit: int = 10,
    tag_filter: str | None = None,
) -> dict[str, Any]:
    """
    Search Datadog logs.

    The API reports no total, so ``has_next`` is an estimate: true when the
    result filled ``limit``.

    Args:
        query: Log search query, e.g. "service:web status:error"
        time_from: Start of the range
        time_to: End of the range
        limit: Maximum number of logs (1-1000)
        tag_filter: "*" for all tags, "" for none, or comma-separated prefixes
    """
    return await run_tool(
        "datadog_logs_search",
        handlers.search_logs,
        query=query,
        time_from=time_from,
        time_to=time_to,
        limit=limit,
        tag_filter=tag_filter,
    )


@mcp.tool()
@validate_input(LogsAggregateInput)
async def datadog_logs_aggregate(
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    compute: list[dict[str, Any]] | None = None,
    group_by: list[dict[str, Any]] | None = None,
    timezone: str | None = None,
) -> dict[str, Any]:
    """
    Aggregate Datadog logs into buckets, e.g. error counts per service.

    Args:
        query: Log search query
        time_from: Start of the range
        time_to: End of the range
        compute: Aggregations, each {aggregation, type, interval?, metric?}; defaults to a count
        group_by: Facets, each {facet, limit?, type?, sort?: {order?, type?, aggregation?, metric?}}
        timezone: Timezone for bucket boundaries
    """
    return await run_tool(
        "datadog_logs_aggregate",
        handlers.aggregate_logs,
        query=query,
        time_from=time_from,
        time_to=time_to,
        compute=compute,
        group_by=group_by,
        timezone=timezone,
    )


@mcp.tool()
@validate_input(LogsTimeseriesInput)
async def datadog_logs_timeseries(
    query: str = "*",
    time_from: str = "1 hour ago",
    time_to: str = "now",
    interval: str = "1h",
    aggregation: str = "count",
    metric: str | None = None,
    group_by: list[dict[str, Any]] | None = None,
    timezone: str | None = None,
) -> dict[str, Any]:
    """
    Bucket Datadog logs over time.

    Args:
        query: Log search query
        time_from: Start of the range
        time_to: End of the range
        interval: Bucket width, e.g. "5m" or "1h"
        aggregation: Aggregation per bucket, e.g. "count" or "avg"
        metric: Measure to aggregate; required for aggregations other than count
        group_by: Facets to split the series by, each {facet, limit?, type?}
        timezone: Timezone for bucket boundaries
    """
    return await run_tool(
        "datadog_logs_timeseries",
        handlers.logs_timeseries,
        query=query,
        time_from=time_from,
        time_to=time_to,
        interval=interval,
        aggregation=aggregation,
        metric=metric,
        group_by=group_by,
        timezone=timezone,
    )


@mcp.tool()
@validate_input(SpansListInput)
async def datadog_spans_list(
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
    List APM spans. Pass ``pagination.next_cursor`` back as ``cursor`` for the next page.

    Args:
        query: Span search query
        time_from: Start of the range
        time_to: End of the range
        page_size: Spans per page (1-1000)
        cursor: Continuation token from the previous page
        sort: "timestamp" or "-timestamp"
        tag_filter: "*" for all tags, "" for none, or comma-separated prefixes
        full_stack_trace: Return error stack traces untruncated
    """
    return await run_tool(
        "datadog_spans_list",
        handlers.list_spans,
        query=query,
        time_from=time_from,
        time_to=time_to,
        page_size=page_size,
        cursor=cursor,
        sort=sort,
        tag_filter=tag_filter,
        full_stack_trace=full_stack_trace,
    )


@mcp.tool()
@validate_input(RumEventsSearchInput)
async def datadog_rum_events_search(
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
    Search RUM events. Pass ``pagination.next_cursor`` back as ``cursor`` for the next page.

    Args:
        query: RUM search query, e.g. "@type:error @application.name:shop"
        time_from: Start of the range
        time_to: End of the range
        limit: Events per page (1-1000)
        cursor: Continuation token from the previous page
        sort: "timestamp" or "-timestamp"
        tag_filter: "*" for all tags, "" for none, or comma-separated prefixes
        full_stack_trace: Return error stack traces untruncated
    """
    return await run_tool(
        "datadog_rum_events_search",
        handlers.search_rum_events,
        query=query,
        time_from=time_from,
        time_to=time_to,
        limit=limit,
        cursor=cursor,
        sort=sort,
        tag_filter=tag_filter,
        full_stack_trace=full_stack_trace,
    )


@mcp.tool()
@validate_input(HostsListInput)
async def datadog_hosts_list(
    filter: str | None = None,
    time_from: str = "1 hour ago",
    sort_field: str | None = None,
    sort_dir: str | None = None,
    tag_filter: str | None = None,
    page: int = 0,
    page_size: int = 50,
) -> dict[str, Any]:
    """
    List infrastructure hosts.

    Args:
        filter: Host name or tag filter
        time_from: Only hosts reporting since this time
        sort_field: Field to sort by, e.g. "cpu"
        sort_dir: "asc" or "desc"
        tag_filter: "*" for all tags, "" for none, or comma-separated prefixes
        page: 0-based page index
        page_size: Hosts per page (1-1000)
    """
    return await run_tool(
        "datadog_hosts_list",
        handlers.list_hosts,
        filter=filter,
        time_from=time_from,
        sort_field=sort_field,
        sort_dir=sort_dir,
        tag_filter=tag_filter,
        page=page,
        page_size=page_size,
    )


@mcp.tool()
@validate_input(ServicesListInput)
async def datadog_services_list(env: str | None = None, page: int = 0, page_size: int = 50) -> dict[str, Any]:
    """
    List service catalog definitions.

    Args:
        env: Only services defined for this environment
        page: 0-based page index
        page_size: Services per page (1-1000)
    """
    return await run_tool("datadog_services_list", handlers.list_services, env=env, page=page, page_size=page_size)


@mcp.tool()
@validate_input(CacheStatsInput)
async def datadog_cache_stats() -> dict[str, Any]:
    """
    Get cache statistics after removing expired entries.

    Returns:
        Cache size, hit rate, evictions and related counters
    """
    obs = get_observability()
    obs.increment("tools.datadog_cache_stats")

    if _context is None:
        return make_error_response(ErrorCode.INTERNAL_ERROR, "Server is not initialized", {})

    cache = _context.orchestrator.cache
    removed = await cache.cleanup_expired()
    stats = await cache.get_stats()
    obs.gauge("cache.size", stats["size"])
    return {"data": {**stats, "expired_removed_now": removed}}


def main() -> None:
    """CLI entry point for datadog-mcp command."""
    mcp.run()


if __name__ == "__main__":
    main()
