"""
Datadog MCP — Resource Handlers

One module per Datadog resource. Handlers compose the client, the cache
orchestrator, pagination and shaping; they raise DatadogMCPError subclasses
and leave conversion to error payloads to the server.
"""

from .common import (
    HandlerContext,
    format_detail,
    format_list,
    format_page,
    parse_pagination,
    parse_time_range,
)
from .dashboards import get_dashboard, list_dashboards
from .events import query_events
from .hosts import list_hosts
from .logs import search_logs
from .logs_analytics import aggregate_logs, logs_timeseries
from .metrics import query_metrics
from .monitors import get_monitor, list_monitors
from .rum import search_rum_events
from .services import list_services
from .spans import list_spans

__all__ = [
    "HandlerContext",
    "format_detail",
    "format_list",
    "format_page",
    "parse_pagination",
    "parse_time_range",
    "list_monitors",
    "get_monitor",
    "list_dashboards",
    "get_dashboard",
    "query_events",
    "query_metrics",
    "search_logs",
    "aggregate_logs",
    "logs_timeseries",
    "list_spans",
    "search_rum_events",
    "list_hosts",
    "list_services",
]
