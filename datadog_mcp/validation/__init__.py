"""
Datadog MCP - Input Validation

Pydantic schemas for tool inputs and the validate_input decorator.
"""

from .decorators import validate_input
from .tool_schemas import (
    MAX_PAGE_SIZE,
    CacheStatsInput,
    DashboardGetInput,
    DashboardsListInput,
    EventsQueryInput,
    HostsListInput,
    LogsAggregateInput,
    LogsComputeInput,
    LogsGroupByInput,
    LogsGroupBySortInput,
    LogsSearchInput,
    LogsTimeseriesInput,
    MetricsQueryInput,
    MonitorGetInput,
    MonitorsListInput,
    PaginationInput,
    RumEventsSearchInput,
    ServicesListInput,
    SpansListInput,
)

__all__ = [
    "validate_input",
    "MAX_PAGE_SIZE",
    "PaginationInput",
    "MonitorsListInput",
    "MonitorGetInput",
    "DashboardsListInput",
    "DashboardGetInput",
    "EventsQueryInput",
    "MetricsQueryInput",
    "LogsSearchInput",
    "LogsComputeInput",
    "LogsGroupBySortInput",
    "LogsGroupByInput",
    "LogsAggregateInput",
    "LogsTimeseriesInput",
    "SpansListInput",
    "RumEventsSearchInput",
    "HostsListInput",
    "ServicesListInput",
    "CacheStatsInput",
]
