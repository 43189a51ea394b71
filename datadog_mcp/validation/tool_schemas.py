"""
Datadog MCP - Tool Input Validation Schemas

Pydantic models for validating all MCP tool inputs.

- Paging windows: page >= 0, 1 <= page_size <= 1000
- Required identifiers and queries must not be blank
- Time expressions are passed through as strings and parsed by the handlers
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

MAX_PAGE_SIZE = 1000


def _not_blank(value: str, field_name: str) -> str:
    if not value.strip():
        raise ValueError(f"{field_name} cannot be empty or only whitespace")
    return value


class PaginationInput(BaseModel):
    """Page window shared by list tools."""

    page: int = Field(default=0, ge=0, description="0-based page index")
    page_size: int = Field(
        default=50,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Items per page (1-{MAX_PAGE_SIZE})",
    )


class MonitorsListInput(PaginationInput):
    """Input validation for datadog_monitors_list tool."""

    tags: str | None = Field(default=None, description="Comma-separated scope tags, e.g. 'env:prod'")
    monitor_tags: str | None = Field(default=None, description="Comma-separated monitor tags")
    force_refresh: bool = Field(default=False, description="Bypass the cache for any page")


class MonitorGetInput(BaseModel):
    """Input validation for datadog_monitors_get tool."""

    monitor_id: int = Field(..., gt=0, description="Numeric monitor ID")


class DashboardsListInput(PaginationInput):
    """Input validation for datadog_dashboards_list tool."""

    force_refresh: bool = Field(default=False, description="Bypass the cache for any page")


class DashboardGetInput(BaseModel):
    """Input validation for datadog_dashboards_get tool."""

    dashboard_id: str = Field(..., min_length=1, max_length=100, description="Dashboard ID, e.g. 'abc-def-ghi'")

    @field_validator("dashboard_id")
    @classmethod
    def validate_dashboard_id(cls, v: str) -> str:
        return _not_blank(v, "dashboard_id").strip()


class EventsQueryInput(PaginationInput):
    """Input validation for datadog_events_query tool."""

    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    priority: Literal["normal", "low"] | None = Field(default=None, description="Event priority")
    sources: str | None = Field(default=None, description="Comma-separated event sources")
    tags: str | None = Field(default=None, description="Comma-separated event tags")
    force_refresh: bool = Field(default=False, description="Bypass the cache for any page")


class MetricsQueryInput(BaseModel):
    """Input validation for datadog_metrics_query tool."""

    query: str = Field(..., min_length=1, max_length=10_000, description="Metrics query, e.g. 'avg:system.cpu.user{*}'")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    max_points: int | None = Field(default=None, ge=1, description="Cap on points per series; adds a rollup")

    @field_validator("query")
    @classmethod
    def validate_query_not_empty(cls, v: str) -> str:
        return _not_blank(v, "query")


class LogsSearchInput(BaseModel):
    """Input validation for datadog_logs_search tool."""

    query: str = Field(..., min_length=1, max_length=10_000, description="Datadog log search query")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    limit: int = Field(default=10, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of logs")
    tag_filter: str | None = Field(
        default=None,
        description="'*' for all tags, '' for none, or comma-separated prefixes",
    )

    @field_validator("query")
    @classmethod
    def validate_query_not_empty(cls, v: str) -> str:
        return _not_blank(v, "query")


class LogsComputeInput(BaseModel):
    """One aggregation in a logs analytics request."""

    aggregation: str = Field(default="count", description="count, cardinality, avg, sum, min, max, pc90, ...")
    type: Literal["total", "timeseries"] = Field(default="total", description="Single value or one per interval")
    interval: str | None = Field(default=None, description="Bucket width for timeseries, e.g. '5m'")
    metric: str | None = Field(default=None, description="Measure to aggregate, e.g. '@duration'")


class LogsGroupBySortInput(BaseModel):
    """Ordering of the groups returned for one facet."""

    order: Literal["asc", "desc"] | None = Field(default=None, description="Sort direction")
    type: Literal["alphabetical", "measure"] = Field(default="measure", description="Sort by name or by value")
    aggregation: str | None = Field(default=None, description="Aggregation to sort by")
    metric: str | None = Field(default=None, description="Measure to sort by")


class LogsGroupByInput(BaseModel):
    """One facet to group logs by."""

    facet: str = Field(default="status", min_length=1, description="Facet name, e.g. 'service' or '@http.status_code'")
    limit: int | None = Field(default=None, ge=1, description="Maximum number of groups")
    type: Literal["facet", "histogram"] = Field(default="facet", description="Group type")
    sort: LogsGroupBySortInput | None = Field(default=None, description="Group ordering")


class LogsAggregateInput(BaseModel):
    """Input validation for datadog_logs_aggregate tool."""

    query: str = Field(default="*", max_length=10_000, description="Datadog log search query")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    compute: list[LogsComputeInput] | None = Field(default=None, description="Aggregations; defaults to a count")
    group_by: list[LogsGroupByInput] | None = Field(default=None, description="Facets to group by")
    timezone: str | None = Field(default=None, description="Timezone for bucket boundaries, e.g. 'UTC'")


class LogsTimeseriesInput(BaseModel):
    """Input validation for datadog_logs_timeseries tool."""

    query: str = Field(default="*", max_length=10_000, description="Datadog log search query")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    interval: str = Field(default="1h", min_length=1, description="Bucket width, e.g. '5m' or '1h'")
    aggregation: str = Field(default="count", min_length=1, description="Aggregation applied per bucket")
    metric: str | None = Field(default=None, description="Measure to aggregate, e.g. '@duration'")
    group_by: list[LogsGroupByInput] | None = Field(default=None, description="Facets to split the series by")
    timezone: str | None = Field(default=None, description="Timezone for bucket boundaries, e.g. 'UTC'")


class SpansListInput(BaseModel):
    """Input validation for datadog_spans_list tool."""

    query: str = Field(default="*", description="Span search query")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    page_size: int = Field(default=10, ge=1, le=MAX_PAGE_SIZE, description="Spans per page")
    cursor: str | None = Field(default=None, description="next_cursor from the previous page")
    sort: Literal["timestamp", "-timestamp"] | None = Field(default=None, description="Sort order")
    tag_filter: str | None = Field(
        default=None,
        description="'*' for all tags, '' for none, or comma-separated prefixes",
    )
    full_stack_trace: bool = Field(default=False, description="Return error stack traces untruncated")


class RumEventsSearchInput(BaseModel):
    """Input validation for datadog_rum_events_search tool."""

    query: str = Field(default="*", max_length=10_000, description="RUM search query, e.g. '@type:error'")
    time_from: str = Field(default="1 hour ago", description="Start of the time range")
    time_to: str = Field(default="now", description="End of the time range")
    limit: int = Field(default=10, ge=1, le=MAX_PAGE_SIZE, description="Events per page")
    cursor: str | None = Field(default=None, description="next_cursor from the previous page")
    sort: Literal["timestamp", "-timestamp"] | None = Field(default=None, description="Sort order")
    tag_filter: str | None = Field(
        default=None,
        description="'*' for all tags, '' for none, or comma-separated prefixes",
    )
    full_stack_trace: bool = Field(default=False, description="Return error stack traces untruncated")


class HostsListInput(PaginationInput):
    """Input validation for datadog_hosts_list tool."""

    filter: str | None = Field(default=None, description="Host name or tag filter")
    time_from: str = Field(default="1 hour ago", description="Only hosts reporting since this time")
    sort_field: str | None = Field(default=None, description="Field to sort by, e.g. 'cpu'")
    sort_dir: Literal["asc", "desc"] | None = Field(default=None, description="Sort direction")
    tag_filter: str | None = Field(
        default=None,
        description="'*' for all tags, '' for none, or comma-separated prefixes",
    )


class ServicesListInput(PaginationInput):
    """Input validation for datadog_services_list tool."""

    env: str | None = Field(default=None, description="Only services defined for this environment")


class CacheStatsInput(BaseModel):
    """Input validation for datadog_cache_stats tool (no parameters)."""

    pass
