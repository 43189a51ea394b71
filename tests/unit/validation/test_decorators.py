"""
Tests for Validation Decorators and Tool Schemas

- Valid input handling
- Invalid input detection
- Structured error responses
- Async and sync function support
"""

import pytest
from pydantic import BaseModel, Field, ValidationError

from datadog_mcp.errors import ErrorCode
from datadog_mcp.validation import (
    DashboardGetInput,
    LogsAggregateInput,
    LogsSearchInput,
    LogsTimeseriesInput,
    MetricsQueryInput,
    MonitorsListInput,
    RumEventsSearchInput,
    SpansListInput,
    validate_input,
)
from datadog_mcp.validation.decorators import validate_input as validate_input_direct


class SampleInput(BaseModel):
    """Sample validation schema for testing."""

    name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=0, le=150)
    email: str | None = Field(default=None)


class TestValidateInputDecorator:
    """Test @validate_input decorator."""

    async def test_valid_async_input(self):
        """Test decorator with valid async input."""

        @validate_input(SampleInput)
        async def sample_func(name: str, age: int, email: str | None = None):
            return {"name": name, "age": age, "email": email}

        result = await sample_func(name="Alice", age=30, email="alice@example.com")

        assert result == {"name": "Alice", "age": 30, "email": "alice@example.com"}

    async def test_defaults_filled_in(self):
        @validate_input(SampleInput)
        async def sample_func(name: str, age: int, email: str | None = None):
            return email

        assert await sample_func(name="Alice", age=30) is None

    async def test_invalid_async_input_missing_field(self):
        """Test decorator with missing required field."""

        @validate_input(SampleInput)
        async def sample_func(name: str, age: int, email: str | None = None):
            return {"name": name, "age": age}

        result = await sample_func(name="Alice")

        assert result["success"] is False
        assert result["error_code"] == ErrorCode.INVALID_INPUT
        assert result["details"]["function"] == "sample_func"
        fields = [e["field"] for e in result["details"]["validation_errors"]]
        assert "age" in fields

    async def test_out_of_range(self):
        @validate_input(SampleInput)
        async def sample_func(name: str, age: int, email: str | None = None):
            return "called"

        result = await sample_func(name="Alice", age=-1)

        assert result["success"] is False
        assert result["details"]["validation_errors"][0]["type"] == "greater_than_equal"

    def test_sync_function(self):
        @validate_input(SampleInput)
        def sample_func(name: str, age: int, email: str | None = None):
            return name.upper()

        assert sample_func(name="bob", age=3) == "BOB"
        assert sample_func(name="", age=3)["error_code"] == ErrorCode.INVALID_INPUT

    async def test_handler_errors_propagate(self):
        """Only validation failures are converted; the wrapped function's errors are not swallowed."""

        @validate_input(SampleInput)
        async def sample_func(name: str, age: int, email: str | None = None):
            raise RuntimeError("handler bug")

        with pytest.raises(RuntimeError):
            await sample_func(name="Alice", age=30)

    def test_preserves_metadata(self):
        @validate_input_direct(SampleInput)
        async def documented(name: str, age: int, email: str | None = None):
            """Docstring kept."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring kept."


class TestToolSchemas:
    def test_page_bounds(self):
        with pytest.raises(ValidationError):
            MonitorsListInput(page=-1)
        with pytest.raises(ValidationError):
            MonitorsListInput(page_size=0)
        with pytest.raises(ValidationError):
            MonitorsListInput(page_size=1001)

        assert MonitorsListInput().page_size == 50

    def test_blank_query_rejected(self):
        with pytest.raises(ValidationError):
            LogsSearchInput(query="   ")

    def test_dashboard_id_trimmed(self):
        assert DashboardGetInput(dashboard_id=" abc-def ").dashboard_id == "abc-def"

    def test_spans_sort_values(self):
        assert SpansListInput(sort="-timestamp").sort == "-timestamp"
        with pytest.raises(ValidationError):
            SpansListInput(sort="duration")

    def test_tag_filter_empty_string_allowed(self):
        assert LogsSearchInput(query="*", tag_filter="").tag_filter == ""

    def test_metrics_query_required_and_max_points(self):
        with pytest.raises(ValidationError):
            MetricsQueryInput(query=" ")
        with pytest.raises(ValidationError):
            MetricsQueryInput(query="avg:cpu{*}", max_points=0)

        assert MetricsQueryInput(query="avg:cpu{*}").max_points is None

    def test_logs_aggregate_nested_defaults(self):
        validated = LogsAggregateInput(
            compute=[{"metric": "@duration", "aggregation": "avg"}],
            group_by=[{"facet": "service", "sort": {"order": "desc"}}],
        )

        dumped = validated.model_dump()
        assert dumped["query"] == "*"
        assert dumped["compute"][0]["type"] == "total"
        assert dumped["group_by"][0]["type"] == "facet"
        assert dumped["group_by"][0]["sort"]["type"] == "measure"

    def test_logs_group_by_rejects_unknown_sort_order(self):
        with pytest.raises(ValidationError):
            LogsTimeseriesInput(group_by=[{"facet": "service", "sort": {"order": "sideways"}}])

    def test_rum_limit_bounds(self):
        assert RumEventsSearchInput().limit == 10
        with pytest.raises(ValidationError):
            RumEventsSearchInput(limit=1001)
        with pytest.raises(ValidationError):
            RumEventsSearchInput(sort="duration")
