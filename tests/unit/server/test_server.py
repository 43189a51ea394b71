"""
Datadog MCP — Server Wiring Tests

Tools themselves are thin wrappers; these tests cover the pieces they rely on:
context construction, startup/shutdown and error conversion in run_tool.
"""

from collections.abc import Generator
from typing import Any

import httpx
import pytest

from datadog_mcp import server
from datadog_mcp.cache import TTLCache
from datadog_mcp.config import load_config
from datadog_mcp.errors import (
    AuthenticationError,
    ErrorCode,
    MalformedRequestError,
    RateLimitedError,
    RetryExhaustedError,
)
from datadog_mcp.handlers import HandlerContext
from datadog_mcp.observability import get_observability


@pytest.fixture(autouse=True)
def no_server_context(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setattr(server, "_context", None)
    yield


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=[])


class TestBuildContext:
    def test_shares_one_cache(self, make_client) -> None:
        config = load_config(reload=True)
        context = server.build_context(config, client=make_client(_ok))

        cache = context.orchestrator.cache
        assert isinstance(cache, TTLCache)
        assert cache.ttl_seconds == config.cache.ttl_seconds
        assert cache.max_size == config.cache.max_size
        assert context.orchestrator.retry.policy.max_attempts == config.retry.max_attempts


class TestLifecycle:
    async def test_initialize_and_cleanup(self, make_context) -> None:
        context = make_context(_ok)

        returned = await server.initialize_server(context)

        assert returned is context
        assert server._context is context
        assert await server.initialize_server() is context

        await server.cleanup_server()

        assert server._context is None

    async def test_cleanup_without_context(self) -> None:
        await server.cleanup_server()

        assert server._context is None


class TestRunTool:
    async def test_not_initialized(self) -> None:
        async def handler(ctx: HandlerContext) -> dict[str, Any]:
            raise AssertionError("handler must not run")

        result = await server.run_tool("datadog_monitors_list", handler)

        assert result["success"] is False
        assert result["error_code"] == ErrorCode.INTERNAL_ERROR.value

    async def test_success_passes_kwargs(self, make_context, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(server, "_context", make_context(_ok))

        async def handler(ctx: HandlerContext, monitor_id: int) -> dict[str, Any]:
            return {"data": {"id": monitor_id}}

        result = await server.run_tool("datadog_monitors_get", handler, monitor_id=7)

        assert result == {"data": {"id": 7}}
        counters = get_observability().get_metrics()["counters"]
        assert counters.get("tools.datadog_monitors_get") == 1

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (AuthenticationError(), ErrorCode.AUTHENTICATION_FAILED),
            (MalformedRequestError("bad query"), ErrorCode.INVALID_INPUT),
            (RetryExhaustedError(RateLimitedError(retry_after=2), attempts=3), ErrorCode.RATE_LIMITED),
            (RetryExhaustedError(TimeoutError("slow"), attempts=3), ErrorCode.RETRIES_EXHAUSTED),
        ],
    )
    async def test_known_errors_become_payloads(
        self, make_context, monkeypatch: pytest.MonkeyPatch, error: Exception, code: ErrorCode
    ) -> None:
        monkeypatch.setattr(server, "_context", make_context(_ok))

        async def handler(ctx: HandlerContext) -> dict[str, Any]:
            raise error

        result = await server.run_tool("datadog_logs_search", handler)

        assert result["success"] is False
        assert result["error_code"] == code.value
        assert result["details"]["tool"] == "datadog_logs_search"

    async def test_unexpected_error(self, make_context, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(server, "_context", make_context(_ok))

        async def handler(ctx: HandlerContext) -> dict[str, Any]:
            raise KeyError("boom")

        result = await server.run_tool("datadog_spans_list", handler)

        assert result["error_code"] == ErrorCode.INTERNAL_ERROR.value
        assert result["details"]["error_type"] == "KeyError"


def test_server_name() -> None:
    assert server.mcp.name == "Datadog MCP"
