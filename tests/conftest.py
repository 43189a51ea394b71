"""
Datadog MCP — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
Python 3.12+ with modern type hints and async patterns.
"""

import os
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from datadog_mcp.cache import TTLCache
from datadog_mcp.config import reset_config
from datadog_mcp.datadog import DatadogClient
from datadog_mcp.handlers import HandlerContext
from datadog_mcp.observability import ObservabilityAdapter, reset_observability
from datadog_mcp.orchestration import CacheOrchestrator
from datadog_mcp.resilience import RetryExecutor, RetryPolicy

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"

_CONFIG_ENV_VARS = (
    "DD_API_KEY",
    "DD_APP_KEY",
    "DD_SITE",
    "DD_TAG_FILTER",
    "DD_TIMEOUT",
    "CACHE_TTL_SECONDS",
    "CACHE_MAX_SIZE",
    "RETRY_MAX_ATTEMPTS",
    "RETRY_BASE_DELAY",
    "RETRY_BACKOFF_MULTIPLIER",
    "RETRY_MAX_DELAY",
    "RETRY_ATTEMPT_TIMEOUT",
    "ENABLE_METRICS",
    "ENABLE_TRACING",
    "LOG_FORMAT",
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def obs() -> ObservabilityAdapter:
    """Metrics-enabled adapter that tests can inspect."""
    return ObservabilityAdapter(enable_metrics=True, enable_tracing=False)


@pytest.fixture
def retry_executor(recording_sleep: RecordingSleep) -> RetryExecutor:
    """Executor with the default 3 attempts / 1s base delay and no real waiting."""
    return RetryExecutor(RetryPolicy(), sleep=recording_sleep)


@pytest.fixture
def cache(fake_clock: FakeClock) -> TTLCache[Any]:
    return TTLCache(ttl_seconds=300, max_size=100, clock=fake_clock)


@pytest.fixture
def orchestrator(
    cache: TTLCache[Any],
    retry_executor: RetryExecutor,
    obs: ObservabilityAdapter,
) -> CacheOrchestrator:
    return CacheOrchestrator(cache, retry_executor, default_tag_filter="*", observability=obs)


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], DatadogClient]:
    """Build a DatadogClient whose requests are answered by a handler function."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> DatadogClient:
        return DatadogClient(
            api_key="test-api-key",
            app_key="test-app-key",
            site="datadoghq.com",
            timeout=5.0,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def make_context(
    make_client: Callable[[Callable[[httpx.Request], httpx.Response]], DatadogClient],
    orchestrator: CacheOrchestrator,
) -> Callable[[Callable[[httpx.Request], httpx.Response]], HandlerContext]:
    """HandlerContext over a mocked Datadog API and the shared test orchestrator."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> HandlerContext:
        return HandlerContext(client=make_client(handler), orchestrator=orchestrator)

    return factory


@pytest.fixture(autouse=True)  # type: ignore[misc]
def clean_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment variables out of configuration tests."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)  # type: ignore[misc]
def reset_singletons() -> Generator[None, None, None]:
    """Reset config and observability singletons after each test to prevent state leakage."""
    yield
    reset_config()
    reset_observability()
