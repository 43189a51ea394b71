"""
Datadog MCP — Datadog API Client

Thin async wrapper over the Datadog REST API.

Each method performs exactly one HTTP request and maps failures onto the
DatadogMCPError hierarchy; retrying is left to RetryExecutor.
"""

import logging
from typing import Any

import httpx

from ..config import DatadogConfig
from ..errors import (
    AuthenticationError,
    MalformedRequestError,
    RateLimitedError,
    TransientNetworkError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "datadog-mcp/0.1.0"


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict) and body.get("errors"):
        return "; ".join(str(e) for e in body["errors"])
    return response.text[:500]


class DatadogClient:
    """
    Async Datadog API client.

    Args:
        api_key: Datadog API key
        app_key: Datadog application key
        site: Datadog site, e.g. "datadoghq.com" or "datadoghq.eu"
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        app_key: str,
        site: str = "datadoghq.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = f"https://api.{site}"
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "DD-API-KEY": api_key,
                "DD-APPLICATION-KEY": app_key,
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
        )

    @classmethod
    def from_config(cls, config: DatadogConfig, transport: httpx.AsyncBaseTransport | None = None) -> "DatadogClient":
        return cls(
            api_key=config.api_key,
            app_key=config.app_key,
            site=config.site,
            timeout=config.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.

        Args:
            method: HTTP method
            endpoint: Path below the API base URL
            params: Query parameters; None values are dropped
            json: JSON request body

        Returns:
            Decoded response body (None for empty responses)

        Raises:
            AuthenticationError: 401/403
            RateLimitedError: 429
            UpstreamTimeoutError: 408 or client-side timeout
            MalformedRequestError: 400/404/422
            UpstreamError: Any other non-success status
            TransientNetworkError: Connection-level failure
        """
        query = {k: v for k, v in (params or {}).items() if v is not None}

        logger.debug(f"Datadog request: {method} {endpoint}", extra={"endpoint": endpoint, "params": query})

        try:
            response = await self._client.request(method, endpoint, params=query or None, json=json)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(self.timeout, operation=f"{method} {endpoint}") from e
        except httpx.TransportError as e:
            raise TransientNetworkError(
                f"Network error calling Datadog: {e}",
                details={"endpoint": endpoint, "error_type": type(e).__name__},
            ) from e

        status = response.status_code
        if response.is_success:
            if not response.content:
                return None
            return response.json()

        message = _error_message(response)
        logger.warning(
            f"Datadog API returned {status} for {endpoint}",
            extra={"endpoint": endpoint, "status": status},
        )

        if status in (401, 403):
            raise AuthenticationError(f"Authentication failed: {message}", status_code=status)
        if status == 429:
            raise RateLimitedError(_parse_retry_after(response.headers.get("Retry-After")))
        if status == 408:
            raise UpstreamTimeoutError(self.timeout, operation=f"{method} {endpoint}")
        if status in (400, 404, 422):
            raise MalformedRequestError(
                f"Datadog rejected the request: {message}",
                details={"endpoint": endpoint, "status": status},
            )
        raise UpstreamError(
            f"Datadog API error {status}: {message}",
            upstream_status=status,
            details={"endpoint": endpoint},
        )

    # Monitors

    async def list_monitors(
        self,
        tags: str | None = None,
        monitor_tags: str | None = None,
    ) -> list[dict[str, Any]]:
        result = await self.request("GET", "/api/v1/monitor", {"tags": tags, "monitor_tags": monitor_tags})
        return result or []

    async def get_monitor(self, monitor_id: int) -> dict[str, Any]:
        return await self.request("GET", f"/api/v1/monitor/{monitor_id}")  # type: ignore[no-any-return]

    # Dashboards

    async def list_dashboards(self) -> list[dict[str, Any]]:
        result = await self.request("GET", "/api/v1/dashboard")
        return (result or {}).get("dashboards", [])  # type: ignore[no-any-return]

    async def get_dashboard(self, dashboard_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/api/v1/dashboard/{dashboard_id}")  # type: ignore[no-any-return]

    # Events

    async def query_events(
        self,
        start: int,
        end: int,
        priority: str | None = None,
        sources: str | None = None,
        tags: str | None = None,
    ) -> list[dict[str, Any]]:
        result = await self.request(
            "GET",
            "/api/v1/events",
            {"start": start, "end": end, "priority": priority, "sources": sources, "tags": tags},
        )
        return (result or {}).get("events", [])  # type: ignore[no-any-return]

    # Metrics

    async def query_metrics(self, query: str, from_ts: int, to_ts: int) -> dict[str, Any]:
        params = {"query": query, "from": from_ts, "to": to_ts}
        return (await self.request("GET", "/api/v1/query", params)) or {}

    # Logs

    async def search_logs(self, query: str, time_from: str, time_to: str, limit: int = 10) -> list[dict[str, Any]]:
        body = {
            "filter": {"query": query, "from": time_from, "to": time_to},
            "page": {"limit": limit},
            "sort": "timestamp",
        }
        result = await self.request("POST", "/api/v2/logs/events/search", json=body)
        return (result or {}).get("data", [])  # type: ignore[no-any-return]

    async def aggregate_logs(
        self,
        query: str,
        time_from: str,
        time_to: str,
        compute: list[dict[str, Any]] | None = None,
        group_by: list[dict[str, Any]] | None = None,
        timezone: str | None = None,
    ) -> dict[str, Any]:
        """Log analytics; ``time_from``/``time_to`` are millisecond timestamps as strings."""
        body: dict[str, Any] = {"filter": {"query": query, "from": time_from, "to": time_to}}
        if compute:
            body["compute"] = compute
        if group_by:
            body["group_by"] = group_by
        if timezone:
            body["options"] = {"timezone": timezone}
        return (await self.request("POST", "/api/v2/logs/analytics/aggregate", json=body)) or {}

    # APM spans

    async def list_spans(
        self,
        query: str,
        time_from: str,
        time_to: str,
        limit: int = 10,
        cursor: str | None = None,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """Raw spans response; the next cursor lives in ``meta.page.after``."""
        params = {
            "filter[query]": query,
            "filter[from]": time_from,
            "filter[to]": time_to,
            "page[limit]": limit,
            "page[cursor]": cursor,
            "sort": sort,
        }
        return (await self.request("GET", "/api/v2/spans/events", params)) or {}

    # RUM

    async def search_rum_events(
        self,
        query: str,
        time_from: str,
        time_to: str,
        limit: int = 10,
        cursor: str | None = None,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """Raw RUM search response; the next cursor lives in ``meta.page.after``."""
        page: dict[str, Any] = {"limit": limit}
        if cursor:
            page["cursor"] = cursor
        body: dict[str, Any] = {"filter": {"query": query, "from": time_from, "to": time_to}, "page": page}
        if sort:
            body["sort"] = sort
        return (await self.request("POST", "/api/v2/rum/events/search", json=body)) or {}

    # Hosts

    async def list_hosts(
        self,
        filter: str | None = None,
        from_ts: int | None = None,
        sort_field: str | None = None,
        sort_dir: str | None = None,
        start: int | None = None,
        count: int | None = None,
    ) -> dict[str, Any]:
        params = {
            "filter": filter,
            "from": from_ts,
            "sort_field": sort_field,
            "sort_dir": sort_dir,
            "start": start,
            "count": count,
        }
        return (await self.request("GET", "/api/v1/hosts", params)) or {}

    # Service catalog

    async def get_service_catalog(
        self,
        page_size: int | None = None,
        page_number: int | None = None,
        filter_env: str | None = None,
    ) -> dict[str, Any]:
        params = {"page[size]": page_size, "page[number]": page_number, "filter[env]": filter_env}
        return (await self.request("GET", "/api/v2/services/definitions", params)) or {}
