"""
Datadog MCP — Resource Handler Tests

Handlers run against a mocked Datadog API (httpx.MockTransport) and the
shared test orchestrator.
"""

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from datadog_mcp import utils
from datadog_mcp.errors import MalformedRequestError
from datadog_mcp.handlers import (
    aggregate_logs,
    format_list,
    get_dashboard,
    get_monitor,
    list_dashboards,
    list_hosts,
    list_monitors,
    list_services,
    list_spans,
    logs_timeseries,
    parse_pagination,
    query_events,
    query_metrics,
    search_logs,
    search_rum_events,
)
from datadog_mcp.handlers import common as handlers_common
from datadog_mcp.handlers.metrics import add_rollup, rollup_interval
from datadog_mcp.pagination import DEFAULT_PAGE_SIZE


class Router:
    """Minimal path -> JSON responder that counts calls per path."""

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.calls: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] = self.calls.get(path, 0) + 1
        self.requests.append(request)
        if path not in self.routes:
            return httpx.Response(404, json={"errors": [f"no route for {path}"]})
        body = self.routes[path]
        return httpx.Response(200, json=body(request) if callable(body) else body)


MONITORS = [
    {
        "id": i,
        "name": f"monitor-{i}",
        "type": "metric alert",
        "query": "avg:cpu{*} > 90",
        "overall_state": "OK",
        "tags": ["env:prod"],
        "priority": None,
    }
    for i in range(5)
]


class TestCommon:
    def test_parse_pagination_defaults(self) -> None:
        request = parse_pagination()

        assert request.page_index == 0
        assert request.page_size == DEFAULT_PAGE_SIZE

    def test_format_list(self) -> None:
        assert format_list([]) == {"data": []}
        assert format_list([1], meta={"q": "x"}) == {"data": [1], "meta": {"q": "x"}}


class TestMonitorsHandler:
    async def test_list_pages_from_snapshot(self, make_context) -> None:
        router = Router({"/api/v1/monitor": MONITORS})
        ctx = make_context(router)

        first = await list_monitors(ctx, page=0, page_size=2)
        second = await list_monitors(ctx, page=1, page_size=2)

        assert router.calls["/api/v1/monitor"] == 1
        assert [m["id"] for m in first["data"]] == [0, 1]
        assert [m["id"] for m in second["data"]] == [2, 3]
        assert first["data"][0]["status"] == "OK"
        assert second["pagination"] == {"page": 1, "page_size": 2, "has_next": True, "total": 5, "next_offset": 4}

    async def test_page_zero_refetches(self, make_context) -> None:
        router = Router({"/api/v1/monitor": MONITORS})
        ctx = make_context(router)

        await list_monitors(ctx, page=0)
        await list_monitors(ctx, page=0)

        assert router.calls["/api/v1/monitor"] == 2

    async def test_different_filters_use_different_snapshots(self, make_context) -> None:
        router = Router({"/api/v1/monitor": MONITORS})
        ctx = make_context(router)

        await list_monitors(ctx, tags="env:prod", page=0)
        await list_monitors(ctx, tags="env:dev", page=1)

        assert router.calls["/api/v1/monitor"] == 2

    async def test_empty_list_is_not_an_error(self, make_context) -> None:
        ctx = make_context(Router({"/api/v1/monitor": []}))

        result = await list_monitors(ctx)

        assert result["data"] == []
        assert result["pagination"]["has_next"] is False

    async def test_get_monitor(self, make_context) -> None:
        monitor = {**MONITORS[0], "message": "hi", "options": {"notify_no_data": True, "thresholds": {"critical": 90}}}
        ctx = make_context(Router({"/api/v1/monitor/0": monitor}))

        result = await get_monitor(ctx, 0)

        assert result["data"]["message"] == "hi"
        assert result["data"]["options"]["thresholds"] == {"critical": 90}

    async def test_get_missing_monitor(self, make_context) -> None:
        ctx = make_context(Router({}))

        with pytest.raises(MalformedRequestError):
            await get_monitor(ctx, 42)


class TestDashboardsHandler:
    async def test_list(self, make_context) -> None:
        dashboards = {"dashboards": [{"id": f"d-{i}", "title": f"Dash {i}"} for i in range(3)]}
        router = Router({"/api/v1/dashboard": dashboards})
        ctx = make_context(router)

        first = await list_dashboards(ctx, page=0, page_size=2)
        second = await list_dashboards(ctx, page=1, page_size=2)

        assert [d["id"] for d in first["data"]] == ["d-0", "d-1"]
        assert [d["id"] for d in second["data"]] == ["d-2"]
        assert second["pagination"]["has_next"] is False
        assert router.calls["/api/v1/dashboard"] == 1

    async def test_get_collects_nested_widget_types(self, make_context) -> None:
        dashboard = {
            "id": "abc",
            "title": "Service",
            "widgets": [
                {"id": 1, "definition": {"type": "timeseries", "title": "CPU"}},
                {
                    "id": 2,
                    "definition": {
                        "type": "group",
                        "widgets": [{"id": 3, "definition": {"type": "query_value"}}],
                    },
                },
            ],
        }
        ctx = make_context(Router({"/api/v1/dashboard/abc": dashboard}))

        result = await get_dashboard(ctx, "abc")

        summary = result["data"]["widgets_summary"]
        assert summary["total_widgets"] == 2
        assert summary["widget_types"] == ["group", "query_value", "timeseries"]
        assert result["data"]["is_read_only"] is False


class TestEventsHandler:
    async def test_pages_share_snapshot_across_now(self, make_context) -> None:
        events = {"events": [{"id": i, "title": f"e{i}", "date_happened": 1704067200} for i in range(4)]}
        router = Router({"/api/v1/events": events})
        ctx = make_context(router)

        first = await query_events(ctx, time_from="1 hour ago", time_to="now", page=0, page_size=2)
        second = await query_events(ctx, time_from="1 hour ago", time_to="now", page=1, page_size=2)

        assert router.calls["/api/v1/events"] == 1
        assert [e["id"] for e in second["data"]] == [2, 3]
        assert first["data"][0]["date"] == "2024-01-01 00:00:00 UTC"
        assert "from" in first["meta"]

    async def test_cached_page_reports_snapshot_window(self, make_context, monkeypatch: pytest.MonkeyPatch) -> None:
        events = {"events": [{"id": i, "title": f"e{i}"} for i in range(4)]}
        router = Router({"/api/v1/events": events})
        ctx = make_context(router)
        clock = {"now": datetime(2024, 1, 1, 12, 0, tzinfo=UTC)}
        monkeypatch.setattr(
            handlers_common,
            "parse_time",
            lambda expression: utils.parse_time(expression, now=clock["now"]),
        )

        first = await query_events(ctx, time_from="1 hour ago", time_to="now", page=0, page_size=2)
        clock["now"] += timedelta(minutes=10)
        second = await query_events(ctx, time_from="1 hour ago", time_to="now", page=1, page_size=2)

        assert router.calls["/api/v1/events"] == 1
        assert second["meta"] == first["meta"]
        assert first["meta"] == {"from": "2024-01-01 11:00:00 UTC", "to": "2024-01-01 12:00:00 UTC"}

    async def test_bad_time_expression(self, make_context) -> None:
        ctx = make_context(Router({}))

        with pytest.raises(MalformedRequestError):
            await query_events(ctx, time_from="next blue moon")


class TestMetricsHandler:
    @staticmethod
    def query_response(request: httpx.Request) -> dict[str, Any]:
        return {
            "status": "ok",
            "query": request.url.params["query"],
            "series": [
                {
                    "metric": "system.cpu.user",
                    "scope": "host:web-1",
                    "pointlist": [[1700000000000.0, 12.5], [None, 3.0]],
                    "aggr": "max",
                    "interval": 60,
                    "unit": [None, {"name": "percent", "family": "percentage", "short_name": "%"}],
                }
            ],
        }

    async def test_series_summary(self, make_context) -> None:
        router = Router({"/api/v1/query": self.query_response})
        ctx = make_context(router)

        result = await query_metrics(ctx, "max:system.cpu.user{*}", time_from="1700000000", time_to="1700003600")

        series = result["data"][0]
        assert series["points"] == {
            "count": 2,
            "data": [
                {"timestamp": "2023-11-14 22:13:20 UTC", "value": 12.5},
                {"timestamp": "N/A", "value": 3.0},
            ],
        }
        assert series["unit"] == {"name": "percent", "family": "percentage", "short_name": "%"}
        assert result["meta"]["query"] == "max:system.cpu.user{*}"
        assert "rollup_applied" not in result["meta"]
        assert "pagination" not in result

    async def test_max_points_adds_rollup(self, make_context) -> None:
        router = Router({"/api/v1/query": self.query_response})
        ctx = make_context(router)

        result = await query_metrics(
            ctx, "max:system.cpu.user{*}", time_from="1700000000", time_to="1700003600", max_points=10
        )

        assert router.requests[0].url.params["query"] == "max:system.cpu.user{*}.rollup(max, 600)"
        assert result["meta"]["rollup_applied"] is True
        assert result["meta"]["requested_max_points"] == 10

    @pytest.mark.parametrize(
        ("seconds", "max_points", "interval"),
        [(3600, 100, 60), (3600, 10, 600), (86400, 10, 21600), (7 * 86400, 10, 86400)],
    )
    def test_rollup_interval(self, seconds: int, max_points: int, interval: int) -> None:
        assert rollup_interval(0, seconds, max_points) == interval

    def test_existing_rollup_kept(self) -> None:
        assert add_rollup("sum:requests{*}.rollup(sum, 60)", 300) == "sum:requests{*}.rollup(sum, 60)"
        assert add_rollup("requests{*}", 300) == "requests{*}.rollup(avg, 300)"


class TestLogsAnalyticsHandler:
    BUCKETS = {"data": {"buckets": [{"by": {"service": "web"}, "computes": {"c0": 4}}]}}

    async def test_aggregate_defaults_to_count(self, make_context) -> None:
        router = Router({"/api/v2/logs/analytics/aggregate": self.BUCKETS})
        ctx = make_context(router)

        result = await aggregate_logs(
            ctx,
            time_from="1700000000",
            time_to="1700003600",
            group_by=[{"facet": "service", "limit": 5, "sort": {"order": "desc", "aggregation": "count"}}],
        )

        body = json.loads(router.requests[0].content)
        assert body["filter"] == {"query": "*", "from": "1700000000000", "to": "1700003600000"}
        assert body["compute"] == [{"aggregation": "count", "type": "total"}]
        assert body["group_by"] == [
            {
                "facet": "service",
                "limit": 5,
                "type": "facet",
                "sort": {"order": "desc", "type": "measure", "aggregation": "count"},
            }
        ]
        assert "options" not in body
        assert result["data"] == self.BUCKETS["data"]
        assert result["meta"]["buckets_count"] == 1

    async def test_timeseries_compute_and_timezone(self, make_context) -> None:
        router = Router({"/api/v2/logs/analytics/aggregate": self.BUCKETS})
        ctx = make_context(router)

        result = await logs_timeseries(
            ctx,
            query="status:error",
            interval="5m",
            aggregation="avg",
            metric="@duration",
            group_by=[{"facet": "service", "sort": {"order": "asc"}}],
            timezone="UTC",
        )

        body = json.loads(router.requests[0].content)
        assert body["compute"] == [
            {"aggregation": "avg", "type": "timeseries", "interval": "5m", "metric": "@duration"}
        ]
        assert body["group_by"] == [{"facet": "service", "type": "facet"}]
        assert body["options"] == {"timezone": "UTC"}
        assert result["meta"]["interval"] == "5m"
        assert result["meta"]["metric"] == "@duration"

    async def test_never_cached(self, make_context) -> None:
        router = Router({"/api/v2/logs/analytics/aggregate": {"data": {}}})
        ctx = make_context(router)

        first = await aggregate_logs(ctx)
        await aggregate_logs(ctx)

        assert router.calls["/api/v2/logs/analytics/aggregate"] == 2
        assert first["meta"]["buckets_count"] == 0
        assert len(ctx.orchestrator.cache) == 0


class TestRumHandler:
    EVENT = {
        "id": "rum-1",
        "type": "rum",
        "attributes": {
            "timestamp": "2024-01-01T00:00:00Z",
            "service": "shop",
            "tags": ["env:prod", "version:2"],
            "application": {"name": "shop-web", "id": "app-1"},
            "view": {"name": "/checkout", "url": "https://shop/checkout", "loading_time": 1200},
            "session": {"id": "s-1", "type": "user", "has_replay": False},
            "action": {},
            "error": {
                "message": "TypeError",
                "stack": "\n".join(f"at frame {i}" for i in range(12)),
                "is_crash": True,
            },
        },
    }

    def rum_response(self, request: httpx.Request) -> dict[str, Any]:
        page = json.loads(request.content)["page"]
        if "cursor" in page:
            return {"data": [self.EVENT], "meta": {}}
        return {"data": [self.EVENT], "meta": {"page": {"after": "rum-cursor"}}}

    async def test_event_summary(self, make_context) -> None:
        ctx = make_context(Router({"/api/v2/rum/events/search": self.rum_response}))

        result = await search_rum_events(ctx, query="@type:error", limit=1, tag_filter="env:")

        event = result["data"][0]
        assert event["application"] == {"name": "shop-web"}
        assert event["view"] == {"name": "/checkout", "loading_time": 1200}
        assert event["session"] == {"id": "s-1", "type": "user"}
        assert "action" not in event
        assert event["error"]["is_crash"] is True
        assert event["error"]["stack"].endswith("(2 more lines truncated)")
        assert event["tags"] == ["env:prod"]
        assert result["pagination"]["next_cursor"] == "rum-cursor"

    async def test_cursor_and_full_stack(self, make_context) -> None:
        router = Router({"/api/v2/rum/events/search": self.rum_response})
        ctx = make_context(router)

        result = await search_rum_events(ctx, cursor="rum-cursor", full_stack_trace=True, tag_filter="")

        assert json.loads(router.requests[0].content)["page"] == {"limit": 10, "cursor": "rum-cursor"}
        assert result["pagination"]["has_next"] is False
        event = result["data"][0]
        assert event["error"]["stack"] == self.EVENT["attributes"]["error"]["stack"]
        assert "tags" not in event


class TestLogsHandler:
    LOGS = {
        "data": [
            {
                "id": f"log-{i}",
                "attributes": {
                    "message": "hello",
                    "service": "web",
                    "tags": ["env:prod", "team:core", "source:python"],
                },
            }
            for i in range(3)
        ]
    }

    async def test_full_page_heuristic(self, make_context) -> None:
        router = Router({"/api/v2/logs/events/search": self.LOGS})
        ctx = make_context(router)

        result = await search_logs(ctx, query="service:web", limit=3)

        assert len(result["data"]) == 3
        assert result["pagination"]["has_next"] is True
        assert result["pagination"]["approximate"] is True
        assert result["meta"]["total"] == 3

    async def test_short_page_is_last(self, make_context) -> None:
        ctx = make_context(Router({"/api/v2/logs/events/search": self.LOGS}))

        result = await search_logs(ctx, query="service:web", limit=10)

        assert result["pagination"]["has_next"] is False

    async def test_tag_filter(self, make_context) -> None:
        ctx = make_context(Router({"/api/v2/logs/events/search": self.LOGS}))

        result = await search_logs(ctx, query="*", tag_filter="env:,team:")

        assert result["data"][0]["tags"] == ["env:prod", "team:core"]

    async def test_never_cached(self, make_context) -> None:
        router = Router({"/api/v2/logs/events/search": self.LOGS})
        ctx = make_context(router)

        await search_logs(ctx, query="*")
        await search_logs(ctx, query="*")

        assert router.calls["/api/v2/logs/events/search"] == 2
        assert len(ctx.orchestrator.cache) == 0


class TestSpansHandler:
    @staticmethod
    def spans_response(request: httpx.Request) -> dict[str, Any]:
        cursor = request.url.params.get("page[cursor]")
        span = {
            "id": "span-1",
            "type": "spans",
            "attributes": {
                "tags": ["env:prod", "version:1"],
                "ingestion_reason": "",
                "custom": {
                    "http": {"method": "GET", "useragent_details": {"os": "linux"}},
                    "error": {"stack": "\n".join(f"frame {i}" for i in range(15))},
                    "messaging": {"kafka": {"bootstrap": {"servers": "b" * 400}}},
                },
            },
        }
        if cursor is None:
            return {"data": [span], "meta": {"page": {"after": "cursor-2"}}}
        return {"data": [span], "meta": {}}

    async def test_first_page_has_cursor(self, make_context) -> None:
        ctx = make_context(Router({"/api/v2/spans/events": self.spans_response}))

        result = await list_spans(ctx, page_size=1, tag_filter="env:")

        assert result["pagination"]["has_next"] is True
        assert result["pagination"]["next_cursor"] == "cursor-2"
        attrs = result["data"][0]["attributes"]
        assert attrs["tags"] == ["env:prod"]
        assert "ingestion_reason" not in attrs
        assert "useragent_details" not in attrs["custom"]["http"]
        assert attrs["custom"]["error"]["stack"].endswith("(5 more lines truncated)")
        assert attrs["custom"]["messaging"]["kafka"]["bootstrap"]["servers"].endswith("(144 chars truncated)")

    async def test_last_page(self, make_context) -> None:
        router = Router({"/api/v2/spans/events": self.spans_response})
        ctx = make_context(router)

        result = await list_spans(ctx, cursor="cursor-2")

        assert result["pagination"]["has_next"] is False
        assert "next_cursor" not in result["pagination"]
        assert router.requests[0].url.params["page[cursor]"] == "cursor-2"

    async def test_full_stack_trace(self, make_context) -> None:
        ctx = make_context(Router({"/api/v2/spans/events": self.spans_response}))

        result = await list_spans(ctx, full_stack_trace=True)

        assert len(result["data"][0]["attributes"]["custom"]["error"]["stack"].splitlines()) == 15


class TestHostsHandler:
    HOSTS = {
        "host_list": [
            {
                "name": "web-1",
                "up": True,
                "last_reported_time": 1704067200,
                "tags_by_source": {"Datadog": ["env:prod", "role:web"], "AWS": ["region:us-east-1"]},
            }
        ],
        "total_matching": 120,
        "total_returned": 1,
    }

    async def test_offset_paging(self, make_context) -> None:
        router = Router({"/api/v1/hosts": self.HOSTS})
        ctx = make_context(router)

        result = await list_hosts(ctx, page=2, page_size=50)

        params = router.requests[0].url.params
        assert params["start"] == "100"
        assert params["count"] == "50"
        assert result["pagination"]["total"] == 120
        assert result["pagination"]["has_next"] is True
        assert result["meta"]["total_matching"] == 120
        assert result["data"][0]["last_reported"] == "2024-01-01 00:00:00 UTC"

    async def test_tag_map_filter(self, make_context) -> None:
        ctx = make_context(Router({"/api/v1/hosts": self.HOSTS}))

        result = await list_hosts(ctx, tag_filter="env:")

        assert result["data"][0]["tags"] == {"Datadog": ["env:prod"]}

    async def test_tag_map_filter_none(self, make_context) -> None:
        ctx = make_context(Router({"/api/v1/hosts": self.HOSTS}))

        result = await list_hosts(ctx, tag_filter="")

        assert result["data"][0]["tags"] == {}


class TestServicesHandler:
    async def test_next_link_decides_has_next(self, make_context) -> None:
        body = {
            "data": [{"id": "svc-1", "type": "service-definition", "attributes": {"schema": {"dd-service": "web"}}}],
            "links": {"next": "https://api.datadoghq.com/api/v2/services/definitions?page[number]=1"},
        }
        router = Router({"/api/v2/services/definitions": body})
        ctx = make_context(router)

        result = await list_services(ctx, env="prod", page=0, page_size=10)

        assert result["pagination"]["has_next"] is True
        assert "approximate" not in result["pagination"]
        assert result["data"][0]["dd_service"] == "web"
        assert router.requests[0].url.params["filter[env]"] == "prod"

    async def test_without_links_uses_heuristic(self, make_context) -> None:
        body = {"data": [{"id": f"svc-{i}", "type": "service-definition"} for i in range(2)]}
        ctx = make_context(Router({"/api/v2/services/definitions": body}))

        result = await list_services(ctx, page_size=2)

        assert result["pagination"]["has_next"] is True
        assert result["pagination"]["approximate"] is True
