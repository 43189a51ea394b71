"""
Datadog MCP — Dashboards Handler
"""

from typing import Any

from ..cache import make_cache_key
from .common import HandlerContext, format_detail, format_page, parse_pagination


def collect_widget_types(widgets: list[dict[str, Any]]) -> list[str]:
    """Sorted set of widget types, descending into group widgets."""
    types: set[str] = set()

    def collect(widget: dict[str, Any]) -> None:
        definition = widget.get("definition") or {}
        widget_type = definition.get("type")
        if widget_type:
            types.add(widget_type)
        if widget_type == "group":
            for nested in definition.get("widgets") or []:
                collect(nested)

    for widget in widgets:
        collect(widget)
    return sorted(types)


def summarize_dashboard(dashboard: dict[str, Any]) -> dict[str, Any]:
    widgets = dashboard.get("widgets") or []
    author = dashboard.get("author_info")
    return {
        "id": dashboard.get("id"),
        "title": dashboard.get("title"),
        "description": dashboard.get("description"),
        "url": dashboard.get("url"),
        "layout_type": dashboard.get("layout_type"),
        "is_read_only": bool(dashboard.get("is_read_only", False)),
        "created_at": dashboard.get("created_at"),
        "modified_at": dashboard.get("modified_at"),
        "tags": dashboard.get("tags") or [],
        "author": (
            {"name": author.get("name"), "handle": author.get("handle"), "email": author.get("email")}
            if isinstance(author, dict)
            else None
        ),
        "template_variables": [
            {
                "name": var.get("name"),
                "default": var.get("default"),
                "prefix": var.get("prefix"),
                "available_values": var.get("available_values"),
            }
            for var in dashboard.get("template_variables") or []
        ],
        "widgets_summary": {
            "total_widgets": len(widgets),
            "widget_types": collect_widget_types(widgets),
            "widgets": [
                {
                    "id": widget.get("id"),
                    "type": (widget.get("definition") or {}).get("type"),
                    "title": (widget.get("definition") or {}).get("title"),
                    "layout": widget.get("layout"),
                }
                for widget in widgets
            ],
        },
    }


async def list_dashboards(
    ctx: HandlerContext,
    page: int = 0,
    page_size: int = 50,
    force_refresh: bool = False,
) -> dict[str, Any]:
    """List dashboard summaries from the cached full list."""
    request = parse_pagination(page, page_size)
    key = make_cache_key("dashboards")

    result = await ctx.orchestrator.fetch_page(key, ctx.client.list_dashboards, request, force_refresh=force_refresh)
    return format_page(result)


async def get_dashboard(ctx: HandlerContext, dashboard_id: str) -> dict[str, Any]:
    dashboard = await ctx.orchestrator.call(lambda: ctx.client.get_dashboard(dashboard_id), name="get_dashboard")
    return format_detail(summarize_dashboard(dashboard))
