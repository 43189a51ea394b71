"""
Datadog MCP — Service Catalog Handler

The service definitions API pages by page number and reports no total. When
it returns a ``links.next`` URL that decides ``has_next``; otherwise the
full-page heuristic applies.
"""

import dataclasses
from typing import Any

from ..pagination import from_upstream_offset
from .common import HandlerContext, format_page, parse_pagination

_SERVICE_FIELDS = (
    "schema_version",
    "dd_service",
    "dd_team",
    "application",
    "tier",
    "lifecycle",
    "type_of_service",
    "languages",
    "tags",
    "contacts",
    "links",
    "repos",
    "docs",
    "integrations",
)


def summarize_service(service: dict[str, Any]) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": service.get("id"), "type": service.get("type")}

    attributes = service.get("attributes") or {}
    # v2 definitions nest the fields under "schema"
    schema = attributes.get("schema") if isinstance(attributes.get("schema"), dict) else attributes
    for field_name in _SERVICE_FIELDS:
        if field_name in schema:
            summary[field_name] = schema[field_name]
    if "dd-service" in schema and "dd_service" not in summary:
        summary["dd_service"] = schema["dd-service"]
    if "team" in schema and "dd_team" not in summary:
        summary["dd_team"] = schema["team"]
    return summary


async def list_services(
    ctx: HandlerContext,
    env: str | None = None,
    page: int = 0,
    page_size: int = 50,
) -> dict[str, Any]:
    request = parse_pagination(page, page_size)

    response = await ctx.orchestrator.call(
        lambda: ctx.client.get_service_catalog(
            page_size=request.page_size,
            page_number=request.page_index,
            filter_env=env,
        ),
        name="list_services",
    )

    result = from_upstream_offset(response.get("data") or [], request.page_index, request.page_size)
    links = response.get("links")
    if isinstance(links, dict) and "next" in links:
        next_link = links.get("next")
        result = dataclasses.replace(
            result,
            has_next=bool(next_link),
            next_offset=request.offset + request.page_size if next_link else None,
            approximate=False,
        )

    meta = {
        "filter_env": env,
        "warnings": (response.get("meta") or {}).get("warnings") or [],
        "next": (links or {}).get("next") if isinstance(links, dict) else None,
    }
    return format_page(result.map(summarize_service), meta)
