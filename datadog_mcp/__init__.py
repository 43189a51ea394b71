"""
Datadog MCP — Datadog Data Access for AI Agents

MCP server exposing Datadog monitors, dashboards, events, logs, spans, hosts
and the service catalog, with caching, retries, pagination and tag filtering.
"""

__version__ = "0.1.0"

# Export main components for external use
from .server import mcp

__all__ = ["mcp"]
