"""
Datadog MCP — Observability Module

Single observability adapter for the entire runtime.
All metrics, traces, and logs go through this module.

Usage:
    from datadog_mcp.observability import get_observability

    obs = get_observability()
    obs.increment("cache.hits")
    obs.gauge("cache.size", 100)

    with obs.trace("operation"):
        # traced code here
        pass
"""

from .monitoring import (
    HistogramSummary,
    JSONFormatter,
    ObservabilityAdapter,
    get_observability,
    initialize_observability,
    reset_observability,
)

__all__ = [
    "HistogramSummary",
    "ObservabilityAdapter",
    "JSONFormatter",
    "get_observability",
    "initialize_observability",
    "reset_observability",
]
