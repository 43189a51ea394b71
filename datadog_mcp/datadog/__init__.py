"""
Datadog MCP — Datadog API Module
"""

from .client import DatadogClient

__all__ = ["DatadogClient"]
