"""
Datadog MCP — Orchestration Module

Composes cache, retry, pagination and tag filtering for the handlers.
"""

from .orchestrator import CacheOrchestrator

__all__ = ["CacheOrchestrator"]
