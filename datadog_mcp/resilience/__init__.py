"""
Datadog MCP - Resilience Module

Retry with exponential backoff for upstream Datadog calls.
"""

from .retry import RetryExecutor, RetryPolicy, exponential_backoff, with_retry

__all__ = [
    "RetryExecutor",
    "RetryPolicy",
    "exponential_backoff",
    "with_retry",
]
