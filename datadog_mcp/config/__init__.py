"""
Datadog MCP — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    CacheConfig,
    DatadogConfig,
    DatadogMCPConfig,
    Environment,
    LogFormat,
    LogLevel,
    ObservabilityConfig,
    RetryConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "DatadogMCPConfig",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Config sections
    "DatadogConfig",
    "CacheConfig",
    "RetryConfig",
    "ObservabilityConfig",
]
