"""
Datadog MCP — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.

- MCP stdio protocol (no HTTP server config needed)
- All config via environment variables
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


DEMO_API_KEY = "DEMO_API_KEY"
DEMO_APP_KEY = "DEMO_APP_KEY"


class DatadogConfig(BaseModel):
    """Datadog API access configuration."""

    api_key: str = Field(default=DEMO_API_KEY, min_length=1, description="Datadog API key (DD-API-KEY)")
    app_key: str = Field(default=DEMO_APP_KEY, min_length=1, description="Datadog application key")
    site: str = Field(default="datadoghq.com", description="Datadog site, e.g. datadoghq.eu")
    tag_filter: str = Field(
        default="*",
        description="Default tag filter: '*' for all tags, '' for none, or comma-separated prefixes",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP client timeout in seconds")

    @field_validator("site")
    @classmethod
    def validate_site(cls, v: str) -> str:
        """Strip scheme and 'api.' prefix users sometimes paste in."""
        site = v.strip().removeprefix("https://").removeprefix("http://").removeprefix("api.").rstrip("/")
        if not site:
            raise ValueError("site cannot be empty")
        return site

    @property
    def base_url(self) -> str:
        return f"https://api.{self.site}"


class CacheConfig(BaseModel):
    """Cache configuration."""

    ttl_seconds: float = Field(default=300, gt=0, description="Entry time-to-live in seconds")
    max_size: int = Field(default=100, ge=1, description="Max cache entries before LRU eviction")


class RetryConfig(BaseModel):
    """Retry/backoff configuration for upstream calls."""

    max_attempts: int = Field(default=3, ge=1, description="Total attempts per upstream call")
    base_delay: float = Field(default=1.0, gt=0, description="Delay before the second attempt, in seconds")
    backoff_multiplier: float = Field(default=2.0, ge=1.0, description="Growth factor between delays")
    max_delay: float = Field(default=60.0, gt=0, description="Upper bound for a single delay")
    attempt_timeout: float = Field(default=30.0, gt=0, description="Timeout applied to each attempt")

    @model_validator(mode="after")
    def validate_delays(self) -> "RetryConfig":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self


class ObservabilityConfig(BaseModel):
    """Observability and monitoring configuration."""

    enable_metrics: bool = Field(default=True, description="Enable in-process metrics collection")
    enable_tracing: bool = Field(default=False, description="Enable span tracing in logs")
    log_format: LogFormat = Field(default=LogFormat.TEXT, description="Log output format")


class DatadogMCPConfig(BaseModel):
    """Root configuration for Datadog MCP."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    datadog: DatadogConfig = Field(default_factory=DatadogConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @field_validator("datadog")
    @classmethod
    def validate_credentials(cls, v: DatadogConfig, info: Any) -> DatadogConfig:
        """Refuse demo credentials in production."""
        environment = info.data.get("environment")
        if environment == Environment.PRODUCTION:
            if v.api_key == DEMO_API_KEY or v.app_key == DEMO_APP_KEY:
                raise ValueError("DD_API_KEY and DD_APP_KEY must be set in production")
        return v

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
