"""
Datadog MCP — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import DEMO_API_KEY, DEMO_APP_KEY, DatadogMCPConfig

logger = logging.getLogger(__name__)

_config_instance: DatadogMCPConfig | None = None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> DatadogMCPConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated DatadogMCPConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            # Real environment variables win over the file
            load_dotenv(env_path, override=False)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    try:
        config_dict = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
            "datadog": {
                "api_key": os.getenv("DD_API_KEY") or DEMO_API_KEY,
                "app_key": os.getenv("DD_APP_KEY") or DEMO_APP_KEY,
                "site": os.getenv("DD_SITE") or "datadoghq.com",
                "tag_filter": os.getenv("DD_TAG_FILTER", "*"),
                "timeout": float(os.getenv("DD_TIMEOUT", "30.0")),
            },
            "cache": {
                "ttl_seconds": float(os.getenv("CACHE_TTL_SECONDS", "300")),
                "max_size": int(os.getenv("CACHE_MAX_SIZE", "100")),
            },
            "retry": {
                "max_attempts": int(os.getenv("RETRY_MAX_ATTEMPTS", "3")),
                "base_delay": float(os.getenv("RETRY_BASE_DELAY", "1.0")),
                "backoff_multiplier": float(os.getenv("RETRY_BACKOFF_MULTIPLIER", "2.0")),
                "max_delay": float(os.getenv("RETRY_MAX_DELAY", "60.0")),
                "attempt_timeout": float(os.getenv("RETRY_ATTEMPT_TIMEOUT", "30.0")),
            },
            "observability": {
                "enable_metrics": _env_bool("ENABLE_METRICS", "true"),
                "enable_tracing": _env_bool("ENABLE_TRACING", "false"),
                "log_format": os.getenv("LOG_FORMAT", "text").lower(),
            },
        }
    except ValueError as e:
        # int()/float() on a malformed env var
        raise ConfigurationError(
            f"Invalid numeric configuration value: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = DatadogMCPConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "site": _config_instance.datadog.site},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors(include_url=False, include_context=False)},
        ) from e


def get_config() -> DatadogMCPConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current DatadogMCPConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> DatadogMCPConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded DatadogMCPConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the cached configuration instance (tests only)."""
    global _config_instance
    _config_instance = None
