"""
Datadog MCP — Core Error Types

Defines the exception hierarchy for the data-access layer and the tools built
on top of it. All exceptions inherit from DatadogMCPError so callers can catch
the whole family at the tool boundary.

Classification:
- Transient (network, 5xx, timeout): retried, then surfaced as RetryExhaustedError
- RateLimited: retried like transient, surfaced distinctly when retries run out
- Authentication / MalformedRequest: never retried, surfaced immediately
"""

from enum import Enum
from typing import Any

import httpx


class ErrorCode(str, Enum):
    """
    Standard error codes for MCP tool responses.

    Used for structured error handling and client-side error recovery.
    """

    # Input validation errors
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_PARAMETER = "MISSING_PARAMETER"

    # Upstream errors
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DatadogMCPError(Exception):
    """Base exception for all Datadog MCP errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for tool responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DatadogMCPError):
    """Raised when configuration is invalid or missing."""

    error_code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class MalformedRequestError(DatadogMCPError):
    """Raised when a request is invalid before or after reaching Datadog."""

    error_code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=400)


class AuthenticationError(DatadogMCPError):
    """Raised when Datadog rejects the API or application key."""

    error_code = ErrorCode.AUTHENTICATION_FAILED

    def __init__(self, message: str = "Authentication failed", status_code: int = 401):
        super().__init__(message, {"status_code": status_code}, status_code=status_code)


class UpstreamError(DatadogMCPError):
    """Raised when Datadog answers with an unexpected HTTP status."""

    error_code = ErrorCode.UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        error_details = dict(details or {})
        if upstream_status is not None:
            error_details["upstream_status"] = upstream_status
        super().__init__(message, error_details, status_code=502)
        self.upstream_status = upstream_status


class TransientNetworkError(UpstreamError):
    """Raised when the request never got a usable answer (connect/read failures)."""

    error_code = ErrorCode.UPSTREAM_UNAVAILABLE

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details=details)
        self.status_code = 503


class UpstreamTimeoutError(UpstreamError):
    """Raised when a single upstream attempt exceeds its timeout."""

    error_code = ErrorCode.UPSTREAM_TIMEOUT

    def __init__(self, timeout: float | None = None, operation: str = "upstream call"):
        if timeout is not None:
            message = f"{operation} timed out after {timeout}s"
        else:
            message = f"{operation} timed out"
        super().__init__(message, details={"timeout": timeout, "operation": operation})
        self.status_code = 504
        self.timeout = timeout


class RateLimitedError(UpstreamError):
    """Raised when Datadog signals a rate limit (HTTP 429)."""

    error_code = ErrorCode.RATE_LIMITED

    def __init__(self, retry_after: float | None = None):
        details: dict[str, Any] = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__("Datadog rate limit exceeded", upstream_status=429, details=details)
        self.status_code = 429
        self.retry_after = retry_after


class RetryExhaustedError(DatadogMCPError):
    """
    Raised when every attempt allowed by the retry policy failed with a
    retryable error.

    The last observed error is kept in ``last_error`` (and chained as
    ``__cause__``) so callers can tell "ran out of retries" apart from a
    non-retryable failure, which propagates unwrapped.
    """

    def __init__(self, last_error: Exception, attempts: int):
        message = f"Upstream call failed after {attempts} attempt(s): {last_error}"
        details = {
            "attempts": attempts,
            "last_error_type": type(last_error).__name__,
            "last_error": str(last_error),
        }
        super().__init__(message, details, status_code=getattr(last_error, "status_code", 502))
        self.last_error = last_error
        self.attempts = attempts

    @property
    def rate_limited(self) -> bool:
        """True when the final failed attempt was rejected by the rate limiter."""
        return isinstance(self.last_error, RateLimitedError)

    @property
    def error_code(self) -> ErrorCode:  # type: ignore[override]
        return ErrorCode.RATE_LIMITED if self.rate_limited else ErrorCode.RETRIES_EXHAUSTED


def make_error_response(
    error_code: ErrorCode,
    message: str,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a standardized error response for MCP tools.

    Args:
        error_code: Standard error code
        message: Human-readable error message
        context: Additional context/details

    Returns:
        Standardized error response dictionary

    Example:
        >>> make_error_response(
        ...     ErrorCode.INVALID_INPUT,
        ...     "Missing 'monitor_id' parameter",
        ...     {"parameter": "monitor_id"}
        ... )
        {
            "success": False,
            "error_code": "INVALID_INPUT",
            "message": "Missing 'monitor_id' parameter",
            "details": {"parameter": "monitor_id"}
        }
    """
    return {
        "success": False,
        "error_code": error_code.value,
        "message": message,
        "details": context or {},
    }


def is_retryable_error(error: BaseException) -> bool:
    """
    Check if an error is transient and should be retried.

    Args:
        error: Exception to check

    Returns:
        True if error is retryable (transient)
    """
    # Never retry credentials or bad input
    if isinstance(error, AuthenticationError | MalformedRequestError):
        return False

    # Timeouts, rate limits and dropped connections
    if isinstance(error, UpstreamTimeoutError | RateLimitedError | TransientNetworkError):
        return True

    # Raw httpx failures from a fetch callback that didn't go through the client
    if isinstance(error, httpx.TimeoutException | httpx.TransportError):
        return True

    # Generic upstream errors are transient only on 5xx
    if isinstance(error, UpstreamError):
        return error.upstream_status is not None and error.upstream_status >= 500

    return False


def extract_error_code(error: BaseException) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, DatadogMCPError):
        return error.error_code

    if isinstance(error, httpx.TimeoutException):
        return ErrorCode.UPSTREAM_TIMEOUT

    if isinstance(error, httpx.TransportError):
        return ErrorCode.UPSTREAM_UNAVAILABLE

    return ErrorCode.INTERNAL_ERROR
