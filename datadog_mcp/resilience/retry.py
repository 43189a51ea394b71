"""
Datadog MCP - Retry Logic with Exponential Backoff

Wraps fallible async upstream calls with bounded retries.

- Attempt 1 runs immediately; attempt i+1 waits base_delay * multiplier**(i-1)
  (1s, 2s, 4s… with the defaults)
- Every attempt runs under its own timeout; a timeout is a retryable failure
- Non-retryable errors propagate unchanged after a single attempt
- Running out of attempts raises RetryExhaustedError carrying the last error
- Caller cancellation is never caught
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ..errors import RetryExhaustedError, UpstreamTimeoutError, is_retryable_error

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry configuration shared by all calls.

    Attributes:
        max_attempts: Total attempts, including the first (default: 3)
        base_delay: Delay before the second attempt in seconds (default: 1.0)
        backoff_multiplier: Growth factor between consecutive delays (default: 2.0)
        max_delay: Cap for a single delay in seconds (default: 60.0)
        attempt_timeout: Timeout for each attempt in seconds, None disables (default: 30.0)
        jitter_factor: Symmetric random spread applied to each delay, 0-1 (default: 0.0)
        is_retryable: Predicate deciding whether a failure may be retried
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay: float = 60.0
    attempt_timeout: float | None = 30.0
    jitter_factor: float = 0.0
    is_retryable: Callable[[BaseException], bool] = field(default=is_retryable_error, compare=False)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError("jitter_factor must be between 0 and 1")

    @classmethod
    def from_config(cls, config: Any) -> "RetryPolicy":
        """Build a policy from a RetryConfig section."""
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            backoff_multiplier=config.backoff_multiplier,
            max_delay=config.max_delay,
            attempt_timeout=config.attempt_timeout,
        )

    def delay_after(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return exponential_backoff(
            attempt=attempt,
            base_delay=self.base_delay,
            multiplier=self.backoff_multiplier,
            max_delay=self.max_delay,
            jitter_factor=self.jitter_factor,
        )


def exponential_backoff(
    attempt: int,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    max_delay: float = 60.0,
    jitter_factor: float = 0.0,
) -> float:
    """
    Calculate the wait after a failed attempt.

    Args:
        attempt: Number of the attempt that just failed (1-based)
        base_delay: Delay after the first failure
        multiplier: Base for exponential calculation
        max_delay: Maximum delay cap
        jitter_factor: Random spread (0 disables jitter)

    Returns:
        Delay in seconds

    Example:
        >>> exponential_backoff(1)  # 1.0s
        >>> exponential_backoff(2)  # 2.0s
        >>> exponential_backoff(3)  # 4.0s
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")

    delay = min(base_delay * (multiplier ** (attempt - 1)), max_delay)

    if jitter_factor > 0:
        jitter_amount = delay * jitter_factor
        delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))

    return delay


class RetryExecutor:
    """
    Runs an async operation under a RetryPolicy.

    Example:
        >>> executor = RetryExecutor(RetryPolicy(max_attempts=3))
        >>> monitors = await executor.execute(lambda: client.list_monitors())
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_retry: Callable[[int, BaseException], None] | None = None,
    ):
        """
        Args:
            policy: Retry policy (defaults to RetryPolicy())
            sleep: Coroutine used to wait between attempts
            on_retry: Optional callback invoked before each retry (attempt, error)
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._on_retry = on_retry

    async def execute(self, operation: Callable[[], Awaitable[T]], name: str | None = None) -> T:
        """
        Execute operation with retry logic.

        Args:
            operation: Zero-argument coroutine function performing one attempt
            name: Label used in logs (defaults to the callable's name)

        Returns:
            Result of the first successful attempt

        Raises:
            RetryExhaustedError: Every attempt failed with a retryable error
            Exception: The first non-retryable error, unchanged
        """
        policy = self.policy
        label = name or getattr(operation, "__name__", "operation")

        for attempt in range(1, policy.max_attempts + 1):
            try:
                result = await self._attempt(operation, label)
            except Exception as e:
                if not policy.is_retryable(e):
                    logger.debug(
                        f"Non-retryable error, not retrying: {e}",
                        extra={"error_type": type(e).__name__, "function": label, "attempt": attempt},
                    )
                    raise

                if attempt >= policy.max_attempts:
                    logger.error(
                        f"All {policy.max_attempts} attempts exhausted for {label}",
                        extra={
                            "function": label,
                            "error": str(e),
                            "error_type": type(e).__name__,
                        },
                    )
                    raise RetryExhaustedError(e, attempts=attempt) from e

                delay = policy.delay_after(attempt)

                logger.warning(
                    f"Attempt {attempt}/{policy.max_attempts} failed, retrying in {delay:.2f}s",
                    extra={
                        "attempt": attempt,
                        "max_attempts": policy.max_attempts,
                        "delay_seconds": delay,
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "function": label,
                    },
                )

                if self._on_retry:
                    try:
                        self._on_retry(attempt, e)
                    except Exception as callback_error:
                        logger.error(f"Retry callback failed: {callback_error}")

                await self._sleep(delay)
                continue

            if attempt > 1:
                logger.info(
                    f"Retry succeeded on attempt {attempt}",
                    extra={"attempt": attempt, "function": label},
                )
            return result

        # max_attempts >= 1 guarantees the loop returns or raises
        raise AssertionError("unreachable")

    async def _attempt(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        timeout = self.policy.attempt_timeout
        if timeout is None:
            return await operation()

        try:
            async with asyncio.timeout(timeout):
                return await operation()
        except TimeoutError as e:
            raise UpstreamTimeoutError(timeout, operation=label) from e


async def with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, BaseException], None] | None = None,
    **kwargs: Any,
) -> T:
    """
    Execute an async function with retry logic.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        policy: Retry policy (uses defaults if None)
        on_retry: Optional callback called on each retry (attempt, error)
        **kwargs: Keyword arguments for func

    Returns:
        Result of successful function execution

    Example:
        >>> dashboards = await with_retry(client.list_dashboards, policy=RetryPolicy(max_attempts=5))
    """
    executor = RetryExecutor(policy, on_retry=on_retry)
    return await executor.execute(lambda: func(*args, **kwargs), name=getattr(func, "__name__", None))
