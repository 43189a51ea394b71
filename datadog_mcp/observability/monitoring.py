"""
Datadog MCP — Observability Monitoring

In-process metrics collection and structured logging.
Metrics live only for the lifetime of the process; nothing is persisted.
"""

import contextvars
import json
import logging
import sys
import time
from collections import defaultdict
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

# Trace ID context variable for distributed tracing
_trace_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

# Request ID context variable
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

_PACKAGE_LOGGER = "datadog_mcp"


def _metric_key(name: str, tags: dict[str, str]) -> str:
    if not tags:
        return name
    rendered = ",".join(f"{k}:{v}" for k, v in sorted(tags.items()))
    return f"{name}|{rendered}"


@dataclass
class HistogramSummary:
    """Running summary of one histogram; constant size however many samples arrive."""

    count: int = 0
    total: float = 0.0
    min: float = float("inf")
    max: float = float("-inf")

    def record(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    def to_dict(self) -> dict[str, float]:
        return {"count": self.count, "min": self.min, "max": self.max, "avg": self.total / self.count}


class ObservabilityAdapter:
    """
    Simple in-process observability adapter.

    Provides:
    - Metrics (counters, gauges, histograms) held in memory
    - Span tracing (trace IDs)
    - Structured JSON logging
    """

    def __init__(
        self,
        enable_metrics: bool = True,
        enable_tracing: bool = False,
        log_format: str = "text",
        log_level: str = "INFO",
    ):
        """
        Initialize observability adapter.

        Args:
            enable_metrics: Enable metrics collection
            enable_tracing: Enable span tracing
            log_format: "json" for structured output, "text" for plain lines
            log_level: Level applied to the package logger
        """
        self.enable_metrics = enable_metrics
        self.enable_tracing = enable_tracing

        self._counters: dict[str, float] = defaultdict(float)
        self._gauges: dict[str, float] = {}
        self._histograms: dict[str, HistogramSummary] = defaultdict(HistogramSummary)

        self.logger = self._setup_logger(log_format, log_level)

    def _setup_logger(self, log_format: str, log_level: str) -> logging.Logger:
        """Attach a single stderr handler to the package logger."""
        logger = logging.getLogger(_PACKAGE_LOGGER)

        # Remove existing handlers
        logger.handlers.clear()

        # stdout is the MCP transport, logs go to stderr
        handler = logging.StreamHandler(sys.stderr)
        if str(log_format).lower() == "json":
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(str(log_level).upper())
        logger.propagate = False

        return logger

    def increment(
        self,
        metric: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            metric: Metric name (e.g., "cache.hits")
            value: Value to increment by
            tags: Optional metric tags/labels
        """
        if not self.enable_metrics:
            return

        self._counters[_metric_key(metric, tags or {})] += value

    def gauge(
        self,
        metric: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """
        Set a gauge metric.

        Args:
            metric: Metric name
            value: Current value
            tags: Optional metric tags
        """
        if not self.enable_metrics:
            return

        self._gauges[_metric_key(metric, tags or {})] = value

    def histogram(
        self,
        metric: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """
        Record a histogram metric (for latencies, sizes, etc.).

        Args:
            metric: Metric name
            value: Value to record
            tags: Optional metric tags
        """
        if not self.enable_metrics:
            return

        self._histograms[_metric_key(metric, tags or {})].record(value)

    def event(self, name: str, payload: dict[str, Any]) -> None:
        """
        Record an event.

        Args:
            name: Event name
            payload: Event data
        """
        self.logger.info(
            f"Event: {name}",
            extra={
                "event_name": name,
                "event_payload": payload,
                "trace_id": self.get_trace_id(),
            },
        )

    @contextmanager
    def trace(self, span_name: str, tags: dict[str, str] | None = None) -> Generator[None, None, None]:
        """
        Context manager for tracing a span.

        Args:
            span_name: Name of the span
            tags: Optional span tags

        Example:
            with observability.trace("datadog.monitors.list"):
                result = await handler(...)
        """
        if not self.enable_tracing:
            yield
            return

        start_time = time.perf_counter()
        trace_id = self.get_trace_id() or self.generate_trace_id()
        tags = tags or {}

        self.logger.debug(
            f"Span started: {span_name}",
            extra={"span_name": span_name, "trace_id": trace_id, "tags": tags},
        )

        try:
            yield
        except Exception as e:
            self.logger.error(
                f"Span error: {span_name}",
                extra={
                    "span_name": span_name,
                    "trace_id": trace_id,
                    "error": str(e),
                    "tags": tags,
                },
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.histogram(
                "span.duration",
                duration_ms,
                tags={"span_name": span_name, **tags},
            )

            self.logger.debug(
                f"Span completed: {span_name}",
                extra={
                    "span_name": span_name,
                    "trace_id": trace_id,
                    "duration_ms": round(duration_ms, 2),
                    "tags": tags,
                },
            )

    def get_trace_id(self) -> str | None:
        """Get current trace ID from context."""
        return _trace_id_ctx.get()

    def set_trace_id(self, trace_id: str) -> None:
        """Set trace ID in context."""
        _trace_id_ctx.set(trace_id)

    def generate_trace_id(self) -> str:
        """Generate a new trace ID and set it in context."""
        trace_id = str(uuid4())
        self.set_trace_id(trace_id)
        return trace_id

    def get_request_id(self) -> str | None:
        """Get current request ID from context."""
        return _request_id_ctx.get()

    def set_request_id(self, request_id: str) -> None:
        """Set request ID in context."""
        _request_id_ctx.set(request_id)

    def get_metrics(self) -> dict[str, Any]:
        """
        Snapshot of collected metrics.

        Returns:
            Counters and gauges as-is, histograms summarized (count/min/max/avg)
        """
        histograms = {key: summary.to_dict() for key, summary in self._histograms.items() if summary.count}
        return {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "histograms": histograms,
        }

    def clear_metrics(self) -> None:
        """Clear all collected metrics (testing/reset)."""
        self._counters.clear()
        self._gauges.clear()
        self._histograms.clear()


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    _RESERVED = frozenset(
        (
            "args",
            "msg",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "name",
            "message",
        )
    )

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        trace_id = _trace_id_ctx.get()
        if trace_id:
            log_data["trace_id"] = trace_id

        request_id = _request_id_ctx.get()
        if request_id:
            log_data["request_id"] = request_id

        # Add any extra fields from record.__dict__
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in self._RESERVED:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


# Global observability adapter instance (singleton)
_observability_adapter: ObservabilityAdapter | None = None


def get_observability() -> ObservabilityAdapter:
    """
    Get the global observability adapter instance.

    This is the canonical way to access observability.

    Returns:
        Global ObservabilityAdapter instance
    """
    global _observability_adapter

    if _observability_adapter is None:
        from ..config import get_config

        config = get_config()
        _observability_adapter = ObservabilityAdapter(
            enable_metrics=config.observability.enable_metrics,
            enable_tracing=config.observability.enable_tracing,
            log_format=str(getattr(config.observability.log_format, "value", config.observability.log_format)),
            log_level=str(config.log_level),
        )

    return _observability_adapter


def initialize_observability(
    enable_metrics: bool = True,
    enable_tracing: bool = False,
    log_format: str = "text",
    log_level: str = "INFO",
) -> ObservabilityAdapter:
    """
    Initialize the global observability adapter.

    Args:
        enable_metrics: Enable metrics collection
        enable_tracing: Enable span tracing
        log_format: "json" or "text"
        log_level: Package log level

    Returns:
        Initialized ObservabilityAdapter instance
    """
    global _observability_adapter

    _observability_adapter = ObservabilityAdapter(
        enable_metrics=enable_metrics,
        enable_tracing=enable_tracing,
        log_format=log_format,
        log_level=log_level,
    )

    return _observability_adapter


def reset_observability() -> None:
    """Drop the global adapter (tests only)."""
    global _observability_adapter
    _observability_adapter = None
