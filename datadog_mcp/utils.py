"""
Datadog MCP — Time Helpers

Parses the time expressions accepted by tools ("now", unix seconds,
ISO-8601, "2 hours ago", "yesterday") and formats timestamps for output.
"""

import re
from datetime import UTC, datetime, timedelta

from .errors import MalformedRequestError

_RELATIVE = re.compile(
    r"^(?P<amount>\d+)\s*(?P<unit>s|sec|secs|second|seconds|m|min|mins|minute|minutes|h|hr|hrs|hour|hours|"
    r"d|day|days|w|week|weeks)\s+ago$"
)

_UNIT_SECONDS = {
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}


def parse_time(expression: str, now: datetime | None = None) -> int:
    """
    Convert a time expression to unix seconds.

    Args:
        expression: "now", unix seconds, ISO-8601, "<n> <unit> ago", "yesterday" or "today"
        now: Reference time (defaults to the current UTC time)

    Returns:
        Unix timestamp in seconds

    Raises:
        MalformedRequestError: If the expression cannot be parsed
    """
    reference = now or datetime.now(UTC)
    text = expression.strip().lower()

    if text == "now":
        return int(reference.timestamp())

    if re.fullmatch(r"-?\d+", text):
        return int(text)

    if text == "today":
        midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
        return int(midnight.timestamp())

    if text == "yesterday":
        midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
        return int((midnight - timedelta(days=1)).timestamp())

    match = _RELATIVE.match(text)
    if match:
        seconds = int(match.group("amount")) * _UNIT_SECONDS[match.group("unit")]
        return int((reference - timedelta(seconds=seconds)).timestamp())

    try:
        parsed = datetime.fromisoformat(expression.strip())
    except ValueError:
        raise MalformedRequestError(
            f"Unable to parse time expression: '{expression}'",
            details={"expression": expression},
        ) from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def format_timestamp(timestamp: int) -> str:
    """Format unix seconds as "YYYY-MM-DD HH:MM:SS UTC"."""
    try:
        return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    except (OverflowError, OSError, ValueError):
        return f"Invalid timestamp: {timestamp}"


def timestamp_to_iso8601(timestamp: int) -> str:
    """Format unix seconds as an RFC 3339 string, as expected by the v2 search APIs."""
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
