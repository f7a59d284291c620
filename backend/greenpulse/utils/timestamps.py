"""Timestamp utilities for canonical ISO 8601 formatting and parsing."""

from datetime import UTC, datetime, timedelta


def format_ts(dt: datetime) -> str:
    """Format an aware datetime as canonical ISO 8601: YYYY-MM-DDTHH:MM:SS.mmmZ"""
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def utc_now() -> str:
    """Return current UTC time as canonical ISO 8601 string."""
    return format_ts(datetime.now(UTC))


def parse_timestamp(value: str) -> str:
    """Parse a device-supplied ISO 8601 timestamp into canonical form.

    Naive timestamps are taken to be UTC. Raises ValueError if the string
    is not ISO 8601.
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    dt = datetime.fromisoformat(value.strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return format_ts(dt)


def cutoff_before(delta: timedelta, *, now: datetime | None = None) -> str:
    """Return the canonical timestamp ``delta`` before ``now`` (default: current time)."""
    return format_ts((now or datetime.now(UTC)) - delta)
