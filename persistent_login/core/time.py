"""UTC clock and epoch conversion helpers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

#: Largest timestamp representable by a signed 32-bit column. Used as the
#: expiry of tokens when the configured lifetime is unlimited.
MAX_TIMESTAMP = 2147483647

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def to_epoch(dt: datetime) -> int:
    """Convert a datetime to integer epoch seconds.

    Naive values are labelled as UTC (no conversion).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp())


def from_epoch(ts: int) -> datetime:
    """Convert integer epoch seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(int(ts), tz=UTC)
