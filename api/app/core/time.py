"""Central time utilities for the application.

Timestamps are stored as naive UTC datetimes (TIMESTAMP WITHOUT TIME ZONE).
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as a naive datetime object."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def strictly_after(candidate: datetime, previous: Optional[datetime]) -> datetime:
    """
    Return ``candidate`` unless it does not move past ``previous``.

    Two events recorded within the same clock tick (or after a clock step
    backwards) would otherwise share a timestamp; the result is bumped to one
    microsecond after ``previous`` so ordered sequences stay strictly
    increasing.
    """
    if previous is not None and candidate <= previous:
        return previous + timedelta(microseconds=1)
    return candidate
