"""
Domain time utilities (pure).

Centralized timestamp validation and elapsed-time helpers.

Every rule in the scoring engine measures elapsed time as fractional 24-hour days
between a recorded instant and an explicit evaluation instant (`as_of`). The
wall clock is never read here.
"""

from __future__ import annotations

from datetime import datetime, timedelta

_DAY = timedelta(days=1)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def days_since(earlier: datetime, as_of: datetime) -> float:
    """
    Fractional days elapsed from `earlier` to `as_of`.

    Negative when `earlier` lies after `as_of`; callers compare against
    thresholds, so a future timestamp simply reads as "very recent".
    """

    require_utc_timestamp("earlier", earlier)
    require_utc_timestamp("as_of", as_of)
    return (as_of - earlier) / _DAY
