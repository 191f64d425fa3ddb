"""Resolution of symbolic lookback windows into absolute start instants."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    """Lookback windows accepted by the timeseries endpoint."""

    last_24_hours = "24h"
    last_7_days = "7d"
    last_30_days = "30d"
    last_year = "1y"


DEFAULT_TIME_RANGE = TimeRange.last_24_hours

_DURATIONS: dict[TimeRange, timedelta] = {
    TimeRange.last_24_hours: timedelta(hours=24),
    TimeRange.last_7_days: timedelta(days=7),
    TimeRange.last_30_days: timedelta(days=30),
    TimeRange.last_year: timedelta(days=365),
}


def parse_time_range(token: Optional[str]) -> TimeRange:
    """Map a raw token onto a :class:`TimeRange`.

    Unknown, empty, or missing tokens resolve to the 24 hour window instead of
    raising, so a stale or hand-edited query string still returns data.
    """
    if isinstance(token, TimeRange):
        return token
    try:
        return TimeRange((token or "").strip())
    except ValueError:
        logger.warning(
            "Unrecognized time range, defaulting to %s",
            DEFAULT_TIME_RANGE.value,
            extra={"time_range": token, "reason": "unknown token"},
        )
        return DEFAULT_TIME_RANGE


def range_duration(token: Optional[str]) -> timedelta:
    return _DURATIONS[parse_time_range(token)]


def resolve_start(token: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Return ``now`` minus the window named by ``token``, in UTC."""
    anchor = now if now is not None else datetime.now(timezone.utc)
    if anchor.tzinfo is None:
        anchor = anchor.replace(tzinfo=timezone.utc)
    return anchor.astimezone(timezone.utc) - range_duration(token)
