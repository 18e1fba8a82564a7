from __future__ import annotations

"""Wall-clock helpers.

Services take a `Clock` (a zero-arg callable returning an aware UTC datetime)
so tests can move time without patching globals.
"""

import calendar
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """Same wall-clock time `months` later, clamping the day to month end (Jan 31 → Feb 28/29)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


__all__ = ["Clock", "utcnow", "ensure_utc", "add_months"]
