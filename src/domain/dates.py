"""
Date-range normalization.

Reporting filters arrive as calendar dates in the caller's timezone.  These
helpers turn them into absolute UTC instants covering the full local day:
``start 00:00:00.000000`` through ``end 23:59:59.999999``.  Every function
is pure; "now" is always passed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {name!r}") from None


@dataclass(frozen=True)
class DateRange:
    """Inclusive instant range; either bound may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, instant: datetime) -> bool:
        instant = as_utc(instant)
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None and instant > self.end:
            return False
        return True


def local_day_start(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def local_day_end(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(timezone.utc)


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    return as_utc(instant).astimezone(tz).date()


def normalize_range(
    start_date: Optional[date], end_date: Optional[date], tz: ZoneInfo
) -> DateRange:
    return DateRange(
        start=local_day_start(start_date, tz) if start_date else None,
        end=local_day_end(end_date, tz) if end_date else None,
    )


# ── Calendar windows relative to "now" ───────────────────────────────


def today_window(now: datetime, tz: ZoneInfo) -> DateRange:
    today = local_date(now, tz)
    return normalize_range(today, today, tz)


def week_window(now: datetime, tz: ZoneInfo) -> DateRange:
    """Local week starting Sunday 00:00."""
    today = local_date(now, tz)
    # date.weekday(): Monday == 0 ... Sunday == 6
    sunday = today - timedelta(days=(today.weekday() + 1) % 7)
    return normalize_range(sunday, sunday + timedelta(days=6), tz)


def month_window(now: datetime, tz: ZoneInfo) -> DateRange:
    today = local_date(now, tz)
    first = today.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return normalize_range(first, next_first - timedelta(days=1), tz)
