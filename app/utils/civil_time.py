from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
import os

# Civil days are cut at a fixed UTC offset so "today" is the same logical day
# on every device, whatever timezone the viewer is in.
CIVIL_DAY_UTC_OFFSET_HOURS = float(os.environ.get("CIVIL_DAY_UTC_OFFSET_HOURS", "8"))


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _offset(offset_hours: Optional[float]) -> timedelta:
    if offset_hours is None:
        offset_hours = CIVIL_DAY_UTC_OFFSET_HOURS
    return timedelta(hours=offset_hours)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a timestamp to naive UTC (naive input is assumed to be UTC already)"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_civil_date(value: datetime, offset_hours: Optional[float] = None) -> date:
    """Calendar date a timestamp falls on at the civil-day offset"""
    return (as_naive_utc(value) + _offset(offset_hours)).date()


def civil_today(now: Optional[datetime] = None, offset_hours: Optional[float] = None) -> date:
    return to_civil_date(now or utcnow(), offset_hours)


def civil_day_bounds(
    start_date: date,
    end_date: date,
    offset_hours: Optional[float] = None
) -> Tuple[datetime, datetime]:
    """
    Naive UTC half-open interval [start, end) covering the civil dates.

    Args:
        start_date: First civil date (inclusive)
        end_date: Last civil date (inclusive)
        offset_hours: Civil-day offset, defaults to CIVIL_DAY_UTC_OFFSET_HOURS

    Returns:
        Tuple of (start_utc, end_utc)
    """
    shift = _offset(offset_hours)
    start_utc = datetime.combine(start_date, time.min) - shift
    end_utc = datetime.combine(end_date + timedelta(days=1), time.min) - shift
    return start_utc, end_utc


def date_range(start_date: date, end_date: date):
    """Yield every date in the inclusive range"""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)
