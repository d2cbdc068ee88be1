import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Iterator, Optional, Set, Tuple


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware (UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:  # naive → assume UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5  # Saturday=5, Sunday=6


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date in the inclusive range"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekdays_between(start: date, end: date, holidays: Optional[Iterable[date]] = None) -> Iterator[date]:
    """Yield Monday-Friday dates in the inclusive range, skipping holidays"""
    excluded: Set[date] = set(holidays or [])
    for day in iter_dates(start, end):
        if not is_weekend(day) and day not in excluded:
            yield day


def count_weekdays(start: date, end: date, holidays: Optional[Iterable[date]] = None) -> int:
    return sum(1 for _ in weekdays_between(start, end, holidays))


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def fiscal_year_for(day: date, start_month: int) -> int:
    """Fiscal year label: the calendar year in which the fiscal year started"""
    return day.year if day.month >= start_month else day.year - 1
