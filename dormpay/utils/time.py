"""Time Utilities for UTC management"""

from datetime import date, datetime, timezone
from typing import Iterator, Optional, Tuple


def get_utc_now() -> datetime:
    """
    Returns a naive UTC datetime.
    Payment dates, months and receipt numbers are all derived from it.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso_day(moment: datetime) -> str:
    """Calendar date as stored on payments (YYYY-MM-DD)."""
    return moment.date().isoformat()


def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """
    Parse the date part of an API date string.

    Accepts plain dates and full ISO timestamps ("2024-01-15T08:00:00Z").
    Returns None for anything unparseable.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def add_months(year: int, month: int, count: int = 1) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + count
    return index // 12, index % 12 + 1


def iter_months(start: date, end: date) -> Iterator[Tuple[int, int]]:
    """(year, month) pairs from start's month through end's month, inclusive."""
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        year, month = add_months(year, month)
