# File: dosing_twin/core/periods.py
"""
Calendar helpers. Days are `datetime.date` values built from a timestamp's own
year/month/day fields; stepping always returns a new value.
"""
import datetime
from typing import Iterator, Tuple

ONE_DAY = datetime.timedelta(days=1)
SECONDS_PER_DAY = 86400.0


def day_key(ts: datetime.datetime) -> datetime.date:
    return datetime.date(ts.year, ts.month, ts.day)


def days_between(start: datetime.date, end: datetime.date) -> Iterator[datetime.date]:
    """Calendar days in [start, end)."""
    day = start
    while day < end:
        yield day
        day = day + ONE_DAY


def month_range(year: int, month: int) -> Tuple[datetime.datetime, datetime.datetime]:
    """[first midnight of the month, first midnight of the next month)."""
    start = datetime.datetime(year, month, 1)
    end = datetime.datetime(year + 1, 1, 1) if month == 12 else datetime.datetime(year, month + 1, 1)
    return start, end


def week_start(day: datetime.date) -> datetime.date:
    """Monday of the week containing `day`."""
    return day - datetime.timedelta(days=day.weekday())
