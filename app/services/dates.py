"""
Calendar arithmetic shared by every calculator.

Internally everything is a `datetime.date` (an ordinal day count, no time
of day, no timezone). Strings in YYYY-MM-DD form and timestamps only exist
at the storage boundary and are normalised here via `to_date`.

Weekday numbers follow the stored data: 0 = Sunday ... 6 = Saturday.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str]

DATE_FORMAT = "%Y-%m-%d"


def today() -> date:
    """Local calendar date (midnight-local normalisation)."""
    return date.today()


def to_date(value: DateLike) -> date:
    """
    Normalise a date, datetime or ISO string (date or timestamp) to a date.

    Timestamps are truncated to local midnight: 2024-01-02T02:00:00.000Z is
    January 1st for a client in New York.
    """
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo is not None else value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) > 10:
        return to_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    return date.fromisoformat(text)


def format_date(value: DateLike) -> str:
    # zero-pads years below 1000
    return to_date(value).isoformat()


def parse_date(text: str) -> date:
    return datetime.strptime(text, DATE_FORMAT).date()


def add_days(value: DateLike, days: int) -> date:
    return to_date(value) + timedelta(days=days)


def add_days_clamped(value: DateLike, days: int) -> date:
    """Like add_days, but stops at date.min / date.max instead of overflowing."""
    d = to_date(value)
    try:
        return d + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min


def previous_day(value: DateLike) -> Optional[date]:
    """The day before, or None for date.min."""
    d = to_date(value)
    return None if d == date.min else d - timedelta(days=1)


def days_between(start: DateLike, end: DateLike) -> int:
    """Signed whole days from start to end."""
    return (to_date(end) - to_date(start)).days


def compare_dates(a: DateLike, b: DateLike) -> int:
    d1, d2 = to_date(a), to_date(b)
    if d1 < d2:
        return -1
    if d1 > d2:
        return 1
    return 0


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return compare_dates(a, b) == 0


def is_future(value: DateLike, reference: date | None = None) -> bool:
    return to_date(value) > (reference or today())


def is_past(value: DateLike, reference: date | None = None) -> bool:
    return to_date(value) < (reference or today())


def weekday_number(value: DateLike) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (to_date(value).weekday() + 1) % 7


def week_start(value: DateLike, start_day: int = 0) -> date:
    d = to_date(value)
    diff = (weekday_number(d) - start_day) % 7
    return d - timedelta(days=diff)


def week_end(value: DateLike, start_day: int = 0) -> date:
    return week_start(value, start_day) + timedelta(days=6)


def weeks_between(start: DateLike, end: DateLike, start_day: int = 0) -> int:
    """Whole calendar weeks between the weeks containing start and end."""
    return (week_start(end, start_day) - week_start(start, start_day)).days // 7


def months_between(start: DateLike, end: DateLike) -> int:
    s, e = to_date(start), to_date(end)
    return (e.year - s.year) * 12 + (e.month - s.month)


def add_months(year: int, month: int, months: int) -> tuple[int, int]:
    """Shift a (year, month) pair; month is 1-12."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_start(value: DateLike) -> date:
    return to_date(value).replace(day=1)


def month_end(value: DateLike) -> date:
    d = to_date(value)
    return d.replace(day=days_in_month(d.year, d.month))


def date_range(start: DateLike, end: DateLike) -> list[date]:
    """Every date from start to end inclusive (empty when end < start)."""
    s, e = to_date(start), to_date(end)
    return [s + timedelta(days=i) for i in range((e - s).days + 1)]


def month_days(year: int, month: int) -> list[date]:
    return date_range(date(year, month, 1), date(year, month, days_in_month(year, month)))


def trailing_days(count: int, reference: DateLike | None = None) -> list[date]:
    """
    The `count` days ending on reference (default today), oldest first.
    Fewer when the window would start before date.min.
    """
    end = to_date(reference) if reference is not None else today()
    return date_range(add_days_clamped(end, -(count - 1)), end)


def minutes_to_time(minutes: int) -> str:
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_minutes(text: str) -> int:
    hours, minutes = text.split(":")
    return int(hours) * 60 + int(minutes)
