"""
Recurrence engine: does a calendar event occur on a given date?

Rule types
----------
  daily / custom   every `interval` days from the anchor
  weekly           listed weekdays, every `interval` weeks (weeks start Sunday)
  monthly          fixed day of month, or a pattern such as "2nd Tuesday"
                   / "last Friday", every `interval` months
  yearly           anchor's month and day, every `interval` years

End conditions: none, `endDate` (inclusive) or `occurrences` (total count),
never both.

The stored recurrence is an untyped mapping. `parse_recurrence` turns it
into one of the frozen rule dataclasses below; anything it cannot make
sense of yields None, and the event then never occurs. Nothing in here
raises for bad data except `validate_recurrence`, which the API uses to
reject input up front.

Public API
----------
parse_recurrence(raw)                 -> RecurrenceRule | None
validate_recurrence(raw)              -> dict   (raises InvalidRecurrenceError)
rule_occurs_on(rule, anchor, day)     -> bool
occurs_on(event, day)                 -> bool
occurrences_between(event, start, end)-> list[date]
events_for_date(events, day)          -> list[EventOccurrence]
event_end_time(event)                 -> str | None
"""
from __future__ import annotations

import calendar
import enum
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional, Union

from app.core.errors import InvalidRecurrenceError
from app.schemas.tracker import Event
from app.services.dates import (
    DateLike,
    add_months,
    date_range,
    days_in_month,
    minutes_to_time,
    months_between,
    time_to_minutes,
    to_date,
    week_start,
    weekday_number,
    weeks_between,
)


class RecurrenceType(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"
    custom = "custom"


LAST_WEEK = -1
_PATTERN_WEEKS = {1, 2, 3, 4, 5, LAST_WEEK}


# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ending:
    until: Optional[date] = None
    count: Optional[int] = None


@dataclass(frozen=True)
class DailyRule:
    interval: int
    ending: Ending = Ending()


@dataclass(frozen=True)
class CustomRule:
    """Every N days; kept distinct from daily for round-tripping the UI choice."""
    interval: int
    ending: Ending = Ending()


@dataclass(frozen=True)
class WeeklyRule:
    interval: int
    days_of_week: frozenset[int]
    ending: Ending = Ending()


@dataclass(frozen=True)
class MonthlyDayRule:
    interval: int
    day_of_month: int
    ending: Ending = Ending()


@dataclass(frozen=True)
class MonthlyPatternRule:
    interval: int
    week: int           # 1..5, or -1 for "last"
    day_of_week: int    # 0 = Sunday
    ending: Ending = Ending()


@dataclass(frozen=True)
class YearlyRule:
    interval: int
    ending: Ending = Ending()


RecurrenceRule = Union[
    DailyRule, CustomRule, WeeklyRule, MonthlyDayRule, MonthlyPatternRule, YearlyRule
]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class _Malformed(ValueError):
    pass


def _as_int(value: Any, name: str, low: int, high: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise _Malformed(f"{name} must be an integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise _Malformed(f"{name} must be an integer")
    if value < low or (high is not None and value > high):
        bounds = f">= {low}" if high is None else f"between {low} and {high}"
        raise _Malformed(f"{name} must be {bounds}")
    return value


def _parse_ending(raw: Mapping[str, Any]) -> Ending:
    end_raw = raw.get("endDate")
    count_raw = raw.get("occurrences")
    has_end = end_raw not in (None, "")
    has_count = count_raw is not None
    if has_end and has_count:
        raise _Malformed("endDate and occurrences are mutually exclusive")
    if has_end:
        try:
            return Ending(until=to_date(end_raw))
        except (TypeError, ValueError, AttributeError):
            raise _Malformed("endDate must be a YYYY-MM-DD date")
    if has_count:
        return Ending(count=_as_int(count_raw, "occurrences", 1))
    return Ending()


def _parse(raw: Any) -> RecurrenceRule:
    if not isinstance(raw, Mapping):
        raise _Malformed("recurrence must be an object")
    try:
        kind = RecurrenceType(raw.get("type"))
    except ValueError:
        raise _Malformed(f"unknown recurrence type {raw.get('type')!r}")

    interval = _as_int(raw.get("interval"), "interval", 1)
    ending = _parse_ending(raw)

    if kind is RecurrenceType.daily:
        return DailyRule(interval, ending)
    if kind is RecurrenceType.custom:
        return CustomRule(interval, ending)
    if kind is RecurrenceType.yearly:
        return YearlyRule(interval, ending)
    if kind is RecurrenceType.weekly:
        days = raw.get("daysOfWeek")
        if not isinstance(days, (list, tuple)) or not days:
            raise _Malformed("weekly recurrence needs at least one day in daysOfWeek")
        return WeeklyRule(
            interval,
            frozenset(_as_int(d, "daysOfWeek", 0, 6) for d in days),
            ending,
        )
    if kind is RecurrenceType.monthly:
        if raw.get("dayOfMonth") is not None:
            return MonthlyDayRule(interval, _as_int(raw["dayOfMonth"], "dayOfMonth", 1, 31), ending)
        pattern = raw.get("monthlyPattern")
        if isinstance(pattern, Mapping):
            week = _as_int(pattern.get("week"), "monthlyPattern.week", LAST_WEEK, 5)
            if week not in _PATTERN_WEEKS:
                raise _Malformed("monthlyPattern.week must be 1-5 or -1")
            dow = _as_int(pattern.get("dayOfWeek"), "monthlyPattern.dayOfWeek", 0, 6)
            return MonthlyPatternRule(interval, week, dow, ending)
        raise _Malformed("monthly recurrence needs dayOfMonth or monthlyPattern")
    raise _Malformed(f"unsupported recurrence type {kind.value!r}")


def parse_recurrence(raw: Any) -> Optional[RecurrenceRule]:
    """Typed rule for a stored recurrence, or None when it is malformed."""
    try:
        return _parse(raw)
    except _Malformed:
        return None


def validate_recurrence(raw: Any) -> dict[str, Any]:
    """Input-time check used by the API; returns the mapping unchanged."""
    try:
        _parse(raw)
    except _Malformed as exc:
        raise InvalidRecurrenceError(str(exc))
    return dict(raw)


# ---------------------------------------------------------------------------
# Per-type evaluation
# ---------------------------------------------------------------------------

def _monthly_target(rule: Union[MonthlyDayRule, MonthlyPatternRule], year: int, month: int) -> Optional[int]:
    """Day of month the rule lands on in (year, month), or None if it does not exist."""
    last = days_in_month(year, month)
    if isinstance(rule, MonthlyDayRule):
        return rule.day_of_month if rule.day_of_month <= last else None
    if rule.week == LAST_WEEK:
        back = (weekday_number(date(year, month, last)) - rule.day_of_week) % 7
        return last - back
    first_wd = weekday_number(date(year, month, 1))
    target = 1 + (rule.day_of_week - first_wd) % 7 + (rule.week - 1) * 7
    return target if target <= last else None


def _daily_occurs(rule: Union[DailyRule, CustomRule], anchor: date, day: date) -> bool:
    elapsed = (day - anchor).days
    if elapsed % rule.interval:
        return False
    if rule.ending.count is None:
        return True
    return elapsed // rule.interval < rule.ending.count


def _weekly_ordinal(rule: WeeklyRule, anchor: date, day: date, stop_after: int) -> int:
    """1-based position of `day` among the real occurrences since the anchor."""
    step = timedelta(weeks=rule.interval)
    week = week_start(anchor)
    last = week_start(day)
    weekdays = sorted(rule.days_of_week)
    count = 0
    while week <= last and count <= stop_after:
        for wd in weekdays:
            candidate = week + timedelta(days=wd)
            if anchor <= candidate <= day:
                count += 1
        if last - week < step:
            break
        week += step
    return count


def _weekly_occurs(rule: WeeklyRule, anchor: date, day: date) -> bool:
    if weekday_number(day) not in rule.days_of_week:
        return False
    if weeks_between(anchor, day) % rule.interval:
        return False
    if rule.ending.count is None:
        return True
    return _weekly_ordinal(rule, anchor, day, rule.ending.count) <= rule.ending.count


def _monthly_occurs(rule: Union[MonthlyDayRule, MonthlyPatternRule], anchor: date, day: date) -> bool:
    months = months_between(anchor, day)
    if months % rule.interval:
        return False
    if _monthly_target(rule, day.year, day.month) != day.day:
        return False
    if rule.ending.count is None:
        return True
    count = 0
    for k in range(months // rule.interval + 1):
        year, month = add_months(anchor.year, anchor.month, k * rule.interval)
        target = _monthly_target(rule, year, month)
        if target is not None and date(year, month, target) >= anchor:
            count += 1
            if count > rule.ending.count:
                return False
    return True


def _yearly_occurs(rule: YearlyRule, anchor: date, day: date) -> bool:
    years = day.year - anchor.year
    if years % rule.interval:
        return False
    if (day.month, day.day) != (anchor.month, anchor.day):
        return False
    if rule.ending.count is None:
        return True
    leap_day = (anchor.month, anchor.day) == (2, 29)
    count = 0
    for k in range(years // rule.interval + 1):
        if leap_day and not calendar.isleap(anchor.year + k * rule.interval):
            continue
        count += 1
        if count > rule.ending.count:
            return False
    return True


def rule_occurs_on(rule: RecurrenceRule, anchor: date, day: date) -> bool:
    if day < anchor:
        return False
    if rule.ending.until is not None and day > rule.ending.until:
        return False
    if isinstance(rule, (DailyRule, CustomRule)):
        return _daily_occurs(rule, anchor, day)
    if isinstance(rule, WeeklyRule):
        return _weekly_occurs(rule, anchor, day)
    if isinstance(rule, (MonthlyDayRule, MonthlyPatternRule)):
        return _monthly_occurs(rule, anchor, day)
    if isinstance(rule, YearlyRule):
        return _yearly_occurs(rule, anchor, day)
    raise TypeError(f"unhandled recurrence rule {rule!r}")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

def occurs_on(event: Event, day: DateLike) -> bool:
    """
    True when `event` is active on `day`.

    One-time events occur on their anchor date only. Recurring events with
    a malformed recurrence, or an unreadable anchor, never occur.
    """
    try:
        anchor = to_date(event.date)
        candidate = to_date(day)
    except (TypeError, ValueError, AttributeError):
        return False
    if event.recurrence is None:
        return candidate == anchor
    rule = parse_recurrence(event.recurrence)
    if rule is None:
        return False
    return rule_occurs_on(rule, anchor, candidate)


def occurrences_between(event: Event, start: DateLike, end: DateLike) -> list[date]:
    return [d for d in date_range(start, end) if occurs_on(event, d)]


def event_end_time(event: Event) -> Optional[str]:
    if event.duration < 0:
        return None
    try:
        return minutes_to_time(time_to_minutes(event.start_time) + event.duration)
    except ValueError:
        return None


@dataclass
class EventOccurrence:
    event: Event
    day: date
    is_recurring: bool
    end_time: Optional[str]


def _exception_dates(events: Iterable[Event]) -> set[tuple[str, date]]:
    """(series id, date) pairs replaced by a detached single-occurrence exception."""
    carved: set[tuple[str, date]] = set()
    for e in events:
        if not e.parent_event_id:
            continue
        try:
            carved.add((e.parent_event_id, to_date(e.occurrence_date or e.date)))
        except (TypeError, ValueError):
            continue
    return carved


def events_for_date(events: list[Event], day: DateLike) -> list[EventOccurrence]:
    """Every event active on `day`, ordered by start time."""
    target = to_date(day)
    carved = _exception_dates(events)
    found: list[EventOccurrence] = []
    for e in events:
        recurring = e.recurrence is not None
        if recurring and (e.id, target) in carved:
            continue
        if occurs_on(e, target):
            found.append(EventOccurrence(
                event=e,
                day=target,
                is_recurring=recurring,
                end_time=event_end_time(e),
            ))
    found.sort(key=lambda o: o.event.start_time)
    return found
