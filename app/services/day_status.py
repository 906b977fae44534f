"""
Day status classifier and the statistics derived from it.

A day is `complete` when every active (non-archived) habit is done,
`partial` when some are, `none` when none are. Dates after today and days
with no active habits are `undated`: no claim is made about them.

Status is always re-derived from the day records plus current archival
state; it is never stored.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from app.schemas.tracker import DayRecord, Habit
from app.services.dates import DateLike, format_date, to_date

_EMPTY = DayRecord()


class DayStatus(str, enum.Enum):
    complete = "complete"
    partial = "partial"
    none = "none"
    undated = "undated"


def active_habits(habits: Sequence[Habit]) -> list[Habit]:
    return [h for h in habits if not h.archived]


def day_status(
    day: DateLike,
    habits: Sequence[Habit],
    day_record: Optional[DayRecord],
    today: DateLike,
) -> DayStatus:
    if to_date(day) > to_date(today):
        return DayStatus.undated
    active = active_habits(habits)
    if not active:
        return DayStatus.undated
    record = day_record or _EMPTY
    done = sum(1 for h in active if record.habits.get(h.id) is True)
    if done == 0:
        return DayStatus.none
    if done == len(active):
        return DayStatus.complete
    return DayStatus.partial


def status_for(day: DateLike, habits: Sequence[Habit], days: Mapping[str, DayRecord], today: DateLike) -> DayStatus:
    """`day_status` looking the record up in the aggregate's day map."""
    return day_status(day, habits, days.get(format_date(day)), today)


# ---------------------------------------------------------------------------
# Range statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RangeSummary:
    complete: int
    partial: int
    none: int
    undated: int


@dataclass(frozen=True)
class HabitRate:
    habit_id: str
    name: str
    recorded_days: int
    completed_days: int
    rate: int   # whole percent


def summarize_range(
    dates: Sequence[date],
    habits: Sequence[Habit],
    days: Mapping[str, DayRecord],
    today: DateLike,
) -> RangeSummary:
    counts = {s: 0 for s in DayStatus}
    for d in dates:
        counts[status_for(d, habits, days, today)] += 1
    return RangeSummary(
        complete=counts[DayStatus.complete],
        partial=counts[DayStatus.partial],
        none=counts[DayStatus.none],
        undated=counts[DayStatus.undated],
    )


def completion_series(
    dates: Sequence[date],
    habits: Sequence[Habit],
    days: Mapping[str, DayRecord],
) -> list[float]:
    """Percentage of active habits done on each date (0 when there are none)."""
    active = active_habits(habits)
    series: list[float] = []
    for d in dates:
        if not active:
            series.append(0.0)
            continue
        record = days.get(format_date(d), _EMPTY)
        done = sum(1 for h in active if record.habits.get(h.id) is True)
        series.append(done / len(active) * 100)
    return series


def habit_completion_rates(
    dates: Sequence[date],
    habits: Sequence[Habit],
    days: Mapping[str, DayRecord],
) -> list[HabitRate]:
    """
    Per active habit: how many of the dates carry a record for it, and how
    many of those are done. Dates without any entry for the habit are left
    out of the denominator.
    """
    rates: list[HabitRate] = []
    for h in active_habits(habits):
        recorded = completed = 0
        for d in dates:
            record = days.get(format_date(d))
            if record is None or h.id not in record.habits:
                continue
            recorded += 1
            if record.habits[h.id] is True:
                completed += 1
        rate = round(completed / recorded * 100) if recorded else 0
        rates.append(HabitRate(h.id, h.name, recorded, completed, rate))
    return rates
