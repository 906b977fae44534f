"""
Streak calculator.

A habit counts as done on a day only when that day's record holds `True`
for the habit id. Missing records, missing ids and any other value read as
"not done" — unknown habit ids simply never have streaks.

Public API
----------
is_completed(habit_id, days, day)                 -> bool
current_streak(habit_id, days, today)             -> int
longest_streak(habit_id, days, created_at, today) -> StreakPeriod
all_streaks(habit_id, days, created_at, today)    -> list[StreakPeriod]
check_milestone(previous, current)                -> int | None
get_next_milestone(current)                       -> int | None
streak_status(habit, days, today)                 -> StreakStatus
all_streak_statuses(habits, days, today)          -> dict[str, StreakStatus]
top_streaks(habits, statuses)                     -> list[tuple[Habit, StreakStatus]]
is_streak_at_risk(habit_id, days, today)          -> bool
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional, Sequence

from app.schemas.tracker import DayRecord, Habit
from app.services.dates import DateLike, date_range, format_date, previous_day, to_date

STREAK_MILESTONES: tuple[int, ...] = (7, 30, 100, 365)

Days = Mapping[str, DayRecord]


@dataclass(frozen=True)
class StreakPeriod:
    count: int
    start_date: Optional[str]
    end_date: Optional[str]


@dataclass(frozen=True)
class StreakStatus:
    current: int
    longest: int
    longest_period: StreakPeriod
    completed_today: bool
    completed_yesterday: bool
    is_active: bool
    next_milestone: Optional[int]


def is_completed(habit_id: str, days: Days, day: DateLike) -> bool:
    record = days.get(format_date(day))
    return record is not None and record.habits.get(habit_id) is True


def current_streak(habit_id: str, days: Days, today: DateLike) -> int:
    """Consecutive done days walking backwards from `today` (inclusive)."""
    streak = 0
    cursor: Optional[date] = to_date(today)
    while cursor is not None and is_completed(habit_id, days, cursor):
        streak += 1
        cursor = previous_day(cursor)
    return streak


def _runs(habit_id: str, days: Days, created_at: DateLike, today: DateLike) -> list[StreakPeriod]:
    """Every run of done days from creation through today, oldest first."""
    runs: list[StreakPeriod] = []
    run_start: Optional[date] = None
    run_length = 0
    last = to_date(today)
    for day in date_range(to_date(created_at), last):
        if is_completed(habit_id, days, day):
            if run_length == 0:
                run_start = day
            run_length += 1
            continue
        if run_length:
            runs.append(StreakPeriod(
                count=run_length,
                start_date=format_date(run_start),
                end_date=format_date(day - timedelta(days=1)),
            ))
        run_length = 0
        run_start = None
    if run_length:
        runs.append(StreakPeriod(run_length, format_date(run_start), format_date(last)))
    return runs


def all_streaks(habit_id: str, days: Days, created_at: DateLike, today: DateLike) -> list[StreakPeriod]:
    return _runs(habit_id, days, created_at, today)


def longest_streak(habit_id: str, days: Days, created_at: DateLike, today: DateLike) -> StreakPeriod:
    """Longest run since creation; the earliest run wins a tie."""
    best = StreakPeriod(0, None, None)
    for run in _runs(habit_id, days, created_at, today):
        if run.count > best.count:
            best = run
    return best


def check_milestone(
    previous: int,
    current: int,
    milestones: Sequence[int] = STREAK_MILESTONES,
) -> Optional[int]:
    """
    The lowest milestone crossed by going from `previous` to `current`.

    Only one milestone is reported even when a jump (e.g. a data import)
    crosses several.
    """
    for milestone in sorted(milestones):
        if current >= milestone and previous < milestone:
            return milestone
    return None


def get_next_milestone(current: int, milestones: Sequence[int] = STREAK_MILESTONES) -> Optional[int]:
    for milestone in sorted(milestones):
        if current < milestone:
            return milestone
    return None


def streak_status(
    habit: Habit,
    days: Days,
    today: DateLike,
    milestones: Sequence[int] = STREAK_MILESTONES,
) -> StreakStatus:
    now = to_date(today)
    yesterday = previous_day(now)
    current = current_streak(habit.id, days, now)
    longest = longest_streak(habit.id, days, habit.created_at, now)
    return StreakStatus(
        current=current,
        longest=longest.count,
        longest_period=longest,
        completed_today=is_completed(habit.id, days, now),
        completed_yesterday=yesterday is not None and is_completed(habit.id, days, yesterday),
        is_active=current > 0,
        next_milestone=get_next_milestone(current, milestones),
    )


def all_streak_statuses(
    habits: Sequence[Habit],
    days: Days,
    today: DateLike,
    milestones: Sequence[int] = STREAK_MILESTONES,
) -> dict[str, StreakStatus]:
    return {
        h.id: streak_status(h, days, today, milestones)
        for h in habits
        if not h.archived
    }


def top_streaks(
    habits: Sequence[Habit],
    statuses: Mapping[str, StreakStatus],
) -> list[tuple[Habit, StreakStatus]]:
    ranked = [
        (h, statuses[h.id])
        for h in habits
        if not h.archived and h.id in statuses and statuses[h.id].current > 0
    ]
    ranked.sort(key=lambda pair: pair[1].current, reverse=True)
    return ranked


def is_streak_at_risk(habit_id: str, days: Days, today: DateLike) -> bool:
    """Not done yet today while a streak ran through yesterday."""
    now = to_date(today)
    yesterday = previous_day(now)
    if yesterday is None or is_completed(habit_id, days, now):
        return False
    return current_streak(habit_id, days, yesterday) > 0
