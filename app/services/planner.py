"""
Read-side helpers for the day planner and quick tasks.

Public API
----------
planner_events_for_date(events, day)          -> list[PlannerEvent]  (by start time)
planner_event_status(event, now)              -> PlannerStatus
task_total_minutes(task)                      -> int
active_quick_tasks(tasks, available_minutes)  -> list[QuickTask]     (oldest first)
completed_quick_tasks(tasks)                  -> list[QuickTask]     (most recent first)
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional, Sequence

from app.schemas.tracker import PlannerEvent, QuickTask
from app.services.dates import DateLike, format_date, time_to_minutes, to_date


class PlannerStatus(str, enum.Enum):
    upcoming = "upcoming"
    current = "current"
    past = "past"


# ---------------------------------------------------------------------------
# Planner timeline
# ---------------------------------------------------------------------------

def planner_events_for_date(events: Sequence[PlannerEvent], day: DateLike) -> list[PlannerEvent]:
    key = format_date(day)
    return sorted((e for e in events if e.date == key), key=lambda e: e.start_time)


def planner_event_status(event: PlannerEvent, now: datetime) -> PlannerStatus:
    """
    Where a block sits relative to `now` (local wall-clock time).

    The end time is exclusive: a 09:00-10:00 block is past at 10:00.
    """
    day, today = to_date(event.date), now.date()
    if day < today:
        return PlannerStatus.past
    if day > today:
        return PlannerStatus.upcoming
    minutes = now.hour * 60 + now.minute
    if minutes >= time_to_minutes(event.end_time):
        return PlannerStatus.past
    if minutes >= time_to_minutes(event.start_time):
        return PlannerStatus.current
    return PlannerStatus.upcoming


# ---------------------------------------------------------------------------
# Quick tasks
# ---------------------------------------------------------------------------

def task_total_minutes(task: QuickTask) -> int:
    return sum(entry.minutes for entry in task.logs)


def _fits(task: QuickTask, available_minutes: Optional[int]) -> bool:
    if available_minutes is None or task.flexible or task.estimate_minutes is None:
        return True
    return task.estimate_minutes <= available_minutes


def active_quick_tasks(
    tasks: Sequence[QuickTask],
    available_minutes: Optional[int] = None,
) -> list[QuickTask]:
    """
    Open tasks that fit in `available_minutes`. Flexible tasks and tasks
    without an estimate always fit; no limit lists every open task.
    """
    fitting = [t for t in tasks if not t.completed and _fits(t, available_minutes)]
    return sorted(fitting, key=lambda t: t.created_at)


def _last_touched(task: QuickTask) -> str:
    return task.logs[-1].timestamp if task.logs else task.created_at


def completed_quick_tasks(tasks: Sequence[QuickTask]) -> list[QuickTask]:
    return sorted((t for t in tasks if t.completed), key=_last_touched, reverse=True)
