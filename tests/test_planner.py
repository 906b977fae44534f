"""
Tests for the planner and quick-task read helpers (app/services/planner.py).
"""
from datetime import datetime

import pytest

from app.schemas.tracker import PlannerEvent, QuickTask, TaskLog, TaskLogType
from app.services.planner import (
    PlannerStatus,
    active_quick_tasks,
    completed_quick_tasks,
    planner_event_status,
    planner_events_for_date,
    task_total_minutes,
)


def _block(block_id: str, day: str = "2024-01-02", start: str = "09:00", end: str = "10:00") -> PlannerEvent:
    return PlannerEvent(id=block_id, date=day, start_time=start, end_time=end, title=block_id)


def _task(task_id: str, created: str, estimate=None, flexible=False, completed=False, logs=()) -> QuickTask:
    return QuickTask(
        id=task_id,
        name=task_id,
        estimate_minutes=estimate,
        flexible=flexible,
        completed=completed,
        logs=list(logs),
        created_at=created,
    )


def _log(minutes: int, timestamp: str, kind=TaskLogType.progress) -> TaskLog:
    return TaskLog(minutes=minutes, type=kind, timestamp=timestamp)


class TestPlannerTimeline:
    def test_for_date_sorted_by_start(self):
        blocks = [_block("late", start="14:00", end="15:00"), _block("other-day", day="2024-01-03"), _block("early")]
        assert [b.id for b in planner_events_for_date(blocks, "2024-01-02")] == ["early", "late"]

    @pytest.mark.parametrize("now,expected", [
        (datetime(2024, 1, 1, 23, 0), PlannerStatus.upcoming),
        (datetime(2024, 1, 2, 8, 59), PlannerStatus.upcoming),
        (datetime(2024, 1, 2, 9, 0), PlannerStatus.current),
        (datetime(2024, 1, 2, 9, 59), PlannerStatus.current),
        (datetime(2024, 1, 2, 10, 0), PlannerStatus.past),
        (datetime(2024, 1, 3, 0, 0), PlannerStatus.past),
    ])
    def test_status(self, now, expected):
        assert planner_event_status(_block("b"), now) is expected


class TestQuickTaskLists:
    TASKS = [
        _task("long", "2024-01-01T10:00:00.000Z", estimate=60),
        _task("short", "2024-01-01T09:00:00.000Z", estimate=10),
        _task("flexible", "2024-01-01T11:00:00.000Z", estimate=90, flexible=True),
        _task("open-ended", "2024-01-01T12:00:00.000Z"),
        _task("done", "2024-01-01T08:00:00.000Z", estimate=5, completed=True),
    ]

    def test_no_limit_lists_every_open_task_oldest_first(self):
        assert [t.id for t in active_quick_tasks(self.TASKS)] == ["short", "long", "flexible", "open-ended"]

    def test_limit_keeps_fitting_flexible_and_unestimated(self):
        assert [t.id for t in active_quick_tasks(self.TASKS, 15)] == ["short", "flexible", "open-ended"]

    def test_estimate_equal_to_limit_fits(self):
        assert "long" in [t.id for t in active_quick_tasks(self.TASKS, 60)]

    def test_completed_latest_first(self):
        tasks = [
            _task("a", "2024-01-01T08:00:00.000Z", completed=True,
                  logs=[_log(10, "2024-01-03T08:00:00.000Z", TaskLogType.complete)]),
            _task("b", "2024-01-02T08:00:00.000Z", completed=True),
            _task("open", "2024-01-05T08:00:00.000Z"),
        ]
        assert [t.id for t in completed_quick_tasks(tasks)] == ["a", "b"]

    def test_total_minutes(self):
        task = _task("t", "2024-01-01T08:00:00.000Z", logs=[
            _log(5, "2024-01-01T09:00:00.000Z"),
            _log(12, "2024-01-01T10:00:00.000Z", TaskLogType.complete),
        ])
        assert task_total_minutes(task) == 17
        assert task_total_minutes(_task("empty", "2024-01-01T08:00:00.000Z")) == 0
