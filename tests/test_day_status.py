"""
Tests for the day status classifier and range statistics.
"""
from datetime import date

from app.schemas.tracker import DayRecord, Habit
from app.services.dates import date_range
from app.services.day_status import (
    DayStatus,
    completion_series,
    day_status,
    habit_completion_rates,
    status_for,
    summarize_range,
)

TODAY = date(2024, 3, 10)

HABITS = [
    Habit(id="a", name="Read", created_at="2024-01-01"),
    Habit(id="b", name="Run", created_at="2024-01-01"),
    Habit(id="z", name="Old", created_at="2024-01-01", archived=True),
]


class TestDayStatus:
    def test_complete(self):
        record = DayRecord(habits={"a": True, "b": True})
        assert day_status("2024-03-09", HABITS, record, TODAY) is DayStatus.complete

    def test_archived_habit_not_required(self):
        record = DayRecord(habits={"a": True, "b": True, "z": False})
        assert day_status("2024-03-09", HABITS, record, TODAY) is DayStatus.complete

    def test_partial(self):
        record = DayRecord(habits={"a": True, "b": False})
        assert day_status("2024-03-09", HABITS, record, TODAY) is DayStatus.partial

    def test_none_when_nothing_done(self):
        assert day_status("2024-03-09", HABITS, None, TODAY) is DayStatus.none

    def test_future_is_undated(self):
        record = DayRecord(habits={"a": True, "b": True})
        assert day_status("2024-03-11", HABITS, record, TODAY) is DayStatus.undated

    def test_today_is_dated(self):
        assert day_status(TODAY, HABITS, None, TODAY) is DayStatus.none

    def test_no_active_habits_is_undated(self):
        assert day_status("2024-03-09", [HABITS[2]], None, TODAY) is DayStatus.undated

    def test_status_for_looks_up_record(self):
        days = {"2024-03-09": DayRecord(habits={"a": True})}
        assert status_for(date(2024, 3, 9), HABITS, days, TODAY) is DayStatus.partial


class TestRangeStats:
    DAYS = {
        "2024-03-07": DayRecord(habits={"a": True, "b": True}),
        "2024-03-08": DayRecord(habits={"a": True, "b": False}),
        "2024-03-09": DayRecord(habits={"a": False}),
    }
    DATES = date_range("2024-03-07", "2024-03-11")

    def test_summarize_range(self):
        summary = summarize_range(self.DATES, HABITS, self.DAYS, TODAY)
        assert summary.complete == 1
        assert summary.partial == 1
        assert summary.none == 2       # Mar 9 and today
        assert summary.undated == 1    # Mar 11

    def test_completion_series(self):
        series = completion_series(self.DATES, HABITS, self.DAYS)
        assert series == [100.0, 50.0, 0.0, 0.0, 0.0]

    def test_completion_series_without_active_habits(self):
        assert completion_series(self.DATES[:2], [HABITS[2]], self.DAYS) == [0.0, 0.0]

    def test_habit_rates_only_count_recorded_days(self):
        rates = {r.habit_id: r for r in habit_completion_rates(self.DATES, HABITS, self.DAYS)}
        assert set(rates) == {"a", "b"}
        assert (rates["a"].recorded_days, rates["a"].completed_days, rates["a"].rate) == (3, 2, 67)
        assert (rates["b"].recorded_days, rates["b"].completed_days, rates["b"].rate) == (2, 1, 50)
