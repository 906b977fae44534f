"""
Tests for the streak calculator.
"""
from __future__ import annotations

from datetime import date

import pytest

from app.schemas.tracker import DayRecord, Habit
from app.services.streaks import (
    all_streak_statuses,
    all_streaks,
    check_milestone,
    current_streak,
    get_next_milestone,
    is_completed,
    is_streak_at_risk,
    longest_streak,
    streak_status,
    top_streaks,
)


def _days(habit_id: str, done: list[str], missed: list[str] = ()) -> dict[str, DayRecord]:
    days = {d: DayRecord(habits={habit_id: True}) for d in done}
    days.update({d: DayRecord(habits={habit_id: False}) for d in missed})
    return days


def _habit(habit_id: str = "h1", created: str = "2024-01-01T08:00:00.000Z", **kw) -> Habit:
    return Habit(id=habit_id, name=kw.pop("name", habit_id), created_at=created, **kw)


# Done Jan 1-2, missed Jan 3-4, done Jan 5-8, missed Jan 9, done Jan 10.
FIXTURE = _days(
    "h1",
    done=["2024-01-01", "2024-01-02", "2024-01-05", "2024-01-06", "2024-01-07", "2024-01-08", "2024-01-10"],
)


class TestCompletion:
    def test_only_true_counts(self):
        days = {
            "2024-01-01": DayRecord(habits={"h1": True}),
            "2024-01-02": DayRecord(habits={"h1": False}),
        }
        assert is_completed("h1", days, "2024-01-01")
        assert not is_completed("h1", days, "2024-01-02")
        assert not is_completed("h1", days, "2024-01-03")
        assert not is_completed("other", days, "2024-01-01")


class TestCurrentStreak:
    def test_counts_back_from_today(self):
        assert current_streak("h1", FIXTURE, "2024-01-08") == 4

    def test_zero_when_today_not_done(self):
        assert current_streak("h1", FIXTURE, "2024-01-09") == 0

    def test_single_day(self):
        assert current_streak("h1", FIXTURE, "2024-01-10") == 1

    def test_unknown_habit(self):
        assert current_streak("nope", FIXTURE, "2024-01-08") == 0

    def test_stops_at_min_date(self):
        days = _days("h1", done=["0001-01-01", "0001-01-02"])
        assert current_streak("h1", days, "0001-01-02") == 2


class TestLongestStreak:
    def test_documented_example(self):
        days = _days(
            "h1",
            done=["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05", "2024-01-06", "2024-01-07", "2024-01-08"],
            missed=["2024-01-04"],
        )
        period = longest_streak("h1", days, "2024-01-01", "2024-01-08")
        assert (period.count, period.start_date, period.end_date) == (4, "2024-01-05", "2024-01-08")
        assert [r.count for r in all_streaks("h1", days, "2024-01-01", "2024-01-08")] == [3, 4]

    def test_creation_day_is_local(self, local_timezone):
        # 02:00 UTC on Jan 2 is the evening of Jan 1 in New York
        local_timezone("America/New_York")
        days = _days("h1", done=["2024-01-01", "2024-01-02"])
        period = longest_streak("h1", days, "2024-01-02T02:00:00.000Z", "2024-01-02")
        assert (period.count, period.start_date) == (2, "2024-01-01")

    def test_longest_period(self):
        period = longest_streak("h1", FIXTURE, "2024-01-01", "2024-01-12")
        assert period.count == 4
        assert period.start_date == "2024-01-05"
        assert period.end_date == "2024-01-08"

    def test_first_run_wins_tie(self):
        days = _days("h1", done=["2024-01-01", "2024-01-02", "2024-01-04", "2024-01-05"])
        period = longest_streak("h1", days, "2024-01-01", "2024-01-10")
        assert (period.start_date, period.end_date) == ("2024-01-01", "2024-01-02")

    def test_run_ending_today(self):
        days = _days("h1", done=["2024-01-03", "2024-01-04"])
        period = longest_streak("h1", days, "2024-01-01", "2024-01-04")
        assert (period.count, period.end_date) == (2, "2024-01-04")

    def test_none_done(self):
        period = longest_streak("h1", {}, "2024-01-01", "2024-01-10")
        assert (period.count, period.start_date, period.end_date) == (0, None, None)

    def test_records_before_creation_are_ignored(self):
        days = _days("h1", done=["2023-12-30", "2023-12-31", "2024-01-01"])
        assert longest_streak("h1", days, "2024-01-01", "2024-01-05").count == 1

    def test_all_streaks_oldest_first(self):
        runs = all_streaks("h1", FIXTURE, "2024-01-01", "2024-01-10")
        assert [r.count for r in runs] == [2, 4, 1]


class TestMilestones:
    @pytest.mark.parametrize("previous,current,expected", [
        (6, 7, 7),
        (7, 8, None),
        (29, 31, 30),
        (0, 400, 7),
        (99, 100, 100),
    ])
    def test_check_milestone(self, previous, current, expected):
        assert check_milestone(previous, current) == expected

    def test_custom_milestones(self):
        assert check_milestone(2, 3, milestones=[3, 5]) == 3

    def test_next_milestone(self):
        assert get_next_milestone(0) == 7
        assert get_next_milestone(7) == 30
        assert get_next_milestone(365) is None


class TestStatus:
    def test_streak_status(self):
        status = streak_status(_habit(), FIXTURE, date(2024, 1, 8))
        assert status.current == 4
        assert status.longest == 4
        assert status.completed_today
        assert status.completed_yesterday
        assert status.is_active
        assert status.next_milestone == 7

    def test_archived_habits_skipped(self):
        habits = [_habit("h1"), _habit("h2", archived=True)]
        statuses = all_streak_statuses(habits, FIXTURE, "2024-01-08")
        assert set(statuses) == {"h1"}

    def test_top_streaks_ranked(self):
        days = {
            "2024-01-06": DayRecord(habits={"b": True}),
            "2024-01-07": DayRecord(habits={"a": True, "b": True}),
            "2024-01-08": DayRecord(habits={"a": True, "b": True}),
        }
        habits = [_habit("a"), _habit("b"), _habit("c")]
        statuses = all_streak_statuses(habits, days, "2024-01-08")
        ranked = top_streaks(habits, statuses)
        assert [h.id for h, _ in ranked] == ["b", "a"]


class TestAtRisk:
    def test_streak_through_yesterday_not_done_today(self):
        assert is_streak_at_risk("h1", FIXTURE, "2024-01-09")

    def test_done_today_is_safe(self):
        assert not is_streak_at_risk("h1", FIXTURE, "2024-01-08")

    def test_no_streak_nothing_at_risk(self):
        assert not is_streak_at_risk("h1", FIXTURE, "2024-01-04")

    def test_first_representable_day(self):
        assert not is_streak_at_risk("h1", {}, date.min)
