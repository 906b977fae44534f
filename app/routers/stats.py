"""
Stats router: day detail, month calendar, trailing-range summary, streaks.

GET /stats/day/{day}
GET /stats/calendar?year=&month=
GET /stats/summary?range=7
GET /stats/streaks
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.base import get_db
from app.routers.deps import get_milestones, get_owner, get_today, occurrence_to_response
from app.schemas.views import (
    CalendarDayOut,
    CalendarMonthOut,
    DayDetailOut,
    HabitRateOut,
    StatsSummaryOut,
    StreakListOut,
    StreakPeriodOut,
    StreakStatusOut,
)
from app.services import tracker
from app.services.day_status import (
    completion_series,
    habit_completion_rates,
    status_for,
    summarize_range,
)
from app.services.dates import format_date, month_days, trailing_days
from app.services.recurrence import events_for_date
from app.services.storage import load_snapshot
from app.services.streaks import all_streak_statuses, is_streak_at_risk, top_streaks

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/day/{day}", response_model=DayDetailOut, summary="Everything recorded for one day")
def day_detail(
    day: date,
    owner: str = Depends(get_owner),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    data = load_snapshot(db, owner)
    record = tracker.get_day_record(data, day)
    return DayDetailOut(
        day=format_date(day),
        status=status_for(day, data.habits, data.days, today).value,
        habits=record.habits,
        tracking=record.tracking,
        events=[occurrence_to_response(o) for o in events_for_date(data.events, day)],
    )


@router.get("/calendar", response_model=CalendarMonthOut, summary="Status and event count per day of a month")
def calendar(
    year: Optional[int] = Query(default=None, ge=1, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    owner: str = Depends(get_owner),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    """Defaults to the month containing `today`."""
    year = year or today.year
    month = month or today.month
    data = load_snapshot(db, owner)
    days = [
        CalendarDayOut(
            day=format_date(d),
            status=status_for(d, data.habits, data.days, today).value,
            event_count=len(events_for_date(data.events, d)),
        )
        for d in month_days(year, month)
    ]
    return CalendarMonthOut(year=year, month=month, days=days)


@router.get("/summary", response_model=StatsSummaryOut, summary="Completion over the trailing N days")
def summary(
    range_days: int = Query(
        default=settings.STATS_DEFAULT_RANGE,
        alias="range",
        ge=1,
        le=settings.STATS_MAX_RANGE,
        description="Number of days ending today (inclusive).",
    ),
    owner: str = Depends(get_owner),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
):
    data = load_snapshot(db, owner)
    dates = trailing_days(range_days, today)
    counts = summarize_range(dates, data.habits, data.days, today)
    rates = habit_completion_rates(dates, data.habits, data.days)
    return StatsSummaryOut(
        range=range_days,
        start=format_date(dates[0]),
        end=format_date(dates[-1]),
        complete_days=counts.complete,
        partial_days=counts.partial,
        none_days=counts.none,
        completion=completion_series(dates, data.habits, data.days),
        habits=[
            HabitRateOut(
                habit_id=r.habit_id,
                name=r.name,
                recorded_days=r.recorded_days,
                completed_days=r.completed_days,
                rate=r.rate,
            )
            for r in rates
        ],
    )


@router.get("/streaks", response_model=StreakListOut, summary="Streak status of every active habit")
def streaks(
    active_only: bool = Query(
        default=False,
        alias="activeOnly",
        description="Only habits with a running streak, longest first.",
    ),
    owner: str = Depends(get_owner),
    today: date = Depends(get_today),
    milestones: list[int] = Depends(get_milestones),
    db: Session = Depends(get_db),
):
    data = load_snapshot(db, owner)
    statuses = all_streak_statuses(data.habits, data.days, today, milestones)
    if active_only:
        pairs = top_streaks(data.habits, statuses)
    else:
        pairs = [(h, statuses[h.id]) for h in data.habits if h.id in statuses]

    items = [
        StreakStatusOut(
            habit_id=h.id,
            name=h.name,
            current=s.current,
            longest=s.longest,
            longest_period=StreakPeriodOut(
                count=s.longest_period.count,
                start_date=s.longest_period.start_date,
                end_date=s.longest_period.end_date,
            ),
            completed_today=s.completed_today,
            completed_yesterday=s.completed_yesterday,
            is_active=s.is_active,
            at_risk=is_streak_at_risk(h.id, data.days, today),
            next_milestone=s.next_milestone,
        )
        for h, s in pairs
    ]
    return StreakListOut(total=len(items), items=items)
