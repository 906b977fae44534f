"""
Habits router.

GET    /habits                           — list habits (optionally incl. archived)
POST   /habits                           — create
PUT    /habits/{habit_id}                — edit name/description/build-up settings
POST   /habits/{habit_id}/archive        — hide from stats, keep history
POST   /habits/{habit_id}/unarchive
DELETE /habits/{habit_id}                — drop definition, keep history
PUT    /habits/{habit_id}/days/{day}     — mark done / not done
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.errors import InvalidBuildUpConfigError
from app.db.base import get_db
from app.routers.deps import get_milestones, get_owner, get_today
from app.schemas.tracker import BuildUpConfig, Habit
from app.schemas.views import CompletionIn, CompletionOut, HabitIn
from app.services import tracker
from app.services.build_up import validate_build_up_config
from app.services.day_status import status_for
from app.services.dates import format_date
from app.services.storage import load_snapshot, save_snapshot
from app.services.streaks import current_streak

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/habits", tags=["habits"])


def _build_up_from(payload: HabitIn) -> Optional[BuildUpConfig]:
    if not payload.is_build_up_habit:
        return None
    cfg = payload.build_up_config
    if cfg is None:
        raise InvalidBuildUpConfigError(["buildUpConfig is required for a build-up habit"])
    return validate_build_up_config(
        start_value=cfg.start_value,
        goal_value=cfg.goal_value,
        increment_value=cfg.increment_value,
        days_for_increment=cfg.days_for_increment,
        unit=cfg.unit,
    )


@router.get("", response_model=list[Habit], summary="List habits")
def list_habits(
    include_archived: bool = Query(default=False, alias="includeArchived"),
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data = load_snapshot(db, owner)
    return [h for h in data.habits if include_archived or not h.archived]


@router.post(
    "",
    response_model=Habit,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
    responses={422: {"description": "Invalid build-up configuration."}},
)
def create_habit(
    payload: HabitIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """
    Create a habit. For a build-up habit, `buildUpConfig` must have positive
    values and `goalValue > startValue`; otherwise nothing is created and a
    422 `INVALID_BUILD_UP_CONFIG` is returned.
    """
    build_up = _build_up_from(payload)
    data, habit = tracker.add_habit(
        load_snapshot(db, owner), payload.name, payload.description, build_up,
    )
    save_snapshot(db, owner, data)
    logger.info("Created habit %s for owner=%s (build_up=%s)", habit.id, owner, build_up is not None)
    return habit


@router.put("/{habit_id}", response_model=Habit, summary="Edit a habit")
def edit_habit(
    habit_id: str,
    payload: HabitIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Build-up progress (current value and streak) carries over an edit."""
    build_up = _build_up_from(payload)
    data, habit = tracker.update_habit(
        load_snapshot(db, owner), habit_id, payload.name, payload.description, build_up,
    )
    save_snapshot(db, owner, data)
    return habit


@router.post("/{habit_id}/archive", response_model=Habit, summary="Archive a habit")
def archive(habit_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data = tracker.archive_habit(load_snapshot(db, owner), habit_id)
    save_snapshot(db, owner, data)
    return tracker.find_habit(data, habit_id)


@router.post("/{habit_id}/unarchive", response_model=Habit, summary="Restore an archived habit")
def unarchive(habit_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data = tracker.unarchive_habit(load_snapshot(db, owner), habit_id)
    save_snapshot(db, owner, data)
    return tracker.find_habit(data, habit_id)


@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a habit definition (history is kept)",
)
def delete(habit_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_habit(load_snapshot(db, owner), habit_id))


@router.put(
    "/{habit_id}/days/{day}",
    response_model=CompletionOut,
    summary="Mark a habit done or not done on a day",
)
def set_completion(
    habit_id: str,
    day: date,
    payload: CompletionIn,
    owner: str = Depends(get_owner),
    today: date = Depends(get_today),
    milestones: list[int] = Depends(get_milestones),
    db: Session = Depends(get_db),
):
    """
    Records the flag, advances build-up progress and returns the day's new
    status plus `milestone` when completing today crosses a streak milestone.
    """
    data = load_snapshot(db, owner)
    tracker.find_habit(data, habit_id)
    result = tracker.set_habit_complete(
        data, day, habit_id, payload.completed, today=today, milestones=milestones,
    )
    saved = save_snapshot(db, owner, result.data)
    if result.milestone:
        logger.info("Habit %s reached a %s-day streak (owner=%s)", habit_id, result.milestone, owner)
    return CompletionOut(
        day=format_date(day),
        habit_id=habit_id,
        completed=payload.completed,
        status=status_for(day, saved.habits, saved.days, today).value,
        current_streak=current_streak(habit_id, saved.days, today),
        milestone=result.milestone,
        build_up_config=result.habit.build_up_config if result.habit else None,
    )
