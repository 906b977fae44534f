"""
Day planner router: fixed start/end blocks on a daily timeline.

GET    /planner-events/on/{day}      — blocks on a date, with upcoming/current/past status
POST   /planner-events
PUT    /planner-events/{event_id}    — times, title, category and notes (date is fixed)
DELETE /planner-events/{event_id}
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.routers.deps import get_owner
from app.schemas.tracker import PlannerEvent
from app.schemas.views import PlannerEventIn, PlannerEventOut, PlannerEventUpdateIn
from app.services import tracker
from app.services.planner import planner_event_status, planner_events_for_date
from app.services.storage import load_snapshot, save_snapshot

router = APIRouter(prefix="/planner-events", tags=["planner"])


@router.get("/on/{day}", response_model=list[PlannerEventOut], summary="Planner blocks on a date")
def blocks_on(
    day: date,
    now: Optional[datetime] = Query(
        default=None,
        description="The client's local wall-clock time, used for the status. Defaults to the server's.",
        examples=["2026-02-21T09:15:00"],
    ),
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    moment = now or datetime.now()
    events = planner_events_for_date(load_snapshot(db, owner).planner_events, day)
    return [PlannerEventOut(**e.model_dump(), status=planner_event_status(e, moment)) for e in events]


@router.post(
    "",
    response_model=PlannerEvent,
    status_code=status.HTTP_201_CREATED,
    summary="Add a planner block",
    responses={422: {"description": "End time is not after start time."}},
)
def create_block(payload: PlannerEventIn, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data, event = tracker.add_planner_event(
        load_snapshot(db, owner),
        payload.date,
        payload.start_time,
        payload.end_time,
        payload.title,
        payload.category,
        payload.notes,
    )
    save_snapshot(db, owner, data)
    return event


@router.put("/{event_id}", response_model=PlannerEvent, summary="Edit a planner block")
def edit_block(
    event_id: str,
    payload: PlannerEventUpdateIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data, event = tracker.update_planner_event(
        load_snapshot(db, owner),
        event_id,
        payload.start_time,
        payload.end_time,
        payload.title,
        payload.category,
        payload.notes,
    )
    save_snapshot(db, owner, data)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a planner block")
def delete_block(event_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_planner_event(load_snapshot(db, owner), event_id))
