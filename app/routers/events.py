"""
Events and templates router.

GET    /events
POST   /events
PUT    /events/{event_id}                 — whole series, or detach one occurrence
DELETE /events/{event_id}
GET    /events/on/{day}                   — everything active on a date
GET    /events/{event_id}/occurrences     — dates in a window

GET    /templates
POST   /templates
PUT    /templates/{template_id}
DELETE /templates/{template_id}
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.base import get_db
from app.routers.deps import get_owner, occurrence_to_response
from app.schemas.tracker import Event, Template
from app.schemas.views import (
    EventIn,
    EventOccurrenceOut,
    EventUpdateIn,
    OccurrenceListOut,
    TemplateIn,
)
from app.services import tracker
from app.services.dates import add_days_clamped, format_date
from app.services.recurrence import events_for_date, occurrences_between
from app.services.storage import load_snapshot, save_snapshot

router = APIRouter(tags=["events"])


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@router.get("/events", response_model=list[Event], summary="List event definitions")
def list_events(owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    return load_snapshot(db, owner).events


@router.post(
    "/events",
    response_model=Event,
    status_code=status.HTTP_201_CREATED,
    summary="Create a one-time or recurring event",
    responses={422: {"description": "Malformed recurrence."}},
)
def create_event(payload: EventIn, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    """
    `recurrence` is optional. Supported shapes:

    - `{"type": "daily" | "custom", "interval": N}`
    - `{"type": "weekly", "interval": N, "daysOfWeek": [0..6]}` (0 = Sunday)
    - `{"type": "monthly", "interval": N, "dayOfMonth": 15}`
    - `{"type": "monthly", "interval": N, "monthlyPattern": {"week": 1..5 | -1, "dayOfWeek": 0..6}}`
    - `{"type": "yearly", "interval": N}`

    plus at most one of `endDate` (YYYY-MM-DD) or `occurrences` (count).
    """
    data, event = tracker.add_event(
        load_snapshot(db, owner),
        payload.name,
        payload.description,
        format_date(payload.date),
        payload.start_time,
        payload.duration,
        payload.recurrence,
    )
    save_snapshot(db, owner, data)
    return event


@router.put("/events/{event_id}", response_model=Event, summary="Edit an event")
def edit_event(
    event_id: str,
    payload: EventUpdateIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """
    With `updateAll` (default) the whole series changes. With
    `updateAll: false` a one-time exception event is created instead; it
    carries `parentEventId` and hides the series on `occurrenceDate`.
    """
    data, event = tracker.update_event(
        load_snapshot(db, owner),
        event_id,
        payload.name,
        payload.description,
        format_date(payload.date),
        payload.start_time,
        payload.duration,
        payload.recurrence,
        update_all=payload.update_all,
        occurrence_date=format_date(payload.occurrence_date) if payload.occurrence_date else None,
    )
    save_snapshot(db, owner, data)
    return event


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an event")
def delete_event(event_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_event(load_snapshot(db, owner), event_id))


@router.get(
    "/events/on/{day}",
    response_model=list[EventOccurrenceOut],
    summary="Events active on a date",
)
def events_on(day: date, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    """One-time events on that date plus every recurring event occurring on it, by start time."""
    data = load_snapshot(db, owner)
    return [occurrence_to_response(o) for o in events_for_date(data.events, day)]


@router.get(
    "/events/{event_id}/occurrences",
    response_model=OccurrenceListOut,
    summary="Occurrence dates of an event in a window",
)
def event_occurrences(
    event_id: str,
    start: date = Query(description="First day of the window (inclusive)."),
    end: Optional[date] = Query(
        default=None,
        description="Last day of the window (inclusive). Defaults to start + 30 days.",
    ),
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    event = tracker.find_event(load_snapshot(db, owner), event_id)
    last = end or add_days_clamped(start, 30)
    # Keep the scan bounded.
    last = min(last, add_days_clamped(start, settings.STATS_MAX_RANGE * 5))
    return OccurrenceListOut(
        event_id=event_id,
        start=format_date(start),
        end=format_date(last),
        dates=[format_date(d) for d in occurrences_between(event, start, last)],
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@router.get("/templates", response_model=list[Template], summary="List event templates")
def list_templates(owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    return load_snapshot(db, owner).templates


@router.post(
    "/templates",
    response_model=Template,
    status_code=status.HTTP_201_CREATED,
    summary="Create an event template",
)
def create_template(payload: TemplateIn, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data, template = tracker.add_template(
        load_snapshot(db, owner), payload.name, payload.description, payload.duration,
    )
    save_snapshot(db, owner, data)
    return template


@router.put("/templates/{template_id}", response_model=Template, summary="Edit an event template")
def edit_template(
    template_id: str,
    payload: TemplateIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data, template = tracker.update_template(
        load_snapshot(db, owner), template_id, payload.name, payload.description, payload.duration,
    )
    save_snapshot(db, owner, data)
    return template


@router.delete(
    "/templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event template",
)
def delete_template(template_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_template(load_snapshot(db, owner), template_id))
