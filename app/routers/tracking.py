"""
Tracking fields router.

GET    /tracking-fields
POST   /tracking-fields
PUT    /tracking-fields/{field_id}
DELETE /tracking-fields/{field_id}
PUT    /tracking-fields/{field_id}/days/{day}   — record a value for a day
"""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.routers.deps import get_owner
from app.schemas.tracker import TrackingField
from app.schemas.views import TrackingFieldIn, TrackingValueIn, TrackingValueOut
from app.services import tracker
from app.services.dates import format_date
from app.services.storage import load_snapshot, save_snapshot

router = APIRouter(prefix="/tracking-fields", tags=["tracking"])


@router.get("", response_model=list[TrackingField], summary="List tracking fields")
def list_fields(owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    return load_snapshot(db, owner).tracking_fields


@router.post(
    "",
    response_model=TrackingField,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tracking field",
)
def create_field(payload: TrackingFieldIn, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data, field = tracker.add_tracking_field(
        load_snapshot(db, owner), payload.name, payload.type, payload.unit, payload.description,
    )
    save_snapshot(db, owner, data)
    return field


@router.put("/{field_id}", response_model=TrackingField, summary="Edit a tracking field")
def edit_field(
    field_id: str,
    payload: TrackingFieldIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data, field = tracker.update_tracking_field(
        load_snapshot(db, owner), field_id, payload.name, payload.type, payload.unit, payload.description,
    )
    save_snapshot(db, owner, data)
    return field


@router.delete(
    "/{field_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a tracking field (recorded values are kept)",
)
def delete_field(field_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_tracking_field(load_snapshot(db, owner), field_id))


@router.put(
    "/{field_id}/days/{day}",
    response_model=TrackingValueOut,
    summary="Record a tracking value",
    responses={422: {"description": "Value does not fit the field type."}},
)
def record_value(
    field_id: str,
    day: date,
    payload: TrackingValueIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """
    Values are checked against the field type: numbers, free text, Yes/No
    (booleans are accepted and stored as "Yes"/"No"), HH:MM times and
    1-5 / 1-10 scales. `null` clears the value.
    """
    data = tracker.set_tracking(load_snapshot(db, owner), day, field_id, payload.value)
    save_snapshot(db, owner, data)
    return TrackingValueOut(
        day=format_date(day),
        field_id=field_id,
        value=tracker.get_day_record(data, day).tracking.get(field_id),
    )
