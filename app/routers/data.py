"""
Whole-aggregate operations.

GET    /data           — export the owner's document
POST   /data/import    — merge an exported document
POST   /data/sync      — reconcile a client copy (last write wins)
DELETE /data           — clear everything
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.routers.deps import get_owner
from app.schemas.tracker import TrackerData
from app.schemas.views import SyncOut
from app.services import tracker
from app.services.storage import load_snapshot, save_snapshot, sync_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


@router.get("", summary="Export the tracker document")
def export(owner: str = Depends(get_owner), db: Session = Depends(get_db)) -> dict[str, Any]:
    return tracker.export_data(load_snapshot(db, owner))


@router.post(
    "/import",
    response_model=TrackerData,
    summary="Merge an exported document",
    responses={422: {"description": "Document is missing required keys or does not parse."}},
)
def import_document(
    document: dict[str, Any] = Body(...),
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """
    Requires `habits`, `trackingFields` and `days`. Habits and tracking
    fields whose name already exists are skipped, day records overwrite
    per date, events and templates are added when their id is new.
    """
    current = load_snapshot(db, owner)
    merged = tracker.import_data(current, document)
    saved = save_snapshot(db, owner, merged)
    logger.info(
        "Imported document for owner=%s: habits %d -> %d, days %d -> %d",
        owner, len(current.habits), len(saved.habits), len(current.days), len(saved.days),
    )
    return saved


@router.post("/sync", response_model=SyncOut, summary="Reconcile a client copy")
def sync(local: TrackerData, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    """
    The copy with the larger `lastModified` wins. A newer client copy is
    stored (`uploaded`); otherwise the stored copy is returned (`downloaded`).
    """
    result = sync_snapshot(db, owner, local)
    return SyncOut(action=result.action, data=result.data)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Clear all tracker data")
def clear(owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.clear_data(load_snapshot(db, owner)))
    logger.warning("Cleared all tracker data for owner=%s", owner)
