"""
Storage collaborator: persists the tracker aggregate, one document per owner.

The core never calls this module; routers load a snapshot, hand it to the
pure operations and save whatever comes back.

Writes are conditional on the `lastModified` the caller loaded. If another
request saved in between, the write is refused with ConflictError (409)
rather than silently overwriting that request's change.

Public API
----------
load_snapshot(db, owner)         -> TrackerData   (empty aggregate if none stored)
save_snapshot(db, owner, data)   -> TrackerData   (stamped with lastModified)
sync_snapshot(db, owner, local)  -> SyncResult    (last write wins)
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models.snapshot import TrackerSnapshot
from app.schemas.tracker import TrackerData

logger = logging.getLogger(__name__)


class SyncAction:
    UPLOADED   = "uploaded"
    DOWNLOADED = "downloaded"


@dataclass
class SyncResult:
    action: str
    data: TrackerData


def _now_ms() -> int:
    return int(time.time() * 1000)


def _get_row(db: Session, owner: str) -> Optional[TrackerSnapshot]:
    return db.query(TrackerSnapshot).filter(TrackerSnapshot.owner == owner).first()


def _write(db: Session, owner: str, data: TrackerData, expected: int) -> None:
    """
    Store `data` only if the stored document still carries `expected` as
    its lastModified. A missing row counts as lastModified 0.
    """
    payload = json.dumps(data.to_json_dict())
    try:
        result = db.execute(
            update(TrackerSnapshot)
            .where(TrackerSnapshot.owner == owner, TrackerSnapshot.last_modified == expected)
            .values(payload=payload, last_modified=data.last_modified)
        )
        if result.rowcount != 1:
            if expected != 0 or _get_row(db, owner) is not None:
                db.rollback()
                logger.warning("Write conflict owner=%s expected lastModified=%s", owner, expected)
                raise ConflictError(owner, expected)
            db.add(TrackerSnapshot(owner=owner, payload=payload, last_modified=data.last_modified))
        db.commit()
    except IntegrityError:
        # Another request inserted the first row for this owner.
        db.rollback()
        logger.warning("Write conflict owner=%s: concurrent first save", owner)
        raise ConflictError(owner, expected)


def load_snapshot(db: Session, owner: str) -> TrackerData:
    row = _get_row(db, owner)
    if row is None:
        logger.debug("No snapshot stored for owner=%s; starting empty", owner)
        return TrackerData()
    return TrackerData.model_validate(json.loads(row.payload))


def save_snapshot(db: Session, owner: str, data: TrackerData, now_ms: Optional[int] = None) -> TrackerData:
    """
    `data` must descend from a snapshot returned by load_snapshot: its
    lastModified is the version the write is conditional on. The new stamp
    is always greater than that version.
    """
    loaded = data.last_modified
    stamp = max(now_ms if now_ms is not None else _now_ms(), loaded + 1)
    stamped = data.model_copy(update={"last_modified": stamp})
    _write(db, owner, stamped, expected=loaded)
    logger.info("Saved snapshot owner=%s lastModified=%s", owner, stamped.last_modified)
    return stamped


def sync_snapshot(db: Session, owner: str, local: TrackerData) -> SyncResult:
    """
    Reconcile a client copy with the stored one.

    - nothing stored         -> store the client copy ("uploaded")
    - client strictly newer  -> store the client copy ("uploaded")
    - otherwise              -> return the stored copy ("downloaded")
    """
    row = _get_row(db, owner)
    if row is None or local.last_modified > row.last_modified:
        _write(db, owner, local, expected=row.last_modified if row is not None else 0)
        logger.info("Sync owner=%s: uploaded client copy (lastModified=%s)", owner, local.last_modified)
        return SyncResult(action=SyncAction.UPLOADED, data=local)

    stored = TrackerData.model_validate(json.loads(row.payload))
    logger.info(
        "Sync owner=%s: client copy %s not newer than stored %s, downloaded",
        owner, local.last_modified, row.last_modified,
    )
    return SyncResult(action=SyncAction.DOWNLOADED, data=stored)
