"""
Quick tasks router: small jobs for a free pocket of time.

GET    /quick-tasks                      — open tasks, optionally only those that fit
GET    /quick-tasks/completed
POST   /quick-tasks
PUT    /quick-tasks/{task_id}
POST   /quick-tasks/{task_id}/log        — log minutes worked (optionally completing)
POST   /quick-tasks/{task_id}/restart    — reopen a completed task
DELETE /quick-tasks/{task_id}
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.routers.deps import get_owner
from app.schemas.tracker import QuickTask
from app.schemas.views import QuickTaskIn, QuickTaskOut, TimeLogIn
from app.services import tracker
from app.services.planner import active_quick_tasks, completed_quick_tasks, task_total_minutes
from app.services.storage import load_snapshot, save_snapshot

router = APIRouter(prefix="/quick-tasks", tags=["quick-tasks"])


def _out(task: QuickTask) -> QuickTaskOut:
    return QuickTaskOut(**task.model_dump(), total_minutes=task_total_minutes(task))


@router.get("", response_model=list[QuickTaskOut], summary="Open quick tasks")
def list_open(
    available_minutes: Optional[int] = Query(
        default=None,
        alias="availableMinutes",
        gt=0,
        description="Only tasks estimated to fit; flexible and unestimated tasks always fit.",
    ),
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    tasks = load_snapshot(db, owner).quick_tasks
    return [_out(t) for t in active_quick_tasks(tasks, available_minutes)]


@router.get("/completed", response_model=list[QuickTaskOut], summary="Completed quick tasks, latest first")
def list_completed(owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    return [_out(t) for t in completed_quick_tasks(load_snapshot(db, owner).quick_tasks)]


@router.post("", response_model=QuickTaskOut, status_code=status.HTTP_201_CREATED, summary="Add a quick task")
def create_task(payload: QuickTaskIn, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data, task = tracker.add_quick_task(
        load_snapshot(db, owner), payload.name, payload.estimate_minutes, payload.flexible,
    )
    save_snapshot(db, owner, data)
    return _out(task)


@router.put("/{task_id}", response_model=QuickTaskOut, summary="Edit a quick task")
def edit_task(
    task_id: str,
    payload: QuickTaskIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data, task = tracker.update_quick_task(
        load_snapshot(db, owner), task_id, payload.name, payload.estimate_minutes, payload.flexible,
    )
    save_snapshot(db, owner, data)
    return _out(task)


@router.post("/{task_id}/log", response_model=QuickTaskOut, summary="Log time worked on a task")
def log_time(
    task_id: str,
    payload: TimeLogIn,
    owner: str = Depends(get_owner),
    db: Session = Depends(get_db),
):
    data, task = tracker.log_task_time(load_snapshot(db, owner), task_id, payload.minutes, payload.complete)
    save_snapshot(db, owner, data)
    return _out(task)


@router.post("/{task_id}/restart", response_model=QuickTaskOut, summary="Reopen a completed task")
def restart_task(task_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    data, task = tracker.restart_quick_task(load_snapshot(db, owner), task_id)
    save_snapshot(db, owner, data)
    return _out(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a quick task")
def delete_task(task_id: str, owner: str = Depends(get_owner), db: Session = Depends(get_db)):
    save_snapshot(db, owner, tracker.delete_quick_task(load_snapshot(db, owner), task_id))
