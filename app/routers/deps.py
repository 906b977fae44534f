"""
Shared router dependencies and serialization helpers.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import Header, Query

from app.core.config import settings
from app.services.dates import format_date, today as local_today
from app.services.recurrence import EventOccurrence
from app.schemas.views import EventOccurrenceOut


def get_owner(
    x_owner_id: str = Header(
        default="default",
        min_length=1,
        max_length=128,
        description="Whose tracker data to operate on.",
    ),
) -> str:
    return x_owner_id


def get_today(
    today: Optional[date] = Query(
        default=None,
        description=(
            "The client's local calendar date. Defaults to the server's local date; "
            "pass it when the client's timezone differs."
        ),
        examples=["2026-02-21"],
    ),
) -> date:
    return today or local_today()


def get_milestones() -> list[int]:
    return settings.streak_milestones_list


def occurrence_to_response(o: EventOccurrence) -> EventOccurrenceOut:
    return EventOccurrenceOut(
        id=o.event.id,
        name=o.event.name,
        description=o.event.description,
        day=format_date(o.day),
        start_time=o.event.start_time,
        end_time=o.end_time,
        duration=o.event.duration,
        is_recurring=o.is_recurring,
        parent_event_id=o.event.parent_event_id,
    )
