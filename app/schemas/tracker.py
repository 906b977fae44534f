"""
The per-user tracker aggregate.

These models are both the in-memory snapshot the core calculators read and
the on-disk JSON shape (camelCase aliases). They are frozen: every
mutation in app/services/tracker.py returns a new snapshot via
`model_copy(update=...)`.

Event.recurrence is kept as the raw stored mapping. It is parsed into a
typed rule by app/services/recurrence.py, which treats anything malformed
as "never occurs" instead of rejecting the whole snapshot.
"""
from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = Union[int, float]


class _Snapshot(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class TrackingFieldType(str, enum.Enum):
    number = "number"
    text = "text"
    boolean = "boolean"
    time = "time"
    scale5 = "scale5"
    scale10 = "scale10"


class BuildUpConfig(_Snapshot):
    start_value: Number
    goal_value: Number
    increment_value: Number
    days_for_increment: int
    unit: str = ""
    current_value: Number
    current_streak: int = 0


class Habit(_Snapshot):
    id: str
    name: str
    description: str = ""
    archived: bool = False
    created_at: str
    is_build_up_habit: bool = False
    build_up_config: Optional[BuildUpConfig] = None


class TrackingField(_Snapshot):
    id: str
    name: str
    type: TrackingFieldType
    unit: str = ""
    description: str = ""
    created_at: Optional[str] = None


class DayRecord(_Snapshot):
    habits: dict[str, bool] = Field(default_factory=dict)
    tracking: dict[str, Any] = Field(default_factory=dict)


class Event(_Snapshot):
    id: str
    name: str
    description: str = ""
    date: str = Field(description="Anchor date, YYYY-MM-DD.")
    start_time: str = Field(description="HH:MM.")
    duration: int = Field(default=-1, description="Minutes; -1 means open-ended.")
    recurrence: Optional[dict[str, Any]] = None
    created_at: Optional[str] = None
    parent_event_id: Optional[str] = None
    occurrence_date: Optional[str] = None


class Template(_Snapshot):
    id: str
    name: str
    description: str = ""
    duration: int = -1
    created_at: Optional[str] = None


class PlannerEvent(_Snapshot):
    """A block on the day-planner timeline; unlike Event it has a fixed end."""
    id: str
    date: str = Field(description="YYYY-MM-DD.")
    start_time: str
    end_time: str
    title: str
    category: str = "other"
    notes: str = ""
    created_at: Optional[str] = None


class TaskLogType(str, enum.Enum):
    progress = "progress"
    complete = "complete"


class TaskLog(_Snapshot):
    minutes: int
    type: TaskLogType
    timestamp: str


class QuickTask(_Snapshot):
    id: str
    name: str
    estimate_minutes: Optional[int] = None
    flexible: bool = False
    logs: list[TaskLog] = Field(default_factory=list)
    completed: bool = False
    created_at: str


class TrackerData(_Snapshot):
    # Other clients may store extra keys (e.g. UI settings); they ride
    # along untouched.
    model_config = ConfigDict(extra="allow")

    habits: list[Habit] = Field(default_factory=list)
    tracking_fields: list[TrackingField] = Field(default_factory=list)
    days: dict[str, DayRecord] = Field(default_factory=dict)
    events: list[Event] = Field(default_factory=list)
    templates: list[Template] = Field(default_factory=list)
    planner_events: list[PlannerEvent] = Field(default_factory=list)
    quick_tasks: list[QuickTask] = Field(default_factory=list)
    last_modified: int = 0

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
