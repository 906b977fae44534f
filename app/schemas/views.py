"""
Request / response schemas for the HTTP surface.

Field names are camelCase on the wire, matching the stored aggregate
(app/schemas/tracker.py), so clients see one naming convention.
"""
from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.tracker import (
    BuildUpConfig,
    Number,
    PlannerEvent,
    QuickTask,
    TrackerData,
    TrackingFieldType,
)
from app.services.planner import PlannerStatus


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )


Name = Annotated[str, Field(min_length=1, max_length=200)]


def _strip_name(v: Any) -> Any:
    stripped = v.strip() if isinstance(v, str) else v
    if isinstance(stripped, str) and not stripped:
        raise ValueError("name must not be empty after stripping whitespace")
    return stripped


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------

class BuildUpIn(_ApiModel):
    """Ramp settings. Range checks happen in the build-up validator so the
    client gets one INVALID_BUILD_UP_CONFIG error listing every problem."""
    start_value: Number
    goal_value: Number
    increment_value: Number
    days_for_increment: int
    unit: str = ""


class HabitIn(_ApiModel):
    name: Name
    description: str = ""
    is_build_up_habit: bool = False
    build_up_config: Optional[BuildUpIn] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip_name(v)


class CompletionIn(_ApiModel):
    completed: bool


class CompletionOut(_ApiModel):
    day: str
    habit_id: str
    completed: bool
    status: str = Field(description='"complete" | "partial" | "none" | "undated"')
    current_streak: int
    milestone: Optional[int] = Field(
        default=None,
        description="Milestone newly reached by this completion, if any.",
    )
    build_up_config: Optional[BuildUpConfig] = None


# ---------------------------------------------------------------------------
# Tracking fields
# ---------------------------------------------------------------------------

class TrackingFieldIn(_ApiModel):
    name: Name
    type: TrackingFieldType
    unit: str = ""
    description: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip_name(v)


class TrackingValueIn(_ApiModel):
    value: Any = Field(default=None, description="New value; null clears it.")


class TrackingValueOut(_ApiModel):
    day: str
    field_id: str
    value: Any = None


# ---------------------------------------------------------------------------
# Events & templates
# ---------------------------------------------------------------------------

class EventIn(_ApiModel):
    name: Name
    description: str = ""
    date: dt.date
    start_time: str = Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["09:30"])
    duration: int = Field(default=-1, ge=-1, description="Minutes; -1 for open-ended.")
    recurrence: Optional[dict[str, Any]] = Field(
        default=None,
        examples=[{"type": "monthly", "interval": 1, "monthlyPattern": {"week": -1, "dayOfWeek": 5}}],
    )

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip_name(v)


class EventUpdateIn(EventIn):
    update_all: bool = Field(
        default=True,
        description="False detaches a single occurrence as an exception event.",
    )
    occurrence_date: Optional[dt.date] = Field(
        default=None,
        description="Series date the exception replaces (defaults to `date`).",
    )


class EventOccurrenceOut(_ApiModel):
    id: str
    name: str
    description: str
    day: str
    start_time: str
    end_time: Optional[str]
    duration: int
    is_recurring: bool
    parent_event_id: Optional[str] = None


class OccurrenceListOut(_ApiModel):
    event_id: str
    start: str
    end: str
    dates: list[str]


class TemplateIn(_ApiModel):
    name: Name
    description: str = ""
    duration: int = Field(default=-1, ge=-1)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip_name(v)


# ---------------------------------------------------------------------------
# Planner timeline
# ---------------------------------------------------------------------------

Clock = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", examples=["09:30"])]


class PlannerEventUpdateIn(_ApiModel):
    start_time: Clock
    end_time: Clock
    title: Name
    category: str = Field(default="other", max_length=50)
    notes: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        return _strip_name(v)


class PlannerEventIn(PlannerEventUpdateIn):
    date: dt.date


class PlannerEventOut(PlannerEvent):
    status: PlannerStatus


# ---------------------------------------------------------------------------
# Quick tasks
# ---------------------------------------------------------------------------

class QuickTaskIn(_ApiModel):
    name: Name
    estimate_minutes: Optional[int] = Field(default=None, gt=0, description="Omit for open-ended tasks.")
    flexible: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip_name(v)


class TimeLogIn(_ApiModel):
    minutes: int = Field(gt=0)
    complete: bool = Field(default=False, description="Also mark the task done.")


class QuickTaskOut(QuickTask):
    total_minutes: int


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

class DayDetailOut(_ApiModel):
    day: str
    status: str
    habits: dict[str, bool]
    tracking: dict[str, Any]
    events: list[EventOccurrenceOut]


class CalendarDayOut(_ApiModel):
    day: str
    status: str
    event_count: int


class CalendarMonthOut(_ApiModel):
    year: int
    month: int
    days: list[CalendarDayOut]


class HabitRateOut(_ApiModel):
    habit_id: str
    name: str
    recorded_days: int
    completed_days: int
    rate: int


class StatsSummaryOut(_ApiModel):
    range: int
    start: str
    end: str
    complete_days: int
    partial_days: int
    none_days: int
    completion: list[float] = Field(description="Percent of active habits done per day, oldest first.")
    habits: list[HabitRateOut]


class StreakPeriodOut(_ApiModel):
    count: int
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class StreakStatusOut(_ApiModel):
    habit_id: str
    name: str
    current: int
    longest: int
    longest_period: StreakPeriodOut
    completed_today: bool
    completed_yesterday: bool
    is_active: bool
    at_risk: bool
    next_milestone: Optional[int] = None


class StreakListOut(_ApiModel):
    total: int
    items: list[StreakStatusOut]


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

class SyncOut(_ApiModel):
    action: str = Field(description='"uploaded" | "downloaded"')
    data: TrackerData
