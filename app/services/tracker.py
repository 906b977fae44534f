"""
Tracker aggregate operations.

Every function takes a `TrackerData` snapshot and returns a new one; the
input is never modified. The caller (router + storage collaborator) owns
the single persisted copy and threads it through.

Unknown ids raise NotFoundError here. The calculators they call
(streaks, build-up, recurrence) never raise for bad data.
"""
from __future__ import annotations

import math
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence

from pydantic import ValidationError

from app.core.errors import (
    InvalidImportError,
    InvalidQuickTaskError,
    InvalidTimeRangeError,
    InvalidTrackingValueError,
    NotFoundError,
)
from app.schemas.tracker import (
    BuildUpConfig,
    DayRecord,
    Event,
    Habit,
    PlannerEvent,
    QuickTask,
    TaskLog,
    TaskLogType,
    Template,
    TrackerData,
    TrackingField,
    TrackingFieldType,
)
from app.services.build_up import apply_completion, carry_progress
from app.services.dates import (
    DateLike,
    format_date,
    previous_day,
    time_to_minutes,
    to_date,
    today as local_today,
)
from app.services.recurrence import validate_recurrence
from app.services.streaks import STREAK_MILESTONES, check_milestone, current_streak, is_completed


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _new_id() -> str:
    return uuid.uuid4().hex


def _timestamp(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(tz=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _replace(items: Sequence[Any], item_id: str, new: Any) -> list[Any]:
    return [new if x.id == item_id else x for x in items]


def _find(items: Sequence[Any], item_id: str, kind: str) -> Any:
    for item in items:
        if item.id == item_id:
            return item
    raise NotFoundError(kind, item_id)


def find_habit(data: TrackerData, habit_id: str) -> Habit:
    return _find(data.habits, habit_id, "Habit")


def find_tracking_field(data: TrackerData, field_id: str) -> TrackingField:
    return _find(data.tracking_fields, field_id, "Tracking field")


def find_event(data: TrackerData, event_id: str) -> Event:
    return _find(data.events, event_id, "Event")


def find_template(data: TrackerData, template_id: str) -> Template:
    return _find(data.templates, template_id, "Template")


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------

def add_habit(
    data: TrackerData,
    name: str,
    description: str = "",
    build_up: Optional[BuildUpConfig] = None,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, Habit]:
    habit = Habit(
        id=_new_id(),
        name=name,
        description=description,
        created_at=_timestamp(now),
        is_build_up_habit=build_up is not None,
        build_up_config=build_up,
    )
    return data.model_copy(update={"habits": [*data.habits, habit]}), habit


def update_habit(
    data: TrackerData,
    habit_id: str,
    name: str,
    description: str = "",
    build_up: Optional[BuildUpConfig] = None,
) -> tuple[TrackerData, Habit]:
    existing = find_habit(data, habit_id)
    config = carry_progress(existing.build_up_config, build_up) if build_up else None
    habit = existing.model_copy(update={
        "name": name,
        "description": description,
        "is_build_up_habit": config is not None,
        "build_up_config": config,
    })
    return data.model_copy(update={"habits": _replace(data.habits, habit_id, habit)}), habit


def _set_archived(data: TrackerData, habit_id: str, archived: bool) -> TrackerData:
    habit = find_habit(data, habit_id).model_copy(update={"archived": archived})
    return data.model_copy(update={"habits": _replace(data.habits, habit_id, habit)})


def archive_habit(data: TrackerData, habit_id: str) -> TrackerData:
    return _set_archived(data, habit_id, True)


def unarchive_habit(data: TrackerData, habit_id: str) -> TrackerData:
    return _set_archived(data, habit_id, False)


def delete_habit(data: TrackerData, habit_id: str) -> TrackerData:
    """Drop the definition only; day records keep the habit's history."""
    find_habit(data, habit_id)
    return data.model_copy(update={"habits": [h for h in data.habits if h.id != habit_id]})


# ---------------------------------------------------------------------------
# Tracking fields
# ---------------------------------------------------------------------------

_TIME_RE = re.compile(r"([01]\d|2[0-3]):[0-5]\d")


def _number(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        if re.fullmatch(r"-?\d+", text):
            return int(text)
        number = float(text)
    # no nan or inf (1e999 parses to inf)
    if not math.isfinite(number):
        raise ValueError
    return number


def _text(value: Any) -> Any:
    if not isinstance(value, str):
        raise ValueError
    return value


def _yes_no(value: Any) -> Any:
    if value is True or value == "Yes":
        return "Yes"
    if value is False or value == "No":
        return "No"
    raise ValueError


def _time(value: Any) -> Any:
    if not isinstance(value, str) or not _TIME_RE.fullmatch(value):
        raise ValueError
    return value


def _scale(top: int) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        number = _number(value)
        if number != int(number) or not 1 <= number <= top:
            raise ValueError
        return int(number)
    return check


_VALUE_CHECKS: dict[TrackingFieldType, Callable[[Any], Any]] = {
    TrackingFieldType.number: _number,
    TrackingFieldType.text: _text,
    TrackingFieldType.boolean: _yes_no,
    TrackingFieldType.time: _time,
    TrackingFieldType.scale5: _scale(5),
    TrackingFieldType.scale10: _scale(10),
}


def validate_tracking_value(field_type: TrackingFieldType, value: Any) -> Any:
    """Normalised value for storage, or InvalidTrackingValueError."""
    try:
        return _VALUE_CHECKS[field_type](value)
    except (TypeError, ValueError):
        raise InvalidTrackingValueError(field_type.value, value)


def add_tracking_field(
    data: TrackerData,
    name: str,
    field_type: TrackingFieldType,
    unit: str = "",
    description: str = "",
    now: Optional[datetime] = None,
) -> tuple[TrackerData, TrackingField]:
    field = TrackingField(
        id=_new_id(),
        name=name,
        type=field_type,
        unit=unit,
        description=description,
        created_at=_timestamp(now),
    )
    return data.model_copy(update={"tracking_fields": [*data.tracking_fields, field]}), field


def update_tracking_field(
    data: TrackerData,
    field_id: str,
    name: str,
    field_type: TrackingFieldType,
    unit: str = "",
    description: str = "",
) -> tuple[TrackerData, TrackingField]:
    field = find_tracking_field(data, field_id).model_copy(update={
        "name": name,
        "type": field_type,
        "unit": unit,
        "description": description,
    })
    fields = _replace(data.tracking_fields, field_id, field)
    return data.model_copy(update={"tracking_fields": fields}), field


def delete_tracking_field(data: TrackerData, field_id: str) -> TrackerData:
    """Recorded values stay in the day records."""
    find_tracking_field(data, field_id)
    fields = [f for f in data.tracking_fields if f.id != field_id]
    return data.model_copy(update={"tracking_fields": fields})


# ---------------------------------------------------------------------------
# Day records
# ---------------------------------------------------------------------------

def get_day_record(data: TrackerData, day: DateLike) -> DayRecord:
    """The stored record, or an empty one. Does not insert anything."""
    return data.days.get(format_date(day)) or DayRecord()


def _with_record(data: TrackerData, day: DateLike, record: DayRecord) -> TrackerData:
    return data.model_copy(update={"days": {**data.days, format_date(day): record}})


@dataclass(frozen=True)
class CompletionResult:
    data: TrackerData
    milestone: Optional[int]
    habit: Optional[Habit]


def set_habit_complete(
    data: TrackerData,
    day: DateLike,
    habit_id: str,
    completed: bool,
    today: Optional[DateLike] = None,
    milestones: Sequence[int] = STREAK_MILESTONES,
) -> CompletionResult:
    """
    Record a completion flag and advance build-up progress.

    A milestone is reported only when marking *today* done pushes the
    current streak across a threshold. Re-sending the flag a day already
    has changes nothing.
    """
    now = to_date(today) if today is not None else local_today()
    target = to_date(day)
    record = get_day_record(data, target)
    was_completed = record.habits.get(habit_id) is True
    # Streak before this call: through today if already done, else through yesterday.
    streak_end = now if is_completed(habit_id, data.days, now) else previous_day(now)
    previous_streak = current_streak(habit_id, data.days, streak_end) if streak_end is not None else 0

    habits = list(data.habits)
    habit = next((h for h in habits if h.id == habit_id), None)
    if habit is not None and habit.is_build_up_habit and habit.build_up_config and was_completed != completed:
        habit = habit.model_copy(update={
            "build_up_config": apply_completion(habit.build_up_config, completed),
        })
        habits = _replace(habits, habit_id, habit)

    record = record.model_copy(update={"habits": {**record.habits, habit_id: completed}})
    updated = _with_record(data, target, record).model_copy(update={"habits": habits})

    milestone = None
    if completed and target == now:
        milestone = check_milestone(previous_streak, current_streak(habit_id, updated.days, now), milestones)
    return CompletionResult(data=updated, milestone=milestone, habit=habit)


def set_tracking(data: TrackerData, day: DateLike, field_id: str, value: Any) -> TrackerData:
    """Store a value for a tracking field; None clears it."""
    field = find_tracking_field(data, field_id)
    record = get_day_record(data, day)
    tracking = dict(record.tracking)
    if value is None:
        tracking.pop(field_id, None)
    else:
        tracking[field_id] = validate_tracking_value(field.type, value)
    return _with_record(data, day, record.model_copy(update={"tracking": tracking}))


# ---------------------------------------------------------------------------
# Events & templates
# ---------------------------------------------------------------------------

def add_event(
    data: TrackerData,
    name: str,
    description: str,
    date: str,
    start_time: str,
    duration: int = -1,
    recurrence: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, Event]:
    event = Event(
        id=_new_id(),
        name=name,
        description=description,
        date=format_date(date),
        start_time=start_time,
        duration=duration,
        recurrence=validate_recurrence(recurrence) if recurrence is not None else None,
        created_at=_timestamp(now),
    )
    return data.model_copy(update={"events": [*data.events, event]}), event


def update_event(
    data: TrackerData,
    event_id: str,
    name: str,
    description: str,
    date: str,
    start_time: str,
    duration: int = -1,
    recurrence: Optional[Mapping[str, Any]] = None,
    update_all: bool = True,
    occurrence_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, Event]:
    """
    Edit a whole series (`update_all`), or detach one occurrence into a
    one-time exception event pointing back at the series.
    """
    existing = find_event(data, event_id)
    if update_all:
        event = existing.model_copy(update={
            "name": name,
            "description": description,
            "date": format_date(date),
            "start_time": start_time,
            "duration": duration,
            "recurrence": validate_recurrence(recurrence) if recurrence is not None else None,
        })
        return data.model_copy(update={"events": _replace(data.events, event_id, event)}), event

    exception = Event(
        id=_new_id(),
        name=name,
        description=description,
        date=format_date(date),
        start_time=start_time,
        duration=duration,
        recurrence=None,
        created_at=_timestamp(now),
        parent_event_id=event_id,
        occurrence_date=format_date(occurrence_date or date),
    )
    return data.model_copy(update={"events": [*data.events, exception]}), exception


def delete_event(data: TrackerData, event_id: str) -> TrackerData:
    find_event(data, event_id)
    return data.model_copy(update={"events": [e for e in data.events if e.id != event_id]})


def add_template(
    data: TrackerData,
    name: str,
    description: str = "",
    duration: int = -1,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, Template]:
    template = Template(
        id=_new_id(),
        name=name,
        description=description,
        duration=duration,
        created_at=_timestamp(now),
    )
    return data.model_copy(update={"templates": [*data.templates, template]}), template


def update_template(
    data: TrackerData,
    template_id: str,
    name: str,
    description: str = "",
    duration: int = -1,
) -> tuple[TrackerData, Template]:
    template = find_template(data, template_id).model_copy(update={
        "name": name,
        "description": description,
        "duration": duration,
    })
    return data.model_copy(update={"templates": _replace(data.templates, template_id, template)}), template


def delete_template(data: TrackerData, template_id: str) -> TrackerData:
    find_template(data, template_id)
    return data.model_copy(update={"templates": [t for t in data.templates if t.id != template_id]})


# ---------------------------------------------------------------------------
# Planner timeline
# ---------------------------------------------------------------------------

def _check_time_range(start_time: str, end_time: str) -> None:
    if not (_TIME_RE.fullmatch(start_time) and _TIME_RE.fullmatch(end_time)):
        raise InvalidTimeRangeError(start_time, end_time)
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        raise InvalidTimeRangeError(start_time, end_time)


def find_planner_event(data: TrackerData, event_id: str) -> PlannerEvent:
    return _find(data.planner_events, event_id, "Planner event")


def add_planner_event(
    data: TrackerData,
    day: DateLike,
    start_time: str,
    end_time: str,
    title: str,
    category: str = "other",
    notes: str = "",
    now: Optional[datetime] = None,
) -> tuple[TrackerData, PlannerEvent]:
    _check_time_range(start_time, end_time)
    event = PlannerEvent(
        id=_new_id(),
        date=format_date(day),
        start_time=start_time,
        end_time=end_time,
        title=title,
        category=category,
        notes=notes,
        created_at=_timestamp(now),
    )
    return data.model_copy(update={"planner_events": [*data.planner_events, event]}), event


def update_planner_event(
    data: TrackerData,
    event_id: str,
    start_time: str,
    end_time: str,
    title: str,
    category: str = "other",
    notes: str = "",
) -> tuple[TrackerData, PlannerEvent]:
    """The block stays on its date; only times and text change."""
    existing = find_planner_event(data, event_id)
    _check_time_range(start_time, end_time)
    event = existing.model_copy(update={
        "start_time": start_time,
        "end_time": end_time,
        "title": title,
        "category": category,
        "notes": notes,
    })
    events = _replace(data.planner_events, event_id, event)
    return data.model_copy(update={"planner_events": events}), event


def delete_planner_event(data: TrackerData, event_id: str) -> TrackerData:
    find_planner_event(data, event_id)
    events = [e for e in data.planner_events if e.id != event_id]
    return data.model_copy(update={"planner_events": events})


# ---------------------------------------------------------------------------
# Quick tasks
# ---------------------------------------------------------------------------

def _check_estimate(estimate_minutes: Optional[int]) -> None:
    if estimate_minutes is not None and estimate_minutes <= 0:
        raise InvalidQuickTaskError("estimateMinutes must be a positive number of minutes")


def find_quick_task(data: TrackerData, task_id: str) -> QuickTask:
    return _find(data.quick_tasks, task_id, "Quick task")


def _with_task(data: TrackerData, task: QuickTask) -> tuple[TrackerData, QuickTask]:
    return data.model_copy(update={"quick_tasks": _replace(data.quick_tasks, task.id, task)}), task


def add_quick_task(
    data: TrackerData,
    name: str,
    estimate_minutes: Optional[int] = None,
    flexible: bool = False,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, QuickTask]:
    _check_estimate(estimate_minutes)
    task = QuickTask(
        id=_new_id(),
        name=name,
        estimate_minutes=estimate_minutes,
        flexible=flexible,
        created_at=_timestamp(now),
    )
    return data.model_copy(update={"quick_tasks": [*data.quick_tasks, task]}), task


def update_quick_task(
    data: TrackerData,
    task_id: str,
    name: str,
    estimate_minutes: Optional[int] = None,
    flexible: bool = False,
) -> tuple[TrackerData, QuickTask]:
    """Logged time and completion are kept."""
    existing = find_quick_task(data, task_id)
    _check_estimate(estimate_minutes)
    return _with_task(data, existing.model_copy(update={
        "name": name,
        "estimate_minutes": estimate_minutes,
        "flexible": flexible,
    }))


def log_task_time(
    data: TrackerData,
    task_id: str,
    minutes: int,
    complete: bool = False,
    now: Optional[datetime] = None,
) -> tuple[TrackerData, QuickTask]:
    """Append a progress entry, or a completion entry that also closes the task."""
    existing = find_quick_task(data, task_id)
    if minutes <= 0:
        raise InvalidQuickTaskError("minutes must be a positive number")
    entry = TaskLog(
        minutes=minutes,
        type=TaskLogType.complete if complete else TaskLogType.progress,
        timestamp=_timestamp(now),
    )
    return _with_task(data, existing.model_copy(update={
        "logs": [*existing.logs, entry],
        "completed": existing.completed or complete,
    }))


def restart_quick_task(data: TrackerData, task_id: str) -> tuple[TrackerData, QuickTask]:
    """Reopen a completed task; its time log is kept."""
    return _with_task(data, find_quick_task(data, task_id).model_copy(update={"completed": False}))


def delete_quick_task(data: TrackerData, task_id: str) -> TrackerData:
    find_quick_task(data, task_id)
    return data.model_copy(update={"quick_tasks": [t for t in data.quick_tasks if t.id != task_id]})


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------

_REQUIRED_IMPORT_KEYS = ("habits", "trackingFields", "days")


def import_data(data: TrackerData, imported: Mapping[str, Any]) -> TrackerData:
    """
    Merge an exported document into the snapshot.

    Habits and tracking fields are merged by name (existing names win),
    day records are overwritten per date. Events, templates, planner
    blocks and quick tasks are added when their id is new.
    """
    missing = [k for k in _REQUIRED_IMPORT_KEYS if k not in imported]
    if missing:
        raise InvalidImportError("missing " + ", ".join(missing), {"missing": missing})
    try:
        incoming = TrackerData.model_validate(imported)
    except ValidationError as exc:
        raise InvalidImportError(
            "document does not match the tracker schema",
            {"errors": [e["msg"] for e in exc.errors()]},
        )

    habit_names = {h.name for h in data.habits}
    field_names = {f.name for f in data.tracking_fields}
    event_ids = {e.id for e in data.events}
    template_ids = {t.id for t in data.templates}
    planner_ids = {e.id for e in data.planner_events}
    task_ids = {t.id for t in data.quick_tasks}

    return data.model_copy(update={
        "habits": [*data.habits, *(h for h in incoming.habits if h.name not in habit_names)],
        "tracking_fields": [
            *data.tracking_fields,
            *(f for f in incoming.tracking_fields if f.name not in field_names),
        ],
        "days": {**data.days, **incoming.days},
        "events": [*data.events, *(e for e in incoming.events if e.id not in event_ids)],
        "templates": [*data.templates, *(t for t in incoming.templates if t.id not in template_ids)],
        "planner_events": [
            *data.planner_events,
            *(e for e in incoming.planner_events if e.id not in planner_ids),
        ],
        "quick_tasks": [*data.quick_tasks, *(t for t in incoming.quick_tasks if t.id not in task_ids)],
    })


def export_data(data: TrackerData) -> dict[str, Any]:
    return data.to_json_dict()


def clear_data(data: TrackerData) -> TrackerData:
    return TrackerData(last_modified=data.last_modified)
