"""
Build-up habits: a daily goal that ramps from `startValue` to `goalValue`.

Every `daysForIncrement` completions in a row raise `currentValue` by
`incrementValue` (capped at the goal) and restart the counter. Un-marking a
day restarts the counter but keeps any value already granted.
"""
from __future__ import annotations

from typing import Optional

from app.core.errors import InvalidBuildUpConfigError
from app.schemas.tracker import BuildUpConfig, Number


def validate_build_up_config(
    start_value: Number,
    goal_value: Number,
    increment_value: Number,
    days_for_increment: int,
    unit: str = "",
    current_value: Optional[Number] = None,
    current_streak: int = 0,
) -> BuildUpConfig:
    """Build a config, or raise InvalidBuildUpConfigError listing every problem."""
    problems: list[str] = []
    for name, value in (
        ("startValue", start_value),
        ("goalValue", goal_value),
        ("incrementValue", increment_value),
        ("daysForIncrement", days_for_increment),
    ):
        if value is None or value <= 0:
            problems.append(f"{name} must be greater than 0")
    if not problems and goal_value <= start_value:
        problems.append("goalValue must be greater than startValue")
    if problems:
        raise InvalidBuildUpConfigError(problems)

    value = start_value if not current_value else current_value
    return BuildUpConfig(
        start_value=start_value,
        goal_value=goal_value,
        increment_value=increment_value,
        days_for_increment=days_for_increment,
        unit=unit or "",
        current_value=min(max(value, start_value), goal_value),
        current_streak=max(current_streak, 0),
    )


def apply_completion(config: BuildUpConfig, completed: bool) -> BuildUpConfig:
    """Next state after a day is marked done (True) or un-marked (False)."""
    if not completed:
        return config.model_copy(update={"current_streak": 0})
    streak = config.current_streak + 1
    value = config.current_value
    if streak >= config.days_for_increment:
        value = min(value + config.increment_value, config.goal_value)
        streak = 0
    return config.model_copy(update={"current_value": value, "current_streak": streak})


def carry_progress(existing: Optional[BuildUpConfig], new: BuildUpConfig) -> BuildUpConfig:
    """Keep the progress of `existing` when a habit's build-up settings are edited."""
    if existing is None:
        return new
    value = min(max(existing.current_value, new.start_value), new.goal_value)
    return new.model_copy(update={
        "current_value": value,
        "current_streak": existing.current_streak,
    })
