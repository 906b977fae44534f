"""
Tests for build-up habit progression.
"""
import pytest

from app.core.errors import InvalidBuildUpConfigError
from app.services.build_up import apply_completion, carry_progress, validate_build_up_config


def _config(**overrides):
    values = dict(start_value=10, goal_value=20, increment_value=5, days_for_increment=3, unit="min")
    values.update(overrides)
    return validate_build_up_config(**values)


class TestValidation:
    def test_starts_at_start_value(self):
        cfg = _config()
        assert cfg.current_value == 10
        assert cfg.current_streak == 0

    def test_goal_must_exceed_start(self):
        with pytest.raises(InvalidBuildUpConfigError) as exc_info:
            _config(goal_value=10)
        assert exc_info.value.details["problems"] == ["goalValue must be greater than startValue"]

    def test_collects_every_non_positive_value(self):
        with pytest.raises(InvalidBuildUpConfigError) as exc_info:
            _config(start_value=0, increment_value=-1)
        problems = exc_info.value.details["problems"]
        assert "startValue must be greater than 0" in problems
        assert "incrementValue must be greater than 0" in problems
        assert exc_info.value.http_status == 422

    def test_current_value_clamped(self):
        assert _config(current_value=50).current_value == 20


class TestApplyCompletion:
    def test_streak_counts_up_then_increments(self):
        cfg = _config(start_value=10, goal_value=20, increment_value=2, days_for_increment=3)
        for _ in range(5):
            cfg = apply_completion(cfg, True)
        # 3rd completion -> 12, streak reset; two more -> streak 2
        assert (cfg.current_value, cfg.current_streak) == (12, 2)

    def test_reaches_goal_and_caps(self):
        cfg = _config(start_value=10, goal_value=15, increment_value=5, days_for_increment=1)
        cfg = apply_completion(cfg, True)
        assert cfg.current_value == 15
        cfg = apply_completion(cfg, True)
        assert cfg.current_value == 15

    def test_uncomplete_resets_streak_keeps_value(self):
        cfg = _config(start_value=10, goal_value=20, increment_value=5, days_for_increment=3)
        for _ in range(3):
            cfg = apply_completion(cfg, True)
        assert (cfg.current_value, cfg.current_streak) == (15, 0)
        cfg = apply_completion(cfg, False)
        assert (cfg.current_value, cfg.current_streak) == (15, 0)

    def test_uncomplete_mid_ramp(self):
        cfg = apply_completion(apply_completion(_config(), True), True)
        assert cfg.current_streak == 2
        assert apply_completion(cfg, False).current_streak == 0


class TestCarryProgress:
    def test_keeps_value_and_streak(self):
        existing = apply_completion(_config(current_value=15), True)
        new = _config(start_value=12, goal_value=30)
        carried = carry_progress(existing, new)
        assert (carried.current_value, carried.current_streak) == (15, 1)
        assert carried.goal_value == 30

    def test_clamps_into_new_range(self):
        existing = _config(current_value=18)
        carried = carry_progress(existing, _config(start_value=5, goal_value=16))
        assert carried.current_value == 16

    def test_no_existing(self):
        new = _config()
        assert carry_progress(None, new) is new
