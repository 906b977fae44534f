"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
import pytest

from app.core.errors import (
    ConflictError,
    InvalidBuildUpConfigError,
    InvalidImportError,
    InvalidQuickTaskError,
    InvalidRecurrenceError,
    InvalidTimeRangeError,
    InvalidTrackingValueError,
    NotFoundError,
    TrackerException,
)


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_invalid_build_up_config(self):
        err = InvalidBuildUpConfigError(["goalValue must be greater than startValue"])
        assert err.http_status == 422
        assert err.code == "INVALID_BUILD_UP_CONFIG"
        assert "goalValue" in err.message
        assert err.to_dict()["details"]["problems"] == ["goalValue must be greater than startValue"]

    def test_invalid_recurrence(self):
        err = InvalidRecurrenceError("interval must be >= 1")
        assert err.http_status == 422
        assert err.code == "INVALID_RECURRENCE"
        assert err.details["reason"] == "interval must be >= 1"

    def test_invalid_tracking_value(self):
        err = InvalidTrackingValueError("scale5", 9)
        assert err.code == "INVALID_TRACKING_VALUE"
        assert "9" in err.message
        assert err.to_dict()["details"] == {"field_type": "scale5", "value": 9}

    def test_invalid_import_without_details(self):
        err = InvalidImportError("missing days")
        d = err.to_dict()
        assert d["code"] == "INVALID_IMPORT"
        assert "details" not in d

    def test_not_found(self):
        err = NotFoundError("Habit", "abc")
        assert err.http_status == 404
        assert err.message == "Habit 'abc' does not exist."

    def test_conflict(self):
        err = ConflictError("alice", 1700)
        assert err.http_status == 409
        assert err.code == "CONFLICT"
        assert err.to_dict()["details"] == {"owner": "alice", "expected_last_modified": 1700}

    def test_invalid_time_range(self):
        err = InvalidTimeRangeError("10:00", "09:00")
        assert err.http_status == 422
        assert err.code == "INVALID_TIME_RANGE"
        assert err.details == {"start_time": "10:00", "end_time": "09:00"}

    def test_invalid_quick_task(self):
        err = InvalidQuickTaskError("minutes must be a positive number")
        assert err.code == "INVALID_QUICK_TASK"
        assert err.details["reason"] == "minutes must be a positive number"

    def test_all_share_base(self):
        for cls in (InvalidBuildUpConfigError, InvalidRecurrenceError, InvalidTrackingValueError,
                    InvalidImportError, NotFoundError,
                    InvalidTimeRangeError, InvalidQuickTaskError, ConflictError):
            assert issubclass(cls, TrackerException)


# ---------------------------------------------------------------------------
# Integration tests on HTTP error responses
# ---------------------------------------------------------------------------

class TestValidationErrors:
    def test_missing_name(self, client):
        r = client.post("/habits", json={})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        fields = [e["field"] for e in body["details"]["errors"]]
        assert any("name" in f for f in fields)

    def test_name_too_long(self, client):
        r = client.post("/habits", json={"name": "x" * 201})
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_bad_query_param(self, client):
        r = client.get("/stats/calendar", params={"month": 13})
        assert r.status_code == 422
        fields = [e["field"] for e in r.json()["details"]["errors"]]
        assert any("month" in f for f in fields)

    @pytest.mark.parametrize("duration", [-2, "long"])
    def test_bad_event_duration(self, client, duration):
        r = client.post("/events", json={
            "name": "Gym", "date": "2024-01-01", "startTime": "07:00", "duration": duration,
        })
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"


class TestNotFound:
    @pytest.mark.parametrize("method,path", [
        ("put", "/tracking-fields/nope/days/2024-01-01"),
        ("delete", "/events/nope"),
        ("delete", "/templates/nope"),
        ("get", "/events/nope/occurrences?start=2024-01-01"),
    ])
    def test_unknown_ids(self, client, method, path):
        kwargs = {"json": {"value": 1}} if method == "put" else {}
        r = getattr(client, method)(path, **kwargs)
        assert r.status_code == 404
        body = r.json()
        assert body["code"] == "NOT_FOUND"
        assert body["details"]["id"] == "nope"

    def test_unknown_habit_completion(self, client):
        r = client.put("/habits/nope/days/2024-01-01", json={"completed": True})
        assert r.status_code == 404
        assert r.json()["details"]["kind"] == "Habit"


class TestConflict:
    def test_stale_write_returns_409(self, client, monkeypatch):
        from app.routers import habits as habits_router
        from app.schemas.tracker import TrackerData

        assert client.post("/habits", json={"name": "Read"}).status_code == 201
        # the handler works on a copy loaded before that habit was saved
        monkeypatch.setattr(habits_router, "load_snapshot", lambda db, owner: TrackerData())
        r = client.post("/habits", json={"name": "Run"})
        assert r.status_code == 409
        assert r.json()["code"] == "CONFLICT"
        monkeypatch.undo()
        assert [h["name"] for h in client.get("/habits").json()] == ["Read"]
