"""
Custom exception hierarchy for the habit tracker API.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The pure calculators (recurrence, streaks, day status) never raise these;
they absorb bad data into "no occurrence / no effect" results. Only
configuration-time validation and the aggregate/storage layer raise.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from app.schemas.common import ErrorDetail

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class TrackerException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidBuildUpConfigError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_BUILD_UP_CONFIG"

    def __init__(self, problems: list[str]):
        super().__init__(
            message="Invalid build-up configuration: " + "; ".join(problems),
            details={"problems": problems},
        )


class InvalidRecurrenceError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_RECURRENCE"

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid recurrence: {reason}",
            details={"reason": reason},
        )


class InvalidTrackingValueError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_TRACKING_VALUE"

    def __init__(self, field_type: str, value: Any):
        super().__init__(
            message=f"Value {value!r} is not valid for a '{field_type}' field.",
            details={"field_type": field_type, "value": value},
        )


class InvalidImportError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_IMPORT"

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Invalid data format: {reason}",
            details=details,
        )


class InvalidTimeRangeError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_TIME_RANGE"

    def __init__(self, start_time: str, end_time: str):
        super().__init__(
            message=f"End time {end_time!r} must be an HH:MM time after start time {start_time!r}.",
            details={"start_time": start_time, "end_time": end_time},
        )


class InvalidQuickTaskError(TrackerException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_QUICK_TASK"

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid quick task: {reason}",
            details={"reason": reason},
        )


class NotFoundError(TrackerException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, kind: str, item_id: str):
        super().__init__(
            message=f"{kind} '{item_id}' does not exist.",
            details={"kind": kind, "id": item_id},
        )


class ConflictError(TrackerException):
    http_status = status.HTTP_409_CONFLICT
    code = "CONFLICT"

    def __init__(self, owner: str, expected_last_modified: int):
        super().__init__(
            message="The tracker document changed since it was loaded. Reload and retry.",
            details={"owner": owner, "expected_last_modified": expected_last_modified},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def tracker_exception_handler(request: Request, exc: TrackerException) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append(ErrorDetail(
            field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
            message=error["msg"],
            type=error["type"],
        ).model_dump())
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
