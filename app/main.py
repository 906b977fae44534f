from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.base import get_db
from app.core.config import settings
from app.core.logging import setup_logging
from app.routers import habits as habits_router
from app.routers import tracking as tracking_router
from app.routers import events as events_router
from app.routers import stats as stats_router
from app.routers import data as data_router
from app.routers import planner as planner_router
from app.routers import quick_tasks as quick_tasks_router
from app.schemas.common import ErrorResponse
from app.core.errors import (
    TrackerException,
    tracker_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

app = FastAPI(
    title="Habit Tracker API",
    description=(
        "**Habits, streaks, tracking fields, recurring events, day planner and quick tasks**\n\n"
        "Each owner (`X-Owner-Id` header) has one tracker document. Day status, "
        "streaks and build-up progress are derived from the day records.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown id."},
        409: {"model": ErrorResponse, "description": "Document changed concurrently; reload and retry."},
        422: {"model": ErrorResponse, "description": "Invalid input."},
    },
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(TrackerException, tracker_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(habits_router.router)
app.include_router(tracking_router.router)
app.include_router(events_router.router)
app.include_router(stats_router.router)
app.include_router(data_router.router)
app.include_router(planner_router.router)
app.include_router(quick_tasks_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
