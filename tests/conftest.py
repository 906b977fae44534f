"""
Shared pytest fixtures.

Uses a file-backed SQLite database; every test gets its own owner id so
tracker documents never leak between tests.
"""
import time
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base, get_db
from app.main import app
from app.models import TrackerSnapshot  # noqa: F401  (registers the table)

SQLITE_URL = "sqlite:///./test_tracker.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def owner() -> str:
    return f"test-{uuid.uuid4().hex}"


@pytest.fixture()
def client(owner):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, headers={"X-Owner-Id": owner}) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def local_timezone(monkeypatch):
    """Switch the process-local timezone (TZ + tzset) for one test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    def switch(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield switch
    monkeypatch.undo()
    time.tzset()
