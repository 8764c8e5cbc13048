"""Pytest fixtures: SQLite database and a frozen clock for fast, isolated tests."""
import os
from datetime import datetime, timedelta

import pytest
import pytz

SQLITE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from cns_network.clock import FixedClock, get_clock  # noqa: E402
from cns_network.database import Base, get_db  # noqa: E402
from cns_network.main import app  # noqa: E402

# Import all models so they register with Base.metadata
from cns_network.models.user import User                  # noqa: F401,E402
from cns_network.models.chapter import Chapter            # noqa: F401,E402
from cns_network.models.connection import Connection      # noqa: F401,E402
from cns_network.models.event import Event                # noqa: F401,E402
from cns_network.models.attendee import EventAttendee     # noqa: F401,E402

NOW = datetime(2031, 3, 1, 12, 0, tzinfo=pytz.utc)


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def clock():
    """Clock frozen at NOW; tests may advance it."""
    return FixedClock(NOW)


@pytest.fixture(scope="function")
def client(db_engine, clock):
    """FastAPI TestClient with the database and clock dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create records via the API, return the JSON response dict
# ---------------------------------------------------------------------------
def as_user(user: dict) -> dict:
    """Request headers identifying ``user`` as the caller."""
    return {"X-User-Id": user["id"]}


def create_test_user(
    client: TestClient,
    first_name: str = "Test",
    last_name: str = "User",
    email: str = None,
    **fields,
) -> dict:
    """Helper: POST /api/users and return response JSON."""
    payload = {
        "email": email or f"{first_name}.{last_name}@cnsnetwork.org".lower(),
        "first_name": first_name,
        "last_name": last_name,
        **fields,
    }
    resp = client.post("/api/users/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_chapter(client: TestClient, name: str = "Lagos Central", city: str = "Lagos") -> dict:
    resp = client.post("/api/chapters/", json={"name": name, "city": city})
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_event(
    client: TestClient,
    organizer: dict,
    title: str = "Networking Breakfast",
    days_ahead: int = 7,
    is_public: bool = True,
    invitees: list = None,
    **fields,
):
    """Helper: POST /api/events as ``organizer``; returns the raw response."""
    start = NOW + timedelta(days=days_ahead)
    payload = {
        "title": title,
        "description": "Monthly members meetup",
        "type": "NETWORKING",
        "date": start.isoformat(),
        "is_public": is_public,
        "invited_user_ids": [u["id"] for u in (invitees or [])],
        **fields,
    }
    return client.post("/api/events/", json=payload, headers=as_user(organizer))


def create_test_event(client: TestClient, organizer: dict, **kwargs) -> dict:
    resp = make_event(client, organizer, **kwargs)
    assert resp.status_code == 201, resp.text
    return resp.json()
