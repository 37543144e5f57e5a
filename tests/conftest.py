import pytest
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from app.clock import OrgCalendar
from app.db import get_db_connection, create_tables
from app.main import app

# Sunday 1 Feb 2026, 13:00 in Auckland (NZDT, UTC+13).
FIXED_NOW = datetime(2026, 2, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    """Yield an in-memory SQLite connection with all tables created."""
    conn = get_db_connection(":memory:")
    create_tables(conn)
    yield conn
    conn.close()


@pytest.fixture
def calendar():
    """Organisation calendar pinned to Auckland with a fixed clock."""
    return OrgCalendar("Pacific/Auckland", now_fn=lambda: FIXED_NOW)


@pytest.fixture
def client(db, calendar):
    """TestClient wired to the per-test DB and fixed calendar (no startup hooks)."""
    app.state.db = db
    app.state.calendar = calendar
    return TestClient(app)
