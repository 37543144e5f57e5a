import sqlite3
from datetime import datetime, timezone
from typing import Optional

DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_db_connection(db_path: str = ":memory:") -> sqlite3.Connection:
    """Return a sqlite3 connection with Row factory for dict-like access."""
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def to_db_timestamp(value: datetime) -> str:
    """Format an aware datetime as UTC text matching CURRENT_TIMESTAMP.

    Naive values are assumed to already be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DB_TIMESTAMP_FORMAT)


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored UTC timestamp back into an aware datetime."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def create_tables(conn: sqlite3.Connection) -> None:
    """Create all tables.

    This is called by the shared test fixture so every model's tests
    start with a fully-initialised schema.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS volunteers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT UNIQUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS shift_types (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS shift_templates (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            shift_type_id INTEGER NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            capacity INTEGER NOT NULL DEFAULT 1,
            location TEXT,
            notes TEXT,
            is_active BOOLEAN DEFAULT TRUE,
            FOREIGN KEY (shift_type_id) REFERENCES shift_types(id)
        );

        CREATE TABLE IF NOT EXISTS shifts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            shift_type_id INTEGER NOT NULL,
            start_at TIMESTAMP NOT NULL,
            end_at TIMESTAMP NOT NULL,
            location TEXT,
            capacity INTEGER NOT NULL DEFAULT 1,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (shift_type_id) REFERENCES shift_types(id)
        );

        CREATE INDEX IF NOT EXISTS idx_shifts_start ON shifts(start_at);

        CREATE TABLE IF NOT EXISTS regular_volunteers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            volunteer_id INTEGER NOT NULL,
            shift_type_id INTEGER NOT NULL,
            location TEXT,
            frequency TEXT NOT NULL,
            available_days TEXT NOT NULL DEFAULT '[]',
            is_active BOOLEAN DEFAULT TRUE,
            is_paused_by_user BOOLEAN DEFAULT FALSE,
            paused_until TIMESTAMP,
            auto_approve BOOLEAN DEFAULT FALSE,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (volunteer_id) REFERENCES volunteers(id),
            FOREIGN KEY (shift_type_id) REFERENCES shift_types(id),
            UNIQUE(volunteer_id, shift_type_id)
        );

        CREATE TABLE IF NOT EXISTS signups (
            id TEXT PRIMARY KEY,
            volunteer_id INTEGER NOT NULL,
            shift_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDING' CHECK(status IN (
                'PENDING', 'CONFIRMED', 'WAITLISTED', 'CANCELED', 'REGULAR_PENDING'
            )),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            canceled_at TIMESTAMP,
            cancellation_reason TEXT,
            FOREIGN KEY (volunteer_id) REFERENCES volunteers(id),
            FOREIGN KEY (shift_id) REFERENCES shifts(id)
        );

        CREATE TABLE IF NOT EXISTS regular_signups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            regular_volunteer_id INTEGER NOT NULL,
            signup_id TEXT UNIQUE NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (regular_volunteer_id) REFERENCES regular_volunteers(id),
            FOREIGN KEY (signup_id) REFERENCES signups(id)
        );
        """
    )
