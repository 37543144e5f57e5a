from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.db import from_db_timestamp


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class VolunteerCreate(BaseModel):
    name: str
    email: Optional[str] = None


class Volunteer(BaseModel):
    id: int
    name: str
    email: Optional[str]
    created_at: datetime


# ---------------------------------------------------------------------------
# CRUD helpers
# ---------------------------------------------------------------------------

def _row_to_volunteer(row: sqlite3.Row) -> Volunteer:
    return Volunteer(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def _normalize_email(email: Optional[str]) -> Optional[str]:
    value = (email or "").strip().lower()
    return value or None


def create_volunteer(db: sqlite3.Connection, data: VolunteerCreate) -> Volunteer:
    """Insert a new volunteer and return the created record."""
    cursor = db.execute(
        "INSERT INTO volunteers (name, email) VALUES (?, ?)",
        (data.name, _normalize_email(data.email)),
    )
    db.commit()
    row = db.execute(
        "SELECT * FROM volunteers WHERE id = ?", (cursor.lastrowid,)
    ).fetchone()
    return _row_to_volunteer(row)


def get_volunteer(db: sqlite3.Connection, volunteer_id: int) -> Optional[Volunteer]:
    row = db.execute("SELECT * FROM volunteers WHERE id = ?", (volunteer_id,)).fetchone()
    if row is None:
        return None
    return _row_to_volunteer(row)


def get_volunteer_by_email(db: sqlite3.Connection, email: str) -> Optional[Volunteer]:
    """Look up a volunteer by (case-insensitive) email. Returns None if not found."""
    normalized = _normalize_email(email)
    if normalized is None:
        return None
    row = db.execute("SELECT * FROM volunteers WHERE email = ?", (normalized,)).fetchone()
    if row is None:
        return None
    return _row_to_volunteer(row)
