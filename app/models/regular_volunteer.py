"""Regular volunteer (standing recurring assignment) model and CRUD."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel

from app.db import from_db_timestamp, to_db_timestamp

Weekday = Literal[
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"
]


class RegularFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    FORTNIGHTLY = "FORTNIGHTLY"
    MONTHLY = "MONTHLY"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class RegularVolunteerCreate(BaseModel):
    volunteer_id: int
    shift_type_id: int
    location: Optional[str] = None
    frequency: RegularFrequency
    available_days: list[Weekday]
    auto_approve: bool = False
    notes: Optional[str] = None


class RegularVolunteer(BaseModel):
    id: int
    volunteer_id: int
    shift_type_id: int
    location: Optional[str]
    # Raw stored value; unknown values are tolerated and treated as never due.
    frequency: str
    available_days: list[str]
    is_active: bool
    is_paused_by_user: bool
    paused_until: Optional[datetime]
    auto_approve: bool
    notes: Optional[str]
    created_at: datetime


# ---------------------------------------------------------------------------
# CRUD helpers
# ---------------------------------------------------------------------------

def _parse_days(raw: Optional[str]) -> list[str]:
    """Decode the stored JSON day list; anything malformed becomes ``[]``."""
    try:
        days = json.loads(raw or "[]")
    except ValueError:
        return []
    if not isinstance(days, list):
        return []
    return [d for d in days if isinstance(d, str)]


def _row_to_regular(row: sqlite3.Row) -> RegularVolunteer:
    return RegularVolunteer(
        id=row["id"],
        volunteer_id=row["volunteer_id"],
        shift_type_id=row["shift_type_id"],
        location=row["location"],
        frequency=row["frequency"],
        available_days=_parse_days(row["available_days"]),
        is_active=bool(row["is_active"]),
        is_paused_by_user=bool(row["is_paused_by_user"]),
        paused_until=from_db_timestamp(row["paused_until"]),
        auto_approve=bool(row["auto_approve"]),
        notes=row["notes"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def create_regular_volunteer(
    db: sqlite3.Connection,
    data: RegularVolunteerCreate,
    created_at: Optional[datetime] = None,
) -> RegularVolunteer:
    """Insert a new assignment and return it.

    ``created_at`` anchors the fortnightly cycle; defaults to the database's
    CURRENT_TIMESTAMP.
    """
    cursor = db.execute(
        """INSERT INTO regular_volunteers
               (volunteer_id, shift_type_id, location, frequency, available_days,
                auto_approve, notes, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, COALESCE(?, CURRENT_TIMESTAMP))""",
        (
            data.volunteer_id,
            data.shift_type_id,
            data.location,
            data.frequency.value,
            json.dumps(list(data.available_days)),
            data.auto_approve,
            data.notes,
            to_db_timestamp(created_at) if created_at is not None else None,
        ),
    )
    db.commit()
    row = db.execute(
        "SELECT * FROM regular_volunteers WHERE id = ?", (cursor.lastrowid,)
    ).fetchone()
    return _row_to_regular(row)


def get_regular_volunteer(
    db: sqlite3.Connection, regular_id: int
) -> Optional[RegularVolunteer]:
    row = db.execute(
        "SELECT * FROM regular_volunteers WHERE id = ?", (regular_id,)
    ).fetchone()
    if row is None:
        return None
    return _row_to_regular(row)


def get_regular_by_volunteer_and_type(
    db: sqlite3.Connection, volunteer_id: int, shift_type_id: int
) -> Optional[RegularVolunteer]:
    row = db.execute(
        "SELECT * FROM regular_volunteers WHERE volunteer_id = ? AND shift_type_id = ?",
        (volunteer_id, shift_type_id),
    ).fetchone()
    if row is None:
        return None
    return _row_to_regular(row)


def list_regular_volunteers(
    db: sqlite3.Connection,
    include_inactive: bool = False,
    location: Optional[str] = None,
    shift_type_id: Optional[int] = None,
) -> list[RegularVolunteer]:
    """List assignments, newest first.

    By default only active, unpaused assignments are returned.
    """
    clauses: list[str] = []
    params: list = []
    if not include_inactive:
        clauses.append("is_active = 1 AND is_paused_by_user = 0")
    if location is not None:
        clauses.append("location = ?")
        params.append(location)
    if shift_type_id is not None:
        clauses.append("shift_type_id = ?")
        params.append(shift_type_id)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = db.execute(
        f"SELECT * FROM regular_volunteers {where} ORDER BY created_at DESC, id DESC",
        tuple(params),
    ).fetchall()
    return [_row_to_regular(r) for r in rows]


def set_paused(
    db: sqlite3.Connection,
    regular_id: int,
    is_paused: bool,
    paused_until: Optional[datetime] = None,
) -> Optional[RegularVolunteer]:
    """Pause or resume an assignment. Resuming clears ``paused_until``."""
    db.execute(
        "UPDATE regular_volunteers SET is_paused_by_user = ?, paused_until = ? WHERE id = ?",
        (
            is_paused,
            to_db_timestamp(paused_until) if is_paused and paused_until else None,
            regular_id,
        ),
    )
    db.commit()
    return get_regular_volunteer(db, regular_id)


def reactivate_expired_pauses(db: sqlite3.Connection, now: datetime) -> int:
    """Un-pause assignments whose ``paused_until`` has passed. Returns the count."""
    cursor = db.execute(
        """
        UPDATE regular_volunteers
        SET is_paused_by_user = 0, paused_until = NULL
        WHERE is_paused_by_user = 1
          AND paused_until IS NOT NULL
          AND paused_until < ?
        """,
        (to_db_timestamp(now),),
    )
    db.commit()
    return cursor.rowcount
