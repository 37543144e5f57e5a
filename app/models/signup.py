"""Signup domain model: Pydantic schemas and CRUD functions."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from app.db import from_db_timestamp, to_db_timestamp


class SignupStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELED = "CANCELED"
    REGULAR_PENDING = "REGULAR_PENDING"


# Any of these means the volunteer is already committed for that day.
COMMITTED_STATUSES = (
    SignupStatus.CONFIRMED,
    SignupStatus.REGULAR_PENDING,
    SignupStatus.PENDING,
)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class SignupCreate(BaseModel):
    volunteer_id: int
    shift_id: int
    status: SignupStatus = SignupStatus.PENDING


class Signup(BaseModel):
    id: str
    volunteer_id: int
    shift_id: int
    status: SignupStatus
    created_at: datetime
    updated_at: datetime
    canceled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


def new_signup_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def _row_to_signup(row: sqlite3.Row) -> Signup:
    """Convert a sqlite3.Row into a Signup model."""
    return Signup(
        id=row["id"],
        volunteer_id=row["volunteer_id"],
        shift_id=row["shift_id"],
        status=row["status"],
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
        canceled_at=from_db_timestamp(row["canceled_at"]),
        cancellation_reason=row["cancellation_reason"],
    )


def create_signup(db: sqlite3.Connection, data: SignupCreate) -> Signup:
    """Insert a single signup (manual path) and return it."""
    signup_id = new_signup_id()
    db.execute(
        "INSERT INTO signups (id, volunteer_id, shift_id, status) VALUES (?, ?, ?, ?)",
        (signup_id, data.volunteer_id, data.shift_id, data.status.value),
    )
    db.commit()
    row = db.execute("SELECT * FROM signups WHERE id = ?", (signup_id,)).fetchone()
    return _row_to_signup(row)


def insert_signups_batch(db: sqlite3.Connection, signups: list[Signup]) -> None:
    """Insert pre-built signups in one statement batch.

    Does not commit; the caller owns the transaction so a signup chunk and
    its link chunk land together.
    """
    db.executemany(
        """INSERT INTO signups (id, volunteer_id, shift_id, status, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        [
            (
                s.id,
                s.volunteer_id,
                s.shift_id,
                s.status.value,
                to_db_timestamp(s.created_at),
                to_db_timestamp(s.updated_at),
            )
            for s in signups
        ],
    )


def get_signup(db: sqlite3.Connection, signup_id: str) -> Optional[Signup]:
    row = db.execute("SELECT * FROM signups WHERE id = ?", (signup_id,)).fetchone()
    if row is None:
        return None
    return _row_to_signup(row)


def get_signups_by_shift(db: sqlite3.Connection, shift_id: int) -> list[Signup]:
    """Return all signups for a given shift (including canceled)."""
    rows = db.execute(
        "SELECT * FROM signups WHERE shift_id = ? ORDER BY created_at, id",
        (shift_id,),
    ).fetchall()
    return [_row_to_signup(r) for r in rows]


def get_signups_by_volunteer(db: sqlite3.Connection, volunteer_id: int) -> list[Signup]:
    rows = db.execute(
        """
        SELECT s.* FROM signups s
        JOIN shifts sh ON s.shift_id = sh.id
        WHERE s.volunteer_id = ?
        ORDER BY sh.start_at
        """,
        (volunteer_id,),
    ).fetchall()
    return [_row_to_signup(r) for r in rows]


def cancel_signups(
    db: sqlite3.Connection,
    signup_ids: Iterable[str],
    reason: str,
    now: Optional[datetime] = None,
) -> int:
    """Mark signups CANCELED with a reason. Returns the number updated."""
    ids = list(signup_ids)
    if not ids:
        return 0
    stamp = to_db_timestamp(now or datetime.now(timezone.utc))
    placeholders = ", ".join("?" for _ in ids)
    cursor = db.execute(
        f"""
        UPDATE signups
        SET status = ?, canceled_at = ?, cancellation_reason = ?, updated_at = ?
        WHERE id IN ({placeholders})
        """,
        (SignupStatus.CANCELED.value, stamp, reason, stamp, *ids),
    )
    db.commit()
    return cursor.rowcount
