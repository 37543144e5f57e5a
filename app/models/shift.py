"""Shift domain model: Pydantic schemas, CRUD functions, and helpers."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel

from app.db import from_db_timestamp, to_db_timestamp


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class ShiftCreate(BaseModel):
    shift_type_id: int
    start: datetime
    end: datetime
    location: Optional[str] = None
    capacity: int = 1
    notes: Optional[str] = None


class Shift(BaseModel):
    id: int
    shift_type_id: int
    start: datetime
    end: datetime
    location: Optional[str]
    capacity: int
    notes: Optional[str]
    created_at: datetime


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def _row_to_shift(row: sqlite3.Row) -> Shift:
    """Convert a sqlite3.Row into a Shift model."""
    return Shift(
        id=row["id"],
        shift_type_id=row["shift_type_id"],
        start=from_db_timestamp(row["start_at"]),
        end=from_db_timestamp(row["end_at"]),
        location=row["location"],
        capacity=row["capacity"],
        notes=row["notes"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def _shift_params(data: ShiftCreate) -> tuple:
    return (
        data.shift_type_id,
        to_db_timestamp(data.start),
        to_db_timestamp(data.end),
        data.location,
        data.capacity,
        data.notes,
    )


def create_shift(db: sqlite3.Connection, data: ShiftCreate) -> Shift:
    """Insert a new shift and return it."""
    cursor = db.execute(
        """INSERT INTO shifts (shift_type_id, start_at, end_at, location, capacity, notes)
           VALUES (?, ?, ?, ?, ?, ?)""",
        _shift_params(data),
    )
    db.commit()
    row = db.execute("SELECT * FROM shifts WHERE id = ?", (cursor.lastrowid,)).fetchone()
    return _row_to_shift(row)


def create_shifts(db: sqlite3.Connection, specs: Iterable[ShiftCreate]) -> int:
    """Bulk-insert shifts in one statement batch. Returns the number inserted.

    Generated ids are not returned; use ``find_shifts_by_creation_window``
    with the id recorded by ``get_latest_shift_id`` beforehand.
    """
    params = [_shift_params(s) for s in specs]
    db.executemany(
        """INSERT INTO shifts (shift_type_id, start_at, end_at, location, capacity, notes)
           VALUES (?, ?, ?, ?, ?, ?)""",
        params,
    )
    db.commit()
    return len(params)


def get_shift(db: sqlite3.Connection, shift_id: int) -> Optional[Shift]:
    row = db.execute("SELECT * FROM shifts WHERE id = ?", (shift_id,)).fetchone()
    if row is None:
        return None
    return _row_to_shift(row)


def get_latest_shift_id(db: sqlite3.Connection) -> int:
    """Highest shift id so far (0 when the table is empty)."""
    row = db.execute("SELECT COALESCE(MAX(id), 0) AS max_id FROM shifts").fetchone()
    return row["max_id"]


def find_shifts_by_creation_window(
    db: sqlite3.Connection,
    after_id: int,
    start_from: datetime,
    start_to: datetime,
    shift_type_ids: Iterable[int],
) -> list[Shift]:
    """Re-fetch shifts inserted after ``after_id`` whose start lies in
    ``[start_from, start_to]`` and whose type is one of ``shift_type_ids``.
    """
    type_ids = sorted(set(shift_type_ids))
    if not type_ids:
        return []
    placeholders = ", ".join("?" for _ in type_ids)
    rows = db.execute(
        f"""
        SELECT * FROM shifts
        WHERE id > ?
          AND start_at >= ?
          AND start_at <= ?
          AND shift_type_id IN ({placeholders})
        ORDER BY start_at, id
        """,
        (after_id, to_db_timestamp(start_from), to_db_timestamp(start_to), *type_ids),
    ).fetchall()
    return [_row_to_shift(r) for r in rows]


def get_shifts_between(
    db: sqlite3.Connection, start_from: datetime, start_before: datetime
) -> list[Shift]:
    """Return shifts starting in the half-open range ``[start_from, start_before)``."""
    rows = db.execute(
        "SELECT * FROM shifts WHERE start_at >= ? AND start_at < ? ORDER BY start_at, id",
        (to_db_timestamp(start_from), to_db_timestamp(start_before)),
    ).fetchall()
    return [_row_to_shift(r) for r in rows]


def get_future_shifts(
    db: sqlite3.Connection,
    shift_type_id: int,
    location: Optional[str],
    after: datetime,
) -> list[Shift]:
    """Shifts of one type and location starting strictly after ``after``."""
    rows = db.execute(
        """
        SELECT * FROM shifts
        WHERE shift_type_id = ?
          AND COALESCE(location, '') = ?
          AND start_at > ?
        ORDER BY start_at, id
        """,
        (shift_type_id, location or "", to_db_timestamp(after)),
    ).fetchall()
    return [_row_to_shift(r) for r in rows]
