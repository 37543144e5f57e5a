"""Shift type domain model."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.db import from_db_timestamp


class ShiftTypeCreate(BaseModel):
    name: str


class ShiftType(BaseModel):
    id: int
    name: str
    created_at: datetime


def _row_to_shift_type(row: sqlite3.Row) -> ShiftType:
    return ShiftType(
        id=row["id"],
        name=row["name"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def create_shift_type(db: sqlite3.Connection, data: ShiftTypeCreate) -> ShiftType:
    """Insert a new shift type and return it."""
    cursor = db.execute("INSERT INTO shift_types (name) VALUES (?)", (data.name,))
    db.commit()
    row = db.execute("SELECT * FROM shift_types WHERE id = ?", (cursor.lastrowid,)).fetchone()
    return _row_to_shift_type(row)


def get_shift_type(db: sqlite3.Connection, shift_type_id: int) -> Optional[ShiftType]:
    row = db.execute("SELECT * FROM shift_types WHERE id = ?", (shift_type_id,)).fetchone()
    if row is None:
        return None
    return _row_to_shift_type(row)
