"""Shift template model and bulk schedule generation."""

from __future__ import annotations

import re
import sqlite3
from datetime import date, timedelta
from typing import Iterable, Optional

from pydantic import BaseModel, Field, model_validator

from app.clock import HHMM_PATTERN, WEEKDAY_NAMES, OrgCalendar
from app.models.shift import ShiftCreate

DEFAULT_LOCATION = "General"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class ShiftTemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    shift_type_id: int
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    capacity: int = Field(default=1, ge=1, le=1000)
    location: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_end_after_start(self) -> ShiftTemplateCreate:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ShiftTemplate(BaseModel):
    id: int
    name: str
    shift_type_id: int
    start_time: str
    end_time: str
    capacity: int
    location: Optional[str]
    notes: Optional[str]
    is_active: bool


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def _row_to_template(row: sqlite3.Row) -> ShiftTemplate:
    return ShiftTemplate(
        id=row["id"],
        name=row["name"],
        shift_type_id=row["shift_type_id"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        capacity=row["capacity"],
        location=row["location"],
        notes=row["notes"],
        is_active=bool(row["is_active"]),
    )


def create_shift_template(db: sqlite3.Connection, data: ShiftTemplateCreate) -> ShiftTemplate:
    """Insert a new template and return it."""
    cursor = db.execute(
        """INSERT INTO shift_templates
               (name, shift_type_id, start_time, end_time, capacity, location, notes)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            data.name,
            data.shift_type_id,
            data.start_time,
            data.end_time,
            data.capacity,
            data.location,
            data.notes,
        ),
    )
    db.commit()
    row = db.execute(
        "SELECT * FROM shift_templates WHERE id = ?", (cursor.lastrowid,)
    ).fetchone()
    return _row_to_template(row)


def get_active_templates_by_name(
    db: sqlite3.Connection, names: Iterable[str]
) -> list[ShiftTemplate]:
    """Return active templates whose name is in ``names``, in the order given."""
    wanted = list(dict.fromkeys(names))
    if not wanted:
        return []
    placeholders = ", ".join("?" for _ in wanted)
    rows = db.execute(
        f"SELECT * FROM shift_templates WHERE is_active = 1 AND name IN ({placeholders})",
        tuple(wanted),
    ).fetchall()
    by_name = {r["name"]: _row_to_template(r) for r in rows}
    return [by_name[n] for n in wanted if n in by_name]


# ---------------------------------------------------------------------------
# Bulk generation
# ---------------------------------------------------------------------------

def generate_shift_specs(
    templates: list[ShiftTemplate],
    start_date: date,
    end_date: date,
    days: Iterable[str],
    calendar: OrgCalendar,
) -> list[ShiftCreate]:
    """Expand templates over every selected local weekday in
    ``[start_date, end_date]``.

    Only shifts starting strictly after ``calendar.now()`` are kept. Output
    is ordered by day, then by template order. Raises ``ValueError`` for a
    stored template whose times are not a valid same-day range.
    """
    for template in templates:
        if not (
            re.match(HHMM_PATTERN, template.start_time)
            and re.match(HHMM_PATTERN, template.end_time)
            and template.start_time < template.end_time
        ):
            raise ValueError(
                f"Template {template.name!r} has invalid times "
                f"{template.start_time}-{template.end_time}"
            )

    selected = set(days)
    now = calendar.now()
    specs: list[ShiftCreate] = []

    current = start_date
    while current <= end_date:
        if WEEKDAY_NAMES[current.weekday()] in selected:
            for template in templates:
                start = calendar.combine(current, template.start_time)
                end = calendar.combine(current, template.end_time)
                if start <= now:
                    continue
                specs.append(
                    ShiftCreate(
                        shift_type_id=template.shift_type_id,
                        start=start,
                        end=end,
                        location=template.location or DEFAULT_LOCATION,
                        capacity=template.capacity,
                        notes=template.notes,
                    )
                )
        current += timedelta(days=1)

    return specs
