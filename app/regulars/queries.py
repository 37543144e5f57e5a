"""DB query functions feeding the auto-signup engine.

Each function is a single round trip regardless of how many shifts or
volunteers it covers.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from pydantic import ValidationError

from app.db import from_db_timestamp, to_db_timestamp
from app.models.regular_volunteer import RegularVolunteer, _row_to_regular
from app.models.signup import COMMITTED_STATUSES, SignupStatus
from app.regulars.pure import ExistingSignup, location_key

logger = logging.getLogger(__name__)


def _rows_to_regulars(rows: Iterable[sqlite3.Row]) -> list[RegularVolunteer]:
    """Convert rows, skipping assignments with missing or malformed fields."""
    regulars: list[RegularVolunteer] = []
    for row in rows:
        try:
            regulars.append(_row_to_regular(row))
        except (ValidationError, ValueError) as exc:
            logger.warning(
                f"Regular volunteer {row['id']} has invalid stored fields; skipping: {exc}"
            )
    return regulars


def find_active_assignments(
    db: sqlite3.Connection,
    shift_type_id: int,
    location: Optional[str],
    available_days_any: Iterable[str],
) -> list[RegularVolunteer]:
    """Active, unpaused assignments for a (type, location) that list at least
    one of ``available_days_any``.

    A null location only matches assignments with no location.
    """
    days = sorted(set(available_days_any))
    if not days:
        return []
    placeholders = ", ".join("?" for _ in days)
    rows = db.execute(
        f"""
        SELECT rv.* FROM regular_volunteers rv
        WHERE rv.shift_type_id = ?
          AND COALESCE(rv.location, '') = ?
          AND rv.is_active = 1
          AND rv.is_paused_by_user = 0
          AND EXISTS (
              SELECT 1 FROM json_each(rv.available_days)
              WHERE json_each.value IN ({placeholders})
          )
        ORDER BY rv.id
        """,
        (shift_type_id, location_key(location), *days),
    ).fetchall()
    return _rows_to_regulars(rows)


def find_existing_signups(
    db: sqlite3.Connection,
    volunteer_ids: Iterable[int],
    range_start: datetime,
    range_end: datetime,
    statuses: Iterable[SignupStatus] = COMMITTED_STATUSES,
) -> list[ExistingSignup]:
    """Signups by any of ``volunteer_ids`` on shifts starting in
    ``[range_start, range_end)`` with one of ``statuses``.
    """
    ids = sorted(set(volunteer_ids))
    status_values = [SignupStatus(s).value for s in statuses]
    if not ids or not status_values:
        return []
    id_marks = ", ".join("?" for _ in ids)
    status_marks = ", ".join("?" for _ in status_values)
    rows = db.execute(
        f"""
        SELECT s.volunteer_id, s.shift_id, sh.start_at
        FROM signups s
        JOIN shifts sh ON sh.id = s.shift_id
        WHERE s.volunteer_id IN ({id_marks})
          AND sh.start_at >= ?
          AND sh.start_at < ?
          AND s.status IN ({status_marks})
        """,
        (*ids, to_db_timestamp(range_start), to_db_timestamp(range_end), *status_values),
    ).fetchall()
    return [
        ExistingSignup(r["volunteer_id"], r["shift_id"], from_db_timestamp(r["start_at"]))
        for r in rows
    ]
