"""Audit link between a regular volunteer assignment and the signup it made."""

from __future__ import annotations

import sqlite3
from typing import Optional

from pydantic import BaseModel


class RegularSignup(BaseModel):
    regular_volunteer_id: int
    signup_id: str


def insert_links_batch(db: sqlite3.Connection, links: list[RegularSignup]) -> None:
    """Insert links in one statement batch. Does not commit."""
    db.executemany(
        "INSERT INTO regular_signups (regular_volunteer_id, signup_id) VALUES (?, ?)",
        [(link.regular_volunteer_id, link.signup_id) for link in links],
    )


def get_links_by_regular(
    db: sqlite3.Connection, regular_volunteer_id: int
) -> list[RegularSignup]:
    rows = db.execute(
        "SELECT * FROM regular_signups WHERE regular_volunteer_id = ? ORDER BY id",
        (regular_volunteer_id,),
    ).fetchall()
    return [
        RegularSignup(regular_volunteer_id=r["regular_volunteer_id"], signup_id=r["signup_id"])
        for r in rows
    ]


def get_pending_signup_ids_for_regular(
    db: sqlite3.Connection, regular_volunteer_id: int
) -> list[str]:
    """Ids of this assignment's auto-signups still awaiting review."""
    rows = db.execute(
        """
        SELECT rs.signup_id FROM regular_signups rs
        JOIN signups s ON s.id = rs.signup_id
        WHERE rs.regular_volunteer_id = ?
          AND s.status = 'REGULAR_PENDING'
        ORDER BY rs.id
        """,
        (regular_volunteer_id,),
    ).fetchall()
    return [r["signup_id"] for r in rows]


def get_link_for_signup(db: sqlite3.Connection, signup_id: str) -> Optional[RegularSignup]:
    row = db.execute(
        "SELECT * FROM regular_signups WHERE signup_id = ?", (signup_id,)
    ).fetchone()
    if row is None:
        return None
    return RegularSignup(regular_volunteer_id=row["regular_volunteer_id"], signup_id=row["signup_id"])
