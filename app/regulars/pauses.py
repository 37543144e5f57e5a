from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.base import BaseScheduler

from app.db import get_db_connection
from app.models.regular_signup import get_pending_signup_ids_for_regular
from app.models.regular_volunteer import RegularVolunteer, reactivate_expired_pauses, set_paused
from app.models.signup import cancel_signups

logger = logging.getLogger(__name__)

DEFAULT_PAUSE_REASON = "Regular schedule paused by volunteer"


def schedule_pause_sweep(scheduler: BaseScheduler) -> None:
    minutes = int(os.getenv("PAUSE_SWEEP_MINUTES", "60"))
    scheduler.add_job(
        run_pause_sweep,
        "interval",
        minutes=minutes,
        id="reactivate-expired-pauses",
        replace_existing=True,
    )


def run_pause_sweep() -> None:
    db_path = os.getenv("DB_PATH", "regulars.db")
    db = get_db_connection(db_path)
    try:
        count = reactivate_expired_pauses(db, datetime.now(timezone.utc))
        if count:
            logger.info(f"Reactivated {count} regular volunteers with expired pauses")
    finally:
        db.close()


def pause_regular(
    db: sqlite3.Connection,
    regular_id: int,
    is_paused: bool,
    paused_until: Optional[datetime] = None,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Optional[RegularVolunteer], int]:
    """Pause or resume an assignment.

    Pausing cancels the assignment's auto-signups still awaiting review.
    Returns the updated assignment and the number of signups canceled.
    """
    regular = set_paused(db, regular_id, is_paused, paused_until)
    if regular is None or not is_paused:
        return regular, 0

    pending = get_pending_signup_ids_for_regular(db, regular_id)
    canceled = cancel_signups(db, pending, reason or DEFAULT_PAUSE_REASON, now=now)
    if canceled:
        logger.info(f"Canceled {canceled} pending auto-signups for paused regular {regular_id}")
    return regular, canceled
