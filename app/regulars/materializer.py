"""Auto-signup orchestrator for newly created shifts.

Combines the batched queries with the pure matching functions into a
single ``auto_signup_for_shifts`` entry-point:

1. fetch candidate assignments once per distinct (type, location)
2. per shift, keep assignments available that weekday and due this occurrence
3. drop volunteers already committed on that local calendar day
4. pair every new Signup with its RegularSignup link
5. insert in chunks of ``BATCH_SIZE``, signups then links, one commit per chunk

A failing chunk is rolled back and the remaining chunks are skipped. Chunks
committed before it stay committed; nothing is retried.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from pydantic import BaseModel

from app.clock import OrgCalendar
from app.models.regular_signup import RegularSignup, insert_links_batch
from app.models.regular_volunteer import RegularVolunteer
from app.models.shift import Shift
from app.models.signup import Signup, SignupStatus, insert_signups_batch, new_signup_id
from app.regulars.pure import (
    build_existing_signup_index,
    build_matching_index,
    chunk_bounds,
    has_signup_on_day,
    index_assignments_by_day,
    is_due,
    is_known_frequency,
    shift_day_key,
    signup_date_range,
)
from app.regulars.queries import find_active_assignments, find_existing_signups

logger = logging.getLogger(__name__)

BATCH_SIZE = 500


class AutoSignupPlan(BaseModel):
    """Positionally paired: ``links[i]`` belongs to ``signups[i]``."""

    signups: list[Signup] = []
    links: list[RegularSignup] = []


class AutoSignupResult(BaseModel):
    shifts_considered: int = 0
    assignments_matched: int = 0
    signups_planned: int = 0
    signups_created: int = 0
    failed_chunk: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _warn_integrity(regulars: Iterable[RegularVolunteer]) -> set[int]:
    """Log data-integrity problems; return ids of assignments to skip."""
    skipped: set[int] = set()
    for regular in regulars:
        if not is_known_frequency(regular.frequency):
            logger.warning(
                f"Regular volunteer {regular.id} has unrecognised frequency "
                f"{regular.frequency!r}; skipping"
            )
            skipped.add(regular.id)
        elif not regular.available_days:
            logger.warning(f"Regular volunteer {regular.id} has no available days; skipping")
            skipped.add(regular.id)
    return skipped


def plan_auto_signups(
    shifts: Iterable[Shift],
    assignments: Iterable[RegularVolunteer],
    existing_index: dict,
    calendar: OrgCalendar,
    honor_auto_approve: bool = False,
) -> AutoSignupPlan:
    """Build the (signup, link) pairs to insert. No I/O.

    Shifts are processed by start time then id, and candidates per shift in
    assignment order. Days claimed here count as taken for later shifts, so
    a volunteer gets at most one auto-signup per local day.
    """
    assignments = list(assignments)
    skipped = _warn_integrity(assignments)
    by_day = index_assignments_by_day(a for a in assignments if a.id not in skipped)

    claimed = {volunteer_id: set(days) for volunteer_id, days in existing_index.items()}
    now = calendar.now()
    plan = AutoSignupPlan()

    for shift in sorted(shifts, key=lambda s: (s.start, s.id)):
        shift_day = calendar.local_date(shift.start)
        for regular in by_day.get(shift_day_key(shift, calendar), []):
            if not is_due(regular, shift.start, calendar):
                continue
            if has_signup_on_day(claimed, regular.volunteer_id, shift_day):
                logger.debug(
                    f"Volunteer {regular.volunteer_id} already committed on {shift_day}; "
                    f"skipping shift {shift.id}"
                )
                continue

            if honor_auto_approve and regular.auto_approve:
                status = SignupStatus.CONFIRMED
            else:
                status = SignupStatus.REGULAR_PENDING

            signup_id = new_signup_id()
            plan.signups.append(
                Signup(
                    id=signup_id,
                    volunteer_id=regular.volunteer_id,
                    shift_id=shift.id,
                    status=status,
                    created_at=now,
                    updated_at=now,
                )
            )
            plan.links.append(RegularSignup(regular_volunteer_id=regular.id, signup_id=signup_id))
            claimed.setdefault(regular.volunteer_id, set()).add(shift_day)

    return plan


def persist_plan(
    db: sqlite3.Connection, plan: AutoSignupPlan, batch_size: int = BATCH_SIZE
) -> AutoSignupResult:
    """Insert ``plan`` chunk by chunk and report how far it got."""
    result = AutoSignupResult(signups_planned=len(plan.signups))

    for chunk_no, (start, stop) in enumerate(chunk_bounds(len(plan.signups), batch_size)):
        try:
            insert_signups_batch(db, plan.signups[start:stop])
            insert_links_batch(db, plan.links[start:stop])
            db.commit()
        except sqlite3.Error as exc:
            db.rollback()
            logger.exception(
                f"Auto-signup chunk {chunk_no} ({stop - start} signups) failed; "
                f"{result.signups_created} of {result.signups_planned} already committed"
            )
            result.failed_chunk = chunk_no
            result.error = str(exc)
            return result
        result.signups_created += stop - start

    return result


def auto_signup_for_shifts(
    db: sqlite3.Connection,
    shifts: Iterable[Shift],
    calendar: OrgCalendar,
    *,
    assignments: Optional[list[RegularVolunteer]] = None,
    honor_auto_approve: bool = False,
    batch_size: int = BATCH_SIZE,
) -> AutoSignupResult:
    """Create pending auto-signups for ``shifts`` from matching regulars.

    Pass ``assignments`` to match only those (skips the assignment fetch).
    Query errors propagate; insert errors are reported on the result.
    """
    shifts = list(shifts)
    if not shifts:
        return AutoSignupResult()

    if assignments is None:
        assignments = []
        for key, weekdays in build_matching_index(shifts, calendar).items():
            assignments.extend(
                find_active_assignments(db, key.shift_type_id, key.location, weekdays)
            )

    if not assignments:
        return AutoSignupResult(shifts_considered=len(shifts))

    range_start, range_end = signup_date_range(shifts, calendar)
    existing = find_existing_signups(
        db, {a.volunteer_id for a in assignments}, range_start, range_end
    )
    existing_index = build_existing_signup_index(existing, calendar)

    plan = plan_auto_signups(
        shifts, assignments, existing_index, calendar, honor_auto_approve=honor_auto_approve
    )
    result = persist_plan(db, plan, batch_size=batch_size)
    result.shifts_considered = len(shifts)
    result.assignments_matched = len(assignments)

    logger.info(
        f"Auto-signup over {len(shifts)} shifts: {result.signups_created}/"
        f"{result.signups_planned} signups created"
    )
    return result
