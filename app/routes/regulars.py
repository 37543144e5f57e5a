"""Regular volunteer routes: list, create (optionally back-filling signups), pause."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from app.clock import OrgCalendar
from app.models.regular_volunteer import (
    RegularVolunteer,
    RegularVolunteerCreate,
    create_regular_volunteer,
    get_regular_by_volunteer_and_type,
    get_regular_volunteer,
    list_regular_volunteers,
    reactivate_expired_pauses,
)
from app.models.shift import get_future_shifts
from app.models.shift_type import get_shift_type
from app.models.volunteer import get_volunteer
from app.regulars.materializer import auto_signup_for_shifts
from app.regulars.pauses import pause_regular

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/regulars", tags=["regulars"])


def _get_db(request: Request) -> sqlite3.Connection:
    return request.app.state.db


def _get_calendar(request: Request) -> OrgCalendar:
    return request.app.state.calendar


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RegularVolunteerRequest(RegularVolunteerCreate):
    add_to_existing_shifts: bool = False


class RegularCreated(BaseModel):
    regular: RegularVolunteer
    signups_created: int
    auto_signup_error: Optional[str] = None


class PauseRequest(BaseModel):
    is_paused: bool
    paused_until: Optional[datetime] = None
    reason: Optional[str] = None


class PauseResult(BaseModel):
    message: str
    regular: RegularVolunteer
    signups_canceled: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[RegularVolunteer])
def get_regulars(
    include_inactive: bool = Query(False),
    location: Optional[str] = Query(None),
    shift_type_id: Optional[int] = Query(None),
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """List regular volunteers; expired pauses are lifted first."""
    reactivate_expired_pauses(db, calendar.now())
    return list_regular_volunteers(
        db,
        include_inactive=include_inactive,
        location=location,
        shift_type_id=shift_type_id,
    )


@router.post("", status_code=201, response_model=RegularCreated)
def post_regular(
    body: RegularVolunteerRequest,
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """Create a standing assignment.

    With ``add_to_existing_shifts`` the new assignment is matched against
    future shifts of its type and location right away.
    """
    if get_regular_by_volunteer_and_type(db, body.volunteer_id, body.shift_type_id):
        raise HTTPException(
            status_code=409,
            detail="Volunteer is already a regular for this shift type",
        )
    if get_volunteer(db, body.volunteer_id) is None:
        raise HTTPException(status_code=404, detail="Volunteer not found")
    if get_shift_type(db, body.shift_type_id) is None:
        raise HTTPException(status_code=404, detail="Shift type not found")

    data = RegularVolunteerCreate(**body.model_dump(exclude={"add_to_existing_shifts"}))
    regular = create_regular_volunteer(db, data, created_at=calendar.now())

    if not body.add_to_existing_shifts:
        return RegularCreated(regular=regular, signups_created=0)

    shifts = get_future_shifts(db, regular.shift_type_id, regular.location, calendar.now())
    try:
        result = auto_signup_for_shifts(
            db, shifts, calendar, assignments=[regular], honor_auto_approve=True
        )
    except Exception as exc:
        db.rollback()
        logger.exception(f"Back-fill auto-signup failed for regular {regular.id}")
        return RegularCreated(regular=regular, signups_created=0, auto_signup_error=str(exc))

    return RegularCreated(
        regular=regular,
        signups_created=result.signups_created,
        auto_signup_error=result.error,
    )


@router.patch("/{regular_id}/pause", response_model=PauseResult)
def patch_pause(
    regular_id: int,
    body: PauseRequest,
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """Pause or resume; pausing cancels this schedule's pending auto-signups."""
    if get_regular_volunteer(db, regular_id) is None:
        raise HTTPException(status_code=404, detail="Regular volunteer schedule not found")

    regular, canceled = pause_regular(
        db,
        regular_id,
        body.is_paused,
        paused_until=body.paused_until,
        reason=body.reason,
        now=calendar.now(),
    )
    state = "paused" if body.is_paused else "resumed"
    return PauseResult(
        message=f"Regular schedule {state} successfully",
        regular=regular,
        signups_canceled=canceled,
    )
