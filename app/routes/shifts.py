"""Shift routes: single and bulk creation (with regular auto-signups), day listing."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from app.clock import HHMM_PATTERN, OrgCalendar
from app.models.regular_volunteer import Weekday
from app.models.shift import (
    Shift,
    ShiftCreate,
    create_shift,
    create_shifts,
    find_shifts_by_creation_window,
    get_latest_shift_id,
    get_shifts_between,
)
from app.models.shift_template import generate_shift_specs, get_active_templates_by_name
from app.models.shift_type import get_shift_type
from app.models.signup import get_signups_by_shift
from app.regulars.materializer import auto_signup_for_shifts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shifts", tags=["shifts"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------

class ShiftRequest(BaseModel):
    shift_type_id: int
    date: date
    start_time: str = Field(pattern=HHMM_PATTERN)
    end_time: str = Field(pattern=HHMM_PATTERN)
    location: str = Field(min_length=1)
    capacity: int = Field(ge=1, le=1000)
    notes: Optional[str] = None


class BulkShiftRequest(BaseModel):
    start_date: date
    end_date: date
    days: list[Weekday] = Field(min_length=1)
    templates: list[str] = Field(min_length=1)


class ShiftCreationSummary(BaseModel):
    shifts_created: int
    auto_signups_created: int
    auto_signup_error: Optional[str]
    shifts: list[Shift]


class SignupBrief(BaseModel):
    id: str
    volunteer_id: int
    status: str


class ShiftDetail(BaseModel):
    shift: Shift
    signups: list[SignupBrief]


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def _get_db(request: Request) -> sqlite3.Connection:
    return request.app.state.db


def _get_calendar(request: Request) -> OrgCalendar:
    return request.app.state.calendar


def _run_auto_signup(
    db: sqlite3.Connection, shifts: list[Shift], calendar: OrgCalendar
) -> tuple[int, Optional[str]]:
    """Run the engine after shifts are committed. Failures never undo shifts."""
    try:
        result = auto_signup_for_shifts(db, shifts, calendar)
    except Exception as exc:
        db.rollback()
        logger.exception(f"Auto-signup failed after creating {len(shifts)} shifts")
        return 0, str(exc)
    return result.signups_created, result.error


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", status_code=201, response_model=ShiftCreationSummary)
def post_shift(
    body: ShiftRequest,
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """Create one shift and auto-sign-up matching regular volunteers."""
    if get_shift_type(db, body.shift_type_id) is None:
        raise HTTPException(status_code=404, detail="Shift type not found")

    start = calendar.combine(body.date, body.start_time)
    end = calendar.combine(body.date, body.end_time)
    if end <= start:
        raise HTTPException(status_code=400, detail="End time must be after start time")
    if start <= calendar.now():
        raise HTTPException(status_code=400, detail="Shift must start in the future")

    shift = create_shift(
        db,
        ShiftCreate(
            shift_type_id=body.shift_type_id,
            start=start,
            end=end,
            location=body.location,
            capacity=body.capacity,
            notes=(body.notes or "").strip() or None,
        ),
    )
    created, error = _run_auto_signup(db, [shift], calendar)
    return ShiftCreationSummary(
        shifts_created=1,
        auto_signups_created=created,
        auto_signup_error=error,
        shifts=[shift],
    )


@router.post("/bulk", status_code=201, response_model=ShiftCreationSummary)
def post_bulk_shifts(
    body: BulkShiftRequest,
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """Generate shifts from templates over a date range, then auto-sign-up regulars."""
    if body.end_date < body.start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    templates = get_active_templates_by_name(db, body.templates)
    missing = sorted(set(body.templates) - {t.name for t in templates})
    if missing:
        raise HTTPException(status_code=404, detail=f"Unknown templates: {', '.join(missing)}")

    try:
        specs = generate_shift_specs(
            templates, body.start_date, body.end_date, body.days, calendar
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not specs:
        raise HTTPException(status_code=422, detail="No future shifts to create")

    after_id = get_latest_shift_id(db)
    create_shifts(db, specs)
    shifts = find_shifts_by_creation_window(
        db,
        after_id,
        min(s.start for s in specs),
        max(s.start for s in specs),
        {s.shift_type_id for s in specs},
    )
    logger.info(f"Bulk schedule created {len(shifts)} shifts")

    created, error = _run_auto_signup(db, shifts, calendar)
    return ShiftCreationSummary(
        shifts_created=len(shifts),
        auto_signups_created=created,
        auto_signup_error=error,
        shifts=shifts,
    )


@router.get("", response_model=list[ShiftDetail])
def list_shifts_for_day(
    date: date = Query(..., description="Local date, YYYY-MM-DD"),
    db: sqlite3.Connection = Depends(_get_db),
    calendar: OrgCalendar = Depends(_get_calendar),
):
    """Return shifts starting on a local calendar day with their signups."""
    start, end = calendar.day_range(date, date)
    result = []
    for shift in get_shifts_between(db, start, end):
        signups = [
            SignupBrief(id=s.id, volunteer_id=s.volunteer_id, status=s.status.value)
            for s in get_signups_by_shift(db, shift.id)
        ]
        result.append(ShiftDetail(shift=shift, signups=signups))
    return result
