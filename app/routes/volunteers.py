"""Volunteer-related API routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from app.models.signup import Signup, get_signups_by_volunteer
from app.models.volunteer import (
    Volunteer,
    VolunteerCreate,
    create_volunteer,
    get_volunteer,
    get_volunteer_by_email,
)

router = APIRouter(prefix="/api/volunteers", tags=["volunteers"])


@router.post("", status_code=201, response_model=Volunteer)
def add_volunteer(body: VolunteerCreate, request: Request):
    """Register a new volunteer."""
    db = request.app.state.db
    if body.email and get_volunteer_by_email(db, body.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    return create_volunteer(db, body)


@router.get("/{volunteer_id}/signups", response_model=list[Signup])
def get_volunteer_signups(volunteer_id: int, request: Request):
    """Return every signup for a volunteer ordered by shift start."""
    db = request.app.state.db
    if get_volunteer(db, volunteer_id) is None:
        raise HTTPException(status_code=404, detail="Volunteer not found")
    return get_signups_by_volunteer(db, volunteer_id)
