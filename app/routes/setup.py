"""Setup routes: shift types and shift templates used by bulk creation."""

from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Request

from app.models.shift_template import ShiftTemplate, ShiftTemplateCreate, create_shift_template
from app.models.shift_type import ShiftType, ShiftTypeCreate, create_shift_type, get_shift_type

router = APIRouter(prefix="/api", tags=["setup"])


def _get_db(request: Request) -> sqlite3.Connection:
    return request.app.state.db


@router.post("/shift-types", status_code=201, response_model=ShiftType)
def add_shift_type(body: ShiftTypeCreate, db: sqlite3.Connection = Depends(_get_db)):
    try:
        return create_shift_type(db, body)
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Shift type already exists")


@router.post("/shift-templates", status_code=201, response_model=ShiftTemplate)
def add_shift_template(body: ShiftTemplateCreate, db: sqlite3.Connection = Depends(_get_db)):
    if get_shift_type(db, body.shift_type_id) is None:
        raise HTTPException(status_code=404, detail="Shift type not found")
    try:
        return create_shift_template(db, body)
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Template name already exists")
