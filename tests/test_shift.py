"""Tests for the shift and shift template domain models."""

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.models.shift import (
    Shift,
    ShiftCreate,
    create_shift,
    create_shifts,
    find_shifts_by_creation_window,
    get_future_shifts,
    get_latest_shift_id,
    get_shifts_between,
)
from app.models.shift_template import (
    DEFAULT_LOCATION,
    ShiftTemplateCreate,
    create_shift_template,
    generate_shift_specs,
    get_active_templates_by_name,
)
from app.models.shift_type import ShiftTypeCreate, create_shift_type


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _spec(shift_type_id: int, start: datetime, location="General") -> ShiftCreate:
    return ShiftCreate(
        shift_type_id=shift_type_id,
        start=start,
        end=start + timedelta(hours=3),
        location=location,
        capacity=2,
    )


# ---------------------------------------------------------------------------
# CRUD tests
# ---------------------------------------------------------------------------

def test_create_shift_returns_all_fields(db: sqlite3.Connection):
    """Create a shift and verify all returned fields."""
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    shift = create_shift(db, _spec(kitchen.id, _utc(2026, 3, 2, 20)))

    assert isinstance(shift, Shift)
    assert shift.id is not None
    assert shift.start == _utc(2026, 3, 2, 20)
    assert shift.end == _utc(2026, 3, 2, 23)
    assert shift.location == "General"
    assert shift.capacity == 2
    assert shift.created_at is not None


def test_latest_shift_id_empty_table(db: sqlite3.Connection):
    assert get_latest_shift_id(db) == 0


def test_create_shifts_and_refetch_only_new_ones(db: sqlite3.Connection):
    """Shifts inserted before the recorded id never come back from the re-fetch."""
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    front = create_shift_type(db, ShiftTypeCreate(name="Front"))
    existing = create_shift(db, _spec(kitchen.id, _utc(2026, 3, 3, 20)))
    after_id = get_latest_shift_id(db)

    inserted = create_shifts(db, [
        _spec(kitchen.id, _utc(2026, 3, 2, 20)),
        _spec(kitchen.id, _utc(2026, 3, 4, 20)),
        _spec(front.id, _utc(2026, 3, 3, 4)),
    ])

    assert inserted == 3
    found = find_shifts_by_creation_window(
        db, after_id, _utc(2026, 3, 2, 20), _utc(2026, 3, 4, 20), {kitchen.id}
    )
    assert [s.start for s in found] == [_utc(2026, 3, 2, 20), _utc(2026, 3, 4, 20)]
    assert existing.id not in {s.id for s in found}


def test_find_shifts_by_creation_window_no_types(db: sqlite3.Connection):
    assert find_shifts_by_creation_window(db, 0, _utc(2026, 3, 1), _utc(2026, 3, 2), []) == []


def test_get_shifts_between_is_half_open(db: sqlite3.Connection):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    create_shift(db, _spec(kitchen.id, _utc(2026, 3, 2, 11)))
    create_shift(db, _spec(kitchen.id, _utc(2026, 3, 3, 11)))

    shifts = get_shifts_between(db, _utc(2026, 3, 2, 11), _utc(2026, 3, 3, 11))

    assert [s.start for s in shifts] == [_utc(2026, 3, 2, 11)]


def test_get_future_shifts_matches_type_and_location(db: sqlite3.Connection):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    front = create_shift_type(db, ShiftTypeCreate(name="Front"))
    now = _utc(2026, 2, 1)
    past = create_shift(db, _spec(kitchen.id, _utc(2026, 1, 20)))
    wanted = create_shift(db, _spec(kitchen.id, _utc(2026, 3, 2)))
    create_shift(db, _spec(kitchen.id, _utc(2026, 3, 3), location="Elsewhere"))
    create_shift(db, _spec(front.id, _utc(2026, 3, 4)))
    unlocated = create_shift(db, _spec(kitchen.id, _utc(2026, 3, 5), location=None))

    assert [s.id for s in get_future_shifts(db, kitchen.id, "General", now)] == [wanted.id]
    assert [s.id for s in get_future_shifts(db, kitchen.id, None, now)] == [unlocated.id]
    earlier = get_future_shifts(db, kitchen.id, "General", _utc(2026, 1, 1))
    assert [s.id for s in earlier] == [past.id, wanted.id]


# ---------------------------------------------------------------------------
# Templates and bulk generation
# ---------------------------------------------------------------------------

def _template(db, name, shift_type_id, start="09:00", end="12:00", location=None):
    return create_shift_template(
        db,
        ShiftTemplateCreate(
            name=name,
            shift_type_id=shift_type_id,
            start_time=start,
            end_time=end,
            capacity=3,
            location=location,
        ),
    )


def test_get_active_templates_keeps_requested_order(db: sqlite3.Connection):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    _template(db, "AM", kitchen.id)
    _template(db, "PM", kitchen.id, start="17:00", end="20:00")

    found = get_active_templates_by_name(db, ["PM", "AM", "Missing"])

    assert [t.name for t in found] == ["PM", "AM"]


def test_generate_shift_specs_selected_days_only(db: sqlite3.Connection, calendar):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    am = _template(db, "AM", kitchen.id)
    pm = _template(db, "PM", kitchen.id, start="17:00", end="20:00", location="Hall")

    specs = generate_shift_specs(
        [am, pm], date(2026, 3, 2), date(2026, 3, 8), ["Monday", "Thursday"], calendar
    )

    assert len(specs) == 4
    assert [calendar.local_date(s.start) for s in specs] == [
        date(2026, 3, 2), date(2026, 3, 2), date(2026, 3, 5), date(2026, 3, 5),
    ]
    assert specs[0].location == DEFAULT_LOCATION
    assert specs[1].location == "Hall"
    assert specs[0].start == calendar.combine(date(2026, 3, 2), "09:00")
    assert specs[1].end == calendar.combine(date(2026, 3, 2), "20:00")


def test_generate_shift_specs_skips_past(db: sqlite3.Connection, calendar):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    am = _template(db, "AM", kitchen.id)
    pm = _template(db, "PM", kitchen.id, start="17:00", end="20:00")

    # The fixed clock sits at 13:00 on Sunday 1 Feb local time.
    specs = generate_shift_specs([am, pm], date(2026, 2, 1), date(2026, 2, 1), ["Sunday"], calendar)

    assert len(specs) == 1
    assert specs[0].start == calendar.combine(date(2026, 2, 1), "17:00")


def test_template_create_requires_end_after_start():
    with pytest.raises(ValidationError):
        ShiftTemplateCreate(name="Backwards", shift_type_id=1, start_time="17:00", end_time="09:00")


def test_generate_shift_specs_rejects_bad_stored_times(db: sqlite3.Connection, calendar):
    kitchen = create_shift_type(db, ShiftTypeCreate(name="Kitchen"))
    db.execute(
        """INSERT INTO shift_templates (name, shift_type_id, start_time, end_time)
           VALUES ('Legacy', ?, '18:00', '09:00')""",
        (kitchen.id,),
    )
    db.commit()
    legacy = get_active_templates_by_name(db, ["Legacy"])

    with pytest.raises(ValueError, match="Legacy"):
        generate_shift_specs(legacy, date(2026, 3, 2), date(2026, 3, 8), ["Monday"], calendar)
