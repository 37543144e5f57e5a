"""Pure regular-volunteer matching functions: no DB, no app.models CRUD."""

from __future__ import annotations

from collections import namedtuple
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional, Sequence

from app.clock import OrgCalendar
from app.models.regular_volunteer import RegularFrequency, RegularVolunteer
from app.models.shift import Shift


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

MatchingKey = namedtuple("MatchingKey", ["shift_type_id", "location"])
DayKey = namedtuple("DayKey", ["shift_type_id", "location", "weekday"])
ExistingSignup = namedtuple("ExistingSignup", ["volunteer_id", "shift_id", "shift_start"])

ONE_WEEK = timedelta(weeks=1)

_KNOWN_FREQUENCIES = {f.value for f in RegularFrequency}


# ---------------------------------------------------------------------------
# Matching keys
# ---------------------------------------------------------------------------

def location_key(location: Optional[str]) -> str:
    """Null/absent location is the empty-string sentinel, never another name."""
    return location or ""


def build_matching_index(
    shifts: Iterable[Shift], calendar: OrgCalendar
) -> dict[MatchingKey, set[str]]:
    """Group shifts by (shift_type_id, location) -> local weekday names present.

    One entry per distinct key bounds the assignment lookups to the number
    of distinct type/location combinations instead of the number of shifts.
    """
    index: dict[MatchingKey, set[str]] = {}
    for shift in shifts:
        key = MatchingKey(shift.shift_type_id, location_key(shift.location))
        index.setdefault(key, set()).add(calendar.weekday_name(shift.start))
    return index


def shift_day_key(shift: Shift, calendar: OrgCalendar) -> DayKey:
    return DayKey(
        shift.shift_type_id,
        location_key(shift.location),
        calendar.weekday_name(shift.start),
    )


def index_assignments_by_day(
    assignments: Iterable[RegularVolunteer],
) -> dict[DayKey, list[RegularVolunteer]]:
    """Map (type, location, weekday) -> assignments available that day.

    Each assignment appears at most once per key, in input order.
    """
    index: dict[DayKey, list[RegularVolunteer]] = {}
    seen: set[tuple[DayKey, int]] = set()
    for regular in assignments:
        for day in regular.available_days:
            key = DayKey(regular.shift_type_id, location_key(regular.location), day)
            if (key, regular.id) in seen:
                continue
            seen.add((key, regular.id))
            index.setdefault(key, []).append(regular)
    return index


# ---------------------------------------------------------------------------
# Frequency
# ---------------------------------------------------------------------------

def is_known_frequency(frequency: str) -> bool:
    return frequency in _KNOWN_FREQUENCIES


def is_due(regular: RegularVolunteer, shift_start: datetime, calendar: OrgCalendar) -> bool:
    """Whether this occurrence is due under the assignment's frequency.

    Assumes the weekday already matched ``available_days``. Never raises;
    an unrecognised frequency is simply not due.

    - WEEKLY: always.
    - FORTNIGHTLY: even number of whole weeks since ``created_at``.
    - MONTHLY: first occurrence of the shift's local weekday in its month.
    """
    if regular.frequency == RegularFrequency.WEEKLY.value:
        return True
    if regular.frequency == RegularFrequency.FORTNIGHTLY.value:
        weeks_since_creation = (shift_start - regular.created_at) // ONE_WEEK
        return weeks_since_creation % 2 == 0
    if regular.frequency == RegularFrequency.MONTHLY.value:
        local = calendar.local(shift_start)
        first = calendar.first_weekday_in_month(local.year, local.month, local.weekday())
        return local.day == first
    return False


# ---------------------------------------------------------------------------
# Existing-signup dedup index
# ---------------------------------------------------------------------------

def signup_date_range(shifts: Sequence[Shift], calendar: OrgCalendar) -> tuple[datetime, datetime]:
    """Half-open UTC range spanning every local day touched by ``shifts``."""
    days = [calendar.local_date(s.start) for s in shifts]
    return calendar.day_range(min(days), max(days))


def build_existing_signup_index(
    existing: Iterable[ExistingSignup], calendar: OrgCalendar
) -> dict[int, set[date]]:
    """volunteer_id -> local calendar days already claimed."""
    index: dict[int, set[date]] = {}
    for row in existing:
        index.setdefault(row.volunteer_id, set()).add(calendar.local_date(row.shift_start))
    return index


def has_signup_on_day(index: dict[int, set[date]], volunteer_id: int, day: date) -> bool:
    return day in index.get(volunteer_id, ())


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------

def chunk_bounds(total: int, size: int) -> Iterator[tuple[int, int]]:
    """Yield ``(start, stop)`` slice bounds covering ``range(total)``."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, total, size):
        yield start, min(start + size, total)
