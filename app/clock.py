"""Organisation calendar: every local-date decision goes through here.

Shift starts are stored as absolute UTC instants; weekday, calendar day and
"first X of the month" are all answered in the organisation's timezone, not
the server's and not UTC.
"""

from __future__ import annotations

import os
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Pacific/Auckland"

# Zero-padded 24-hour wall-clock time, 00:00 to 23:59.
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

NowFn = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrgCalendar:
    """Clock + calendar anchored to a fixed organisation timezone.

    ``now_fn`` must return an aware datetime; tests inject a fixed one.
    """

    def __init__(self, tz_name: Optional[str] = None, now_fn: Optional[NowFn] = None) -> None:
        self.tz_name = tz_name or os.getenv("ORG_TIMEZONE", DEFAULT_TIMEZONE)
        self.tz = ZoneInfo(self.tz_name)
        self._now_fn = now_fn or _utc_now

    def now(self) -> datetime:
        return self._now_fn().astimezone(timezone.utc)

    def today(self) -> date:
        return self.local_date(self.now())

    def local(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def local_date(self, instant: datetime) -> date:
        return self.local(instant).date()

    def weekday_name(self, instant: datetime) -> str:
        return WEEKDAY_NAMES[self.local(instant).weekday()]

    @staticmethod
    def first_weekday_in_month(year: int, month: int, weekday: int) -> int:
        """Day-of-month of the first ``weekday`` (0=Mon ... 6=Sun) in the month."""
        first = date(year, month, 1)
        return 1 + (weekday - first.weekday()) % 7

    def combine(self, day: date, hhmm: str) -> datetime:
        """Local wall-clock ``HH:MM`` on ``day`` as an aware UTC instant."""
        if not re.match(HHMM_PATTERN, hhmm):
            raise ValueError(f"Invalid time {hhmm!r}; expected HH:MM between 00:00 and 23:59")
        hour, minute = (int(part) for part in hhmm.split(":"))
        local = datetime.combine(day, time(hour, minute), tzinfo=self.tz)
        return local.astimezone(timezone.utc)

    def day_start(self, day: date) -> datetime:
        """UTC instant of local midnight starting ``day``."""
        return datetime.combine(day, time(0, 0), tzinfo=self.tz).astimezone(timezone.utc)

    def day_range(self, first: date, last: date) -> tuple[datetime, datetime]:
        """Half-open UTC range covering local days ``first`` through ``last``."""
        return self.day_start(first), self.day_start(last + timedelta(days=1))
