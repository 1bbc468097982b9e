"""Clock abstraction: current instant and subject-local time of day."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime.

    SQLite hands back naive datetimes; everything we store is UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    """Wall clock. Tests substitute a FixedClock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def local_time(self, tz_name: str, instant: datetime) -> time:
        """Time of day at instant in tz_name.

        Raises zoneinfo.ZoneInfoNotFoundError for unknown identifiers.
        """
        local = as_utc(instant).astimezone(ZoneInfo(tz_name))
        return local.time().replace(second=0, microsecond=0)


class FixedClock(Clock):
    """Clock pinned to a given instant."""

    def __init__(self, instant: datetime) -> None:
        self.instant = as_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> None:
        self.instant = self.instant + timedelta(**delta)
