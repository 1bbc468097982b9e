"""Quiet-hours window evaluation."""

from __future__ import annotations

from datetime import time


def parse_hhmm(value: str | None) -> time | None:
    """Parse an "HH:MM" string. Returns None for empty values."""
    if not value:
        return None
    parts = value.split(":")
    if len(parts) != 2:
        raise ValueError(f"Must be HH:MM format, got {value!r}")
    return time(int(parts[0]), int(parts[1]))


def is_quiet(quiet_start: time | None, quiet_end: time | None, local_now: time) -> bool:
    """Return True if local_now falls inside the quiet window.

    Windows where start > end cross midnight (e.g. 23:00-07:00). The start is
    inclusive and the end exclusive, so start == end is an empty window.
    """
    if quiet_start is None or quiet_end is None:
        return False

    now = _minutes(local_now)
    start = _minutes(quiet_start)
    end = _minutes(quiet_end)

    if start > end:
        return now >= start or now < end
    return start <= now < end


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute
