"""Quiet hours window tests."""

from datetime import datetime, time, timezone

import pytest

from safecheck.core.clock import Clock
from safecheck.core.quiet_hours import is_quiet, parse_hhmm


def t(value: str) -> time:
    return parse_hhmm(value)


def test_overnight_window_includes_small_hours():
    assert is_quiet(t("23:00"), t("07:00"), t("02:00")) is True


def test_overnight_window_excludes_midday():
    assert is_quiet(t("23:00"), t("07:00"), t("12:00")) is False


def test_same_day_window():
    assert is_quiet(t("01:00"), t("09:00"), t("08:00")) is True
    assert is_quiet(t("01:00"), t("09:00"), t("09:30")) is False


def test_no_window_configured_is_never_quiet():
    assert is_quiet(None, None, t("03:00")) is False
    assert is_quiet(t("23:00"), None, t("23:30")) is False


def test_start_inclusive_end_exclusive():
    assert is_quiet(t("23:00"), t("07:00"), t("23:00")) is True
    assert is_quiet(t("23:00"), t("07:00"), t("07:00")) is False
    assert is_quiet(t("01:00"), t("09:00"), t("01:00")) is True
    assert is_quiet(t("01:00"), t("09:00"), t("09:00")) is False


def test_equal_bounds_is_empty_window():
    assert is_quiet(t("22:00"), t("22:00"), t("22:00")) is False


def test_parse_hhmm_rejects_garbage():
    assert parse_hhmm(None) is None
    assert parse_hhmm("") is None
    with pytest.raises(ValueError):
        parse_hhmm("2300")
    with pytest.raises(ValueError):
        parse_hhmm("25:00")


def test_clock_local_time_uses_subject_timezone():
    """Quiet hours are evaluated on the subject's wall clock, not UTC."""
    instant = datetime(2026, 3, 2, 17, 30, tzinfo=timezone.utc)
    assert Clock().local_time("Asia/Seoul", instant) == time(2, 30)
    assert Clock().local_time("UTC", instant) == time(17, 30)
