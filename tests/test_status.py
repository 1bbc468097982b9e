"""Escalation state variants and the status/alerts API."""

from datetime import datetime, timedelta, timezone

import pytest

from safecheck.core.errors import StoreReadError
from safecheck.core.status import AlertSent, AlertStatus, Ok, WarningSent, state_from_columns

AT = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def test_state_from_columns():
    assert state_from_columns("ok", None) == Ok()
    assert state_from_columns("warning_sent", AT) == WarningSent(at=AT)
    assert state_from_columns("alert_sent", None) == AlertSent()
    assert WarningSent(at=AT).status is AlertStatus.WARNING_SENT


@pytest.mark.parametrize(
    "alert_status,warning_sent_at",
    [
        ("warning_sent", None),
        ("ok", AT),
        ("alert_sent", AT),
        ("panicking", None),
    ],
)
def test_state_from_columns_rejects_invalid(alert_status, warning_sent_at):
    with pytest.raises(ValueError):
        state_from_columns(alert_status, warning_sent_at)


def test_load_rejects_inconsistent_row(make_subject, store):
    sid = make_subject(alert_status="warning_sent", warning_sent_at=None)
    with pytest.raises(StoreReadError):
        store.load(sid)


def test_corrupt_subject_does_not_stop_pass(runner, make_subject, push, clock):
    bad = make_subject(last_seen_hours_ago=30, alert_status="warning_sent", warning_sent_at=None)
    make_subject(last_seen_hours_ago=30, email="fine@test.com")

    summary = runner.run_escalation_pass(clock.now())

    assert summary.warnings_sent == 1
    assert len(summary.errors) == 1
    assert summary.errors[0].startswith(f"Subject {bad}:")


def test_half_configured_quiet_window_is_ignored(make_subject, store):
    sid = make_subject(quiet_start="23:00", quiet_end=None)
    snapshot = store.load(sid)
    assert snapshot.quiet_start is None
    assert snapshot.quiet_end is None


@pytest.mark.parametrize("quiet_start", ["23:00:00", "7pm", "25:00"])
def test_unparseable_quiet_window_is_ignored(make_subject, store, quiet_start):
    sid = make_subject(quiet_start=quiet_start, quiet_end="07:00")
    snapshot = store.load(sid)
    assert snapshot.quiet_start is None
    assert snapshot.quiet_end is None


# ---------- API ----------


def test_status_me_ok(client, make_subject, auth_headers):
    sid = make_subject(last_seen_hours_ago=20, timezone="Asia/Seoul", quiet_start="23:00", quiet_end="07:00")

    r = client.get("/status/me", headers=auth_headers(sid))

    assert r.status_code == 200
    data = r.json()
    assert data["alert_status"] == "ok"
    assert data["timezone"] == "Asia/Seoul"
    assert data["quiet_start"] == "23:00"
    # last seen 16:00 the day before -> warning due 24h later
    assert data["next_escalation_at"].startswith("2026-03-02T16:00:00")


def test_status_me_warning_sent(client, make_subject, auth_headers, clock):
    sid = make_subject(
        last_seen_hours_ago=25,
        alert_status="warning_sent",
        warning_sent_at=clock.now() - timedelta(minutes=30),
    )

    data = client.get("/status/me", headers=auth_headers(sid)).json()

    assert data["alert_status"] == "warning_sent"
    assert data["next_escalation_at"].startswith("2026-03-02T13:30:00")


def test_status_me_after_alert_or_disabled(client, make_subject, auth_headers):
    alerted = make_subject(last_seen_hours_ago=40, alert_status="alert_sent")
    disabled = make_subject(email="off@test.com", monitoring_enabled=False)

    assert client.get("/status/me", headers=auth_headers(alerted)).json()["next_escalation_at"] is None
    assert client.get("/status/me", headers=auth_headers(disabled)).json()["next_escalation_at"] is None


def test_status_me_requires_auth(client):
    assert client.get("/status/me").status_code == 401


def test_alerts_me_lists_history(client, runner, make_subject, auth_headers, clock):
    sid = make_subject(contacts=("+821011112222", "+821033334444"), last_seen_hours_ago=30)
    runner.run_escalation_pass(clock.now())
    clock.advance(hours=3)
    runner.run_escalation_pass(clock.now())

    r = client.get("/alerts/me", headers=auth_headers(sid))

    assert r.status_code == 200
    records = r.json()
    assert [a["kind"] for a in records] == ["sms_alert", "warning"]
    assert all(a["status"] == "sent" for a in records)
    assert records[0]["message"] == "SMS alert sent to 2 contacts after 33 hours of inactivity"

    r = client.get("/alerts/me?limit=1", headers=auth_headers(sid))
    assert len(r.json()) == 1


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok"}
