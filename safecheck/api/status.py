"""Monitoring status API."""

from datetime import timedelta

from fastapi import APIRouter, Depends

from safecheck.core.clock import as_utc
from safecheck.core.deps import get_current_subject
from safecheck.core.status import AlertStatus
from safecheck.models.subject import Subject
from safecheck.schemas.status import MonitoringStatusResponse

router = APIRouter(prefix="/status", tags=["status"])


def _next_escalation_at(subject: Subject):
    if not subject.monitoring_enabled:
        return None
    if subject.alert_status == AlertStatus.OK.value:
        return as_utc(subject.last_seen_at) + timedelta(hours=subject.inactivity_threshold_hours)
    if subject.alert_status == AlertStatus.WARNING_SENT.value and subject.warning_sent_at:
        return as_utc(subject.warning_sent_at) + timedelta(hours=subject.grace_period_hours)
    return None


@router.get("/me", response_model=MonitoringStatusResponse)
def get_my_status(current_subject: Subject = Depends(get_current_subject)):
    """Current escalation status and when the next step is due."""
    s = current_subject
    return MonitoringStatusResponse(
        subject_id=s.id,
        alert_status=s.alert_status,
        monitoring_enabled=s.monitoring_enabled,
        last_seen_at=as_utc(s.last_seen_at),
        warning_sent_at=as_utc(s.warning_sent_at) if s.warning_sent_at else None,
        inactivity_threshold_hours=s.inactivity_threshold_hours,
        grace_period_hours=s.grace_period_hours,
        reminder_frequency_hours=s.reminder_frequency_hours,
        quiet_start=s.quiet_start,
        quiet_end=s.quiet_end,
        timezone=s.timezone,
        next_escalation_at=_next_escalation_at(s),
    )
