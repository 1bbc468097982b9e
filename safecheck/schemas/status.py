"""Monitoring status schema."""

from datetime import datetime

from pydantic import BaseModel


class MonitoringStatusResponse(BaseModel):
    subject_id: int
    alert_status: str
    monitoring_enabled: bool
    last_seen_at: datetime
    warning_sent_at: datetime | None
    inactivity_threshold_hours: int
    grace_period_hours: int
    reminder_frequency_hours: int
    quiet_start: str | None
    quiet_end: str | None
    timezone: str
    # When the next escalation step (warning or SMS alert) becomes due
    next_escalation_at: datetime | None
