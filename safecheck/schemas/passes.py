"""Scheduled pass result schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ReminderPassResponse(BaseModel):
    timestamp: datetime
    reminders_sent: int
    skipped_quiet_hours: int
    errors: list[str] = Field(default_factory=list)


class EscalationPassResponse(BaseModel):
    timestamp: datetime
    warnings_sent: int
    alerts_sent: int
    subjects_without_contacts: list[int] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
