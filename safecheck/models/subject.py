"""Subject model - a monitored person and their escalation state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from safecheck.core import policies
from safecheck.db.base import Base


class Subject(Base):
    """Monitored person. Created by onboarding with alert_status='ok'."""

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    monitoring_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    inactivity_threshold_hours: Mapped[int] = mapped_column(
        Integer, nullable=False, default=policies.DEFAULT_INACTIVITY_THRESHOLD_HOURS
    )
    grace_period_hours: Mapped[int] = mapped_column(
        Integer, nullable=False, default=policies.DEFAULT_GRACE_PERIOD_HOURS
    )
    reminder_frequency_hours: Mapped[int] = mapped_column(
        Integer, nullable=False, default=policies.DEFAULT_REMINDER_FREQUENCY_HOURS
    )
    quiet_start: Mapped[str | None] = mapped_column(String(5), nullable=True)  # "23:00"
    quiet_end: Mapped[str | None] = mapped_column(String(5), nullable=True)    # "07:00"

    alert_status: Mapped[str] = mapped_column(String(20), nullable=False, default="ok")  # ok | warning_sent | alert_sent
    warning_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    push_token: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Reminder boundaries already pushed for the current episode
    reminded_intervals: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Bumped on every escalation-state write; guards conditional updates
    state_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Lease held by a pass while it sends a warning or alert
    claim_token: Mapped[str | None] = mapped_column(String(36), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
