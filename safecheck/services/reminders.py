"""Reminder scheduling: at most one push per reminder-interval boundary."""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from zoneinfo import ZoneInfoNotFoundError

from safecheck.core import policies
from safecheck.core.clock import Clock
from safecheck.core.errors import SafeCheckError, StoreConflictError
from safecheck.core.quiet_hours import is_quiet
from safecheck.core.status import Ok
from safecheck.services.gateways import NotificationGateway
from safecheck.services.state_store import SubjectSnapshot, SubjectStateStore

logger = logging.getLogger(__name__)


class ReminderOutcome(str, enum.Enum):
    NOT_DUE = "not_due"
    QUIET_HOURS = "quiet_hours"
    SENT = "sent"
    ALREADY_HANDLED = "already_handled"


def reminder_boundary(subject: SubjectSnapshot, now: datetime) -> int:
    """Number of whole reminder intervals elapsed since the subject was last seen."""
    if subject.reminder_interval.total_seconds() <= 0:
        return 0
    elapsed = now - subject.last_seen_at
    if elapsed.total_seconds() < 0:
        return 0
    return int(elapsed // subject.reminder_interval)


class ReminderScheduler:
    def __init__(self, store: SubjectStateStore, notifications: NotificationGateway, clock: Clock | None = None) -> None:
        self._store = store
        self._notifications = notifications
        self._clock = clock or Clock()

    def in_quiet_hours(self, subject: SubjectSnapshot, now: datetime) -> bool:
        if subject.quiet_start is None or subject.quiet_end is None:
            return False
        try:
            local_now = self._clock.local_time(subject.timezone, now)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r for subject %s; ignoring quiet hours", subject.timezone, subject.id)
            return False
        return is_quiet(subject.quiet_start, subject.quiet_end, local_now)

    def _pending_boundary(self, subject: SubjectSnapshot, now: datetime) -> int:
        """Boundary awaiting a reminder, or 0 when none is owed."""
        if not subject.monitoring_enabled or not isinstance(subject.state, Ok) or not subject.push_token:
            return 0
        boundary = reminder_boundary(subject, now)
        if boundary < 1 or boundary <= subject.reminded_intervals:
            return 0
        return boundary

    def is_reminder_due(self, subject: SubjectSnapshot, now: datetime) -> bool:
        return self._pending_boundary(subject, now) > 0 and not self.in_quiet_hours(subject, now)

    def process(self, subject: SubjectSnapshot, now: datetime) -> ReminderOutcome:
        """Send the reminder if one is due.

        The boundary is claimed before sending so overlapping passes push at
        most once. A failed push gives the boundary back and re-raises.
        """
        boundary = self._pending_boundary(subject, now)
        if not boundary:
            return ReminderOutcome.NOT_DUE
        if self.in_quiet_hours(subject, now):
            return ReminderOutcome.QUIET_HOURS

        try:
            self._store.claim_reminder(subject, boundary)
        except StoreConflictError:
            logger.debug("Reminder %s for subject %s already claimed", boundary, subject.id)
            return ReminderOutcome.ALREADY_HANDLED

        try:
            self._notifications.send(
                subject.push_token,
                policies.REMINDER_TITLE,
                policies.REMINDER_BODY,
                data=policies.CHECK_IN_ACTION_DATA,
            )
        except SafeCheckError:
            try:
                self._store.release_reminder(subject, boundary)
            except SafeCheckError:
                logger.exception("Could not release reminder %s for subject %s", boundary, subject.id)
            raise

        logger.info("Reminder %s sent to subject %s", boundary, subject.id)
        return ReminderOutcome.SENT
