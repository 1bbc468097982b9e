"""Escalation engine: ok -> warning_sent -> alert_sent.

The warning only commits once the push was delivered, so the grace period
never starts on a warning the subject did not get. The final alert commits
before the first SMS, together with a pending record that is settled after
the broadcast: contacts must never be messaged twice, even if a send fails or
the pass dies midway. Failures are recorded for follow-up.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from safecheck.core import policies
from safecheck.core.errors import (
    ConfigurationError,
    GatewayDeliveryError,
    NoContactsError,
    SafeCheckError,
    StoreConflictError,
)
from safecheck.core.status import Ok, WarningSent
from safecheck.services.audit import AlertKind, AuditLog, DeliveryStatus
from safecheck.services.contacts import ContactDirectory
from safecheck.services.gateways import AlertGateway, NotificationGateway
from safecheck.services.state_store import SubjectSnapshot, SubjectStateStore

logger = logging.getLogger(__name__)


class EscalationOutcome(str, enum.Enum):
    NOTHING_DUE = "nothing_due"
    WARNING_SENT = "warning_sent"
    WARNING_FAILED = "warning_failed"
    ALERT_SENT = "alert_sent"
    ALERT_PARTIAL = "alert_partial"
    ALREADY_HANDLED = "already_handled"


@dataclass
class EscalationResult:
    outcome: EscalationOutcome
    failures: list[SafeCheckError] = field(default_factory=list)


def hours_inactive(subject: SubjectSnapshot, now: datetime) -> int:
    return max(0, int((now - subject.last_seen_at).total_seconds() // 3600))


def warning_due(subject: SubjectSnapshot, now: datetime) -> bool:
    return (
        subject.monitoring_enabled
        and isinstance(subject.state, Ok)
        and bool(subject.push_token)
        and now - subject.last_seen_at >= subject.inactivity_threshold
    )


def alert_due(subject: SubjectSnapshot, now: datetime) -> bool:
    return (
        subject.monitoring_enabled
        and isinstance(subject.state, WarningSent)
        and now - subject.state.at >= subject.grace_period
    )


def sms_alert_text(subject: SubjectSnapshot, now: datetime) -> str:
    """Message for trusted contacts, written for someone other than the subject."""
    return policies.SMS_ALERT_BODY.format(
        name=subject.display_name or policies.FALLBACK_DISPLAY_NAME,
        hours=hours_inactive(subject, now),
    )


class EscalationEngine:
    def __init__(
        self,
        store: SubjectStateStore,
        contacts: ContactDirectory,
        notifications: NotificationGateway,
        alerts: AlertGateway,
        audit: AuditLog,
    ) -> None:
        self._store = store
        self._contacts = contacts
        self._notifications = notifications
        self._alerts = alerts
        self._audit = audit

    def process(self, subject: SubjectSnapshot, now: datetime) -> EscalationResult:
        """Advance subject by at most one transition.

        Raises NoContactsError when the alert is due but nobody can receive it.
        """
        if warning_due(subject, now):
            return self._send_warning(subject, now)
        if alert_due(subject, now):
            return self._send_alert(subject, now)
        return EscalationResult(EscalationOutcome.NOTHING_DUE)

    def _send_warning(self, subject: SubjectSnapshot, now: datetime) -> EscalationResult:
        hours = hours_inactive(subject, now)
        try:
            token = self._store.claim(subject, now)
        except StoreConflictError:
            logger.debug("Subject %s already handled by another pass", subject.id)
            return EscalationResult(EscalationOutcome.ALREADY_HANDLED)

        body = policies.WARNING_BODY.format(
            hours=hours,
            grace_hours=int(subject.grace_period.total_seconds() // 3600),
        )
        try:
            self._notifications.send(
                subject.push_token,
                policies.WARNING_TITLE,
                body,
                data=policies.CHECK_IN_ACTION_DATA,
                urgent=True,
            )
        except (ConfigurationError, GatewayDeliveryError) as exc:
            failures: list[SafeCheckError] = [exc]
            try:
                self._store.release(subject.id, token)
            except SafeCheckError:
                # Lease expires on its own after the claim TTL
                logger.exception("Could not release lease on subject %s", subject.id)
            try:
                self._audit.record(
                    subject.id,
                    AlertKind.WARNING,
                    DeliveryStatus.FAILED,
                    f"Warning push failed after {hours} hours of inactivity: {exc}",
                    sent_at=now,
                )
            except SafeCheckError as audit_exc:
                failures.append(audit_exc)
            return EscalationResult(EscalationOutcome.WARNING_FAILED, failures)

        try:
            self._store.commit_warning(
                subject.id, token, now, f"Warning sent after {hours} hours of inactivity"
            )
        except StoreConflictError:
            logger.info("Subject %s checked in while the warning was being sent", subject.id)
            return EscalationResult(EscalationOutcome.ALREADY_HANDLED)

        logger.info("Warning sent to subject %s (inactive %sh)", subject.id, hours)
        return EscalationResult(EscalationOutcome.WARNING_SENT)

    def _send_alert(self, subject: SubjectSnapshot, now: datetime) -> EscalationResult:
        contacts = self._contacts.contacts_for(subject.id)
        if not contacts:
            raise NoContactsError(subject.id)

        hours = hours_inactive(subject, now)
        try:
            record_id = self._store.begin_alert(
                subject,
                now,
                f"SMS alert to {len(contacts)} contacts started after {hours} hours of inactivity",
            )
        except StoreConflictError:
            logger.debug("Subject %s already handled by another pass", subject.id)
            return EscalationResult(EscalationOutcome.ALREADY_HANDLED)

        text = sms_alert_text(subject, now)
        failures: list[SafeCheckError] = []
        failed_ids: list[str] = []
        for contact in contacts:
            try:
                self._alerts.send(contact.phone_number, text)
            except ConfigurationError as exc:
                failures.append(exc)
                failed_ids.append(str(contact.id))
            except GatewayDeliveryError as exc:
                failures.append(GatewayDeliveryError(f"SMS to contact {contact.id} failed: {exc}"))
                failed_ids.append(str(contact.id))

        message = f"SMS alert sent to {len(contacts)} contacts after {hours} hours of inactivity"
        if failed_ids:
            message += f"; {len(failed_ids)} failed (contact ids: {', '.join(failed_ids)})"
        status = DeliveryStatus.FAILED if failures else DeliveryStatus.SENT

        try:
            self._audit.complete(record_id, status, message, sent_at=now)
        except SafeCheckError as exc:
            # State is already alert_sent; the record stays pending
            logger.error("Alert record %s for subject %s left pending: %s", record_id, subject.id, exc)
            failures.append(exc)

        if failed_ids:
            logger.warning(
                "Alert for subject %s reached %s of %s contacts",
                subject.id,
                len(contacts) - len(failed_ids),
                len(contacts),
            )
            return EscalationResult(EscalationOutcome.ALERT_PARTIAL, failures)
        logger.info("Alert sent for subject %s to %s contacts", subject.id, len(contacts))
        return EscalationResult(EscalationOutcome.ALERT_SENT, failures)
