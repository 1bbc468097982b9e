"""Wire services together from settings."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import Callable

from sqlalchemy.orm import Session

from safecheck.core.clock import Clock
from safecheck.core.config import settings
from safecheck.services.audit import AuditLog
from safecheck.services.batch import BatchRunner
from safecheck.services.check_in import CheckInHandler
from safecheck.services.contacts import ContactDirectory
from safecheck.services.escalation import EscalationEngine
from safecheck.services.gateways import (
    AlertGateway,
    FcmNotificationGateway,
    NotificationGateway,
    TwilioSmsGateway,
)
from safecheck.services.reminders import ReminderScheduler
from safecheck.services.state_store import SubjectStateStore


@lru_cache
def notification_gateway() -> FcmNotificationGateway:
    return FcmNotificationGateway(
        service_account_json=settings.fcm_service_account_json,
        service_account_file=settings.fcm_service_account_file,
    )


@lru_cache
def alert_gateway() -> TwilioSmsGateway:
    return TwilioSmsGateway(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_phone_number,
        api_base=settings.twilio_api_base,
        timeout=settings.gateway_timeout_seconds,
    )


def build_state_store(session_factory: Callable[[], Session]) -> SubjectStateStore:
    return SubjectStateStore(session_factory, claim_ttl=timedelta(seconds=settings.claim_ttl_seconds))


def build_batch_runner(
    session_factory: Callable[[], Session],
    notifications: NotificationGateway | None = None,
    alerts: AlertGateway | None = None,
    clock: Clock | None = None,
    max_workers: int | None = None,
) -> BatchRunner:
    """Assemble a BatchRunner; gateways default to the configured FCM/Twilio clients."""
    notifications = notifications or notification_gateway()
    alerts = alerts or alert_gateway()
    store = build_state_store(session_factory)
    reminders = ReminderScheduler(store, notifications, clock=clock)
    escalation = EscalationEngine(
        store,
        ContactDirectory(session_factory),
        notifications,
        alerts,
        AuditLog(session_factory),
    )
    return BatchRunner(
        store,
        reminders,
        escalation,
        max_workers=settings.batch_max_workers if max_workers is None else max_workers,
    )


def build_check_in_handler(session_factory: Callable[[], Session], clock: Clock | None = None) -> CheckInHandler:
    return CheckInHandler(build_state_store(session_factory), clock=clock)
