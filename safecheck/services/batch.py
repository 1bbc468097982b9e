"""Batch passes over all monitored subjects.

Each subject is evaluated in isolation: whatever goes wrong for one subject
is logged and listed in the pass summary, and the pass carries on. Passes may
overlap; the state store's claims keep them from repeating each other's work.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, TypeVar

from safecheck.core.errors import (
    ConfigurationError,
    GatewayDeliveryError,
    NoContactsError,
    SafeCheckError,
    StoreReadError,
    SubjectNotFoundError,
)
from safecheck.services.escalation import EscalationEngine, EscalationOutcome
from safecheck.services.reminders import ReminderOutcome, ReminderScheduler
from safecheck.services.state_store import SubjectStateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ReminderPassSummary:
    reminders_sent: int = 0
    skipped_quiet_hours: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class EscalationPassSummary:
    warnings_sent: int = 0
    alerts_sent: int = 0
    subjects_without_contacts: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class _FailureReporter:
    """Logs and collects per-subject failures; configuration errors once per gateway."""

    def __init__(self, errors: list[str]) -> None:
        self._errors = errors
        self._misconfigured: set[str] = set()

    def report(self, subject_id: int, exc: BaseException, what: str) -> None:
        if isinstance(exc, ConfigurationError):
            if exc.gateway not in self._misconfigured:
                self._misconfigured.add(exc.gateway)
                logger.error("%s", exc)
                self._errors.append(str(exc))
            return
        if isinstance(exc, GatewayDeliveryError):
            logger.warning("Failed to send %s to subject %s: %s", what, subject_id, exc)
            self._errors.append(f"Failed to send {what} to subject {subject_id}: {exc}")
            return
        if isinstance(exc, SafeCheckError):
            logger.error("Subject %s skipped: %s", subject_id, exc)
        else:
            logger.error("Unexpected error for subject %s", subject_id, exc_info=exc)
        self._errors.append(f"Subject {subject_id}: {exc}")


class BatchRunner:
    def __init__(
        self,
        store: SubjectStateStore,
        reminders: ReminderScheduler,
        escalation: EscalationEngine,
        max_workers: int = 1,
    ) -> None:
        self._store = store
        self._reminders = reminders
        self._escalation = escalation
        self._max_workers = max(1, max_workers)

    def _each_subject(
        self, subject_ids: list[int], work: Callable[[int], T]
    ) -> Iterator[tuple[int, T | None, BaseException | None]]:
        """Run work per subject, yielding (id, result, error). Errors never escape."""

        def guarded(subject_id: int) -> tuple[int, T | None, BaseException | None]:
            try:
                return subject_id, work(subject_id), None
            except Exception as exc:  # noqa: BLE001 - one subject must not stop the pass
                return subject_id, None, exc

        if self._max_workers == 1 or len(subject_ids) <= 1:
            for subject_id in subject_ids:
                yield guarded(subject_id)
            return

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="safecheck-pass") as pool:
            yield from pool.map(guarded, subject_ids)

    def run_reminder_pass(self, now: datetime) -> ReminderPassSummary:
        summary = ReminderPassSummary()
        reporter = _FailureReporter(summary.errors)
        try:
            subject_ids = self._store.monitored_subject_ids()
        except StoreReadError as exc:
            logger.error("Reminder pass could not list subjects: %s", exc)
            summary.errors.append("Failed to query subjects for reminders")
            return summary

        logger.info("Reminder pass over %s subjects", len(subject_ids))

        def work(subject_id: int) -> ReminderOutcome:
            return self._reminders.process(self._store.load(subject_id), now)

        for subject_id, outcome, exc in self._each_subject(subject_ids, work):
            if exc is not None:
                if isinstance(exc, SubjectNotFoundError):
                    continue
                reporter.report(subject_id, exc, "reminder")
            elif outcome is ReminderOutcome.SENT:
                summary.reminders_sent += 1
            elif outcome is ReminderOutcome.QUIET_HOURS:
                summary.skipped_quiet_hours += 1

        logger.info(
            "Reminder pass done: sent=%s quiet=%s errors=%s",
            summary.reminders_sent,
            summary.skipped_quiet_hours,
            len(summary.errors),
        )
        return summary

    def run_escalation_pass(self, now: datetime) -> EscalationPassSummary:
        summary = EscalationPassSummary()
        reporter = _FailureReporter(summary.errors)
        try:
            subject_ids = self._store.monitored_subject_ids()
        except StoreReadError as exc:
            logger.error("Escalation pass could not list subjects: %s", exc)
            summary.errors.append("Failed to query subjects for escalation")
            return summary

        logger.info("Escalation pass over %s subjects", len(subject_ids))

        def work(subject_id: int):
            return self._escalation.process(self._store.load(subject_id), now)

        for subject_id, result, exc in self._each_subject(subject_ids, work):
            if exc is not None:
                if isinstance(exc, SubjectNotFoundError):
                    continue
                if isinstance(exc, NoContactsError):
                    logger.warning("%s; alert cannot be delivered", exc)
                    summary.subjects_without_contacts.append(subject_id)
                    summary.errors.append(str(exc))
                    continue
                reporter.report(subject_id, exc, "escalation")
                continue

            if result.outcome is EscalationOutcome.WARNING_SENT:
                summary.warnings_sent += 1
            elif result.outcome is EscalationOutcome.ALERT_SENT:
                summary.alerts_sent += 1
            what = "warning" if result.outcome is EscalationOutcome.WARNING_FAILED else "SMS alert"
            for failure in result.failures:
                reporter.report(subject_id, failure, what)

        logger.info(
            "Escalation pass done: warnings=%s alerts=%s no_contacts=%s errors=%s",
            summary.warnings_sent,
            summary.alerts_sent,
            len(summary.subjects_without_contacts),
            len(summary.errors),
        )
        return summary
