"""Subject state store: snapshots plus conditional, race-safe updates.

Every escalation-state write is guarded by ``state_version``. A pass first
*claims* a subject (version check + short lease), performs its side effects,
then *commits* the transition only if it still holds the lease. Check-in
clears the lease and bumps the version, so an in-flight pass can never
overwrite a fresh episode.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Iterator

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safecheck.core.clock import as_utc
from safecheck.core.errors import (
    StoreConflictError,
    StoreReadError,
    StoreWriteError,
    SubjectNotFoundError,
)
from safecheck.core.quiet_hours import parse_hhmm
from safecheck.core.status import AlertStatus, EscalationState, state_from_columns
from safecheck.models.check_in import CheckInEvent
from safecheck.models.subject import Subject
from safecheck.services.audit import AlertKind, DeliveryStatus, new_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectSnapshot:
    """Immutable view of a subject as read at the start of an evaluation."""

    id: int
    display_name: str | None
    timezone: str
    last_seen_at: datetime
    monitoring_enabled: bool
    inactivity_threshold: timedelta
    grace_period: timedelta
    reminder_interval: timedelta
    quiet_start: time | None
    quiet_end: time | None
    state: EscalationState
    push_token: str | None
    reminded_intervals: int
    version: int
    claim_token: str | None = None
    claimed_at: datetime | None = None


def snapshot_from_row(row: Subject) -> SubjectSnapshot:
    """Convert an ORM row. Raises ValueError if the stored state is inconsistent."""
    try:
        quiet_start = parse_hhmm(row.quiet_start)
        quiet_end = parse_hhmm(row.quiet_end)
    except ValueError as exc:
        # Quiet hours only gate reminders; a bad window must not block escalation
        logger.warning("Subject %s has unusable quiet hours (%s); ignoring them", row.id, exc)
        quiet_start = quiet_end = None
    if (quiet_start is None) != (quiet_end is None):
        # Half-configured window counts as no window
        quiet_start = quiet_end = None

    warning_sent_at = as_utc(row.warning_sent_at) if row.warning_sent_at else None
    return SubjectSnapshot(
        id=row.id,
        display_name=row.full_name,
        timezone=row.timezone or "UTC",
        last_seen_at=as_utc(row.last_seen_at),
        monitoring_enabled=row.monitoring_enabled,
        inactivity_threshold=timedelta(hours=row.inactivity_threshold_hours),
        grace_period=timedelta(hours=row.grace_period_hours),
        reminder_interval=timedelta(hours=row.reminder_frequency_hours),
        quiet_start=quiet_start,
        quiet_end=quiet_end,
        state=state_from_columns(row.alert_status, warning_sent_at),
        push_token=row.push_token or None,
        reminded_intervals=row.reminded_intervals,
        version=row.state_version,
        claim_token=row.claim_token,
        claimed_at=as_utc(row.claimed_at) if row.claimed_at else None,
    )


class SubjectStateStore:
    """Relational store for subject escalation state."""

    def __init__(self, session_factory: Callable[[], Session], claim_ttl: timedelta = timedelta(minutes=5)) -> None:
        self._session_factory = session_factory
        self._claim_ttl = claim_ttl

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            raise StoreReadError(f"{type(exc).__name__}: {exc}") from exc
        finally:
            db.close()

    @contextmanager
    def _writing(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreWriteError(f"{type(exc).__name__}: {exc}") from exc
        finally:
            db.close()

    # ---------- reads ----------

    def monitored_subject_ids(self) -> list[int]:
        """Ids of all subjects with monitoring enabled, in id order."""
        with self._reading() as db:
            stmt = select(Subject.id).where(Subject.monitoring_enabled.is_(True)).order_by(Subject.id)
            return list(db.execute(stmt).scalars().all())

    def load(self, subject_id: int) -> SubjectSnapshot:
        with self._reading() as db:
            row = db.get(Subject, subject_id)
            if row is None:
                raise SubjectNotFoundError(f"Subject {subject_id} not found")
            try:
                return snapshot_from_row(row)
            except ValueError as exc:
                raise StoreReadError(f"Subject {subject_id} has invalid state: {exc}") from exc

    # ---------- escalation transitions ----------

    def claim(self, subject: SubjectSnapshot, now: datetime) -> str:
        """Take the transition lease for subject as observed in the snapshot.

        Raises StoreConflictError if another pass holds a live lease or the
        stored state moved on since the snapshot was taken.
        """
        if subject.claim_token and subject.claimed_at and now - subject.claimed_at < self._claim_ttl:
            raise StoreConflictError(f"Subject {subject.id} is being handled by another pass")

        token = str(uuid.uuid4())
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(
                    Subject.id == subject.id,
                    Subject.state_version == subject.version,
                    Subject.alert_status == subject.state.status.value,
                )
                .values(
                    claim_token=token,
                    claimed_at=now,
                    state_version=Subject.state_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            if result.rowcount != 1:
                raise StoreConflictError(f"Subject {subject.id} changed since it was read")
            db.commit()
        return token

    def release(self, subject_id: int, token: str) -> None:
        """Drop a lease without changing state. A lease already cleared by check-in is fine."""
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(Subject.id == subject_id, Subject.claim_token == token)
                .values(claim_token=None, claimed_at=None)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            db.commit()
        if result.rowcount != 1:
            logger.debug("Lease for subject %s already cleared", subject_id)

    def commit_warning(self, subject_id: int, token: str, now: datetime, message: str) -> None:
        """ok -> warning_sent plus its sent warning record, in one transaction."""
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(
                    Subject.id == subject_id,
                    Subject.claim_token == token,
                    Subject.alert_status == AlertStatus.OK.value,
                )
                .values(
                    alert_status=AlertStatus.WARNING_SENT.value,
                    warning_sent_at=now,
                    claim_token=None,
                    claimed_at=None,
                    state_version=Subject.state_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            if result.rowcount != 1:
                db.rollback()
                raise StoreConflictError(f"Lease on subject {subject_id} lost before warning commit")
            db.add(new_record(subject_id, AlertKind.WARNING, DeliveryStatus.SENT, message, now))
            db.commit()

    def begin_alert(self, subject: SubjectSnapshot, now: datetime, message: str) -> int:
        """warning_sent -> alert_sent plus a pending sms_alert record, in one transaction.

        Runs before any SMS goes out, so once a broadcast starts no later pass
        can start it again. Returns the record id for AuditLog.complete.
        Raises StoreConflictError if the snapshot is stale or leased.
        """
        if subject.claim_token and subject.claimed_at and now - subject.claimed_at < self._claim_ttl:
            raise StoreConflictError(f"Subject {subject.id} is being handled by another pass")

        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(
                    Subject.id == subject.id,
                    Subject.state_version == subject.version,
                    Subject.alert_status == AlertStatus.WARNING_SENT.value,
                )
                .values(
                    alert_status=AlertStatus.ALERT_SENT.value,
                    warning_sent_at=None,
                    claim_token=None,
                    claimed_at=None,
                    state_version=Subject.state_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            if result.rowcount != 1:
                db.rollback()
                raise StoreConflictError(f"Subject {subject.id} changed since it was read")
            record = new_record(subject.id, AlertKind.SMS_ALERT, DeliveryStatus.PENDING, message, None)
            db.add(record)
            db.flush()
            record_id = record.id
            db.commit()
        return record_id

    # ---------- reminder marker ----------

    def claim_reminder(self, subject: SubjectSnapshot, boundary: int) -> None:
        """Mark reminder boundary as sent, if nobody else did since the snapshot."""
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(
                    Subject.id == subject.id,
                    Subject.state_version == subject.version,
                    Subject.reminded_intervals == subject.reminded_intervals,
                    Subject.alert_status == AlertStatus.OK.value,
                )
                .values(reminded_intervals=boundary)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            if result.rowcount != 1:
                raise StoreConflictError(f"Reminder {boundary} for subject {subject.id} already claimed")
            db.commit()

    def release_reminder(self, subject: SubjectSnapshot, boundary: int) -> None:
        """Undo claim_reminder so the next pass retries the boundary.

        Only the marker itself is checked: an escalation pass may have claimed
        and released the subject meanwhile, which moves the version but leaves
        the episode untouched.
        """
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(
                    Subject.id == subject.id,
                    Subject.reminded_intervals == boundary,
                    Subject.alert_status == AlertStatus.OK.value,
                )
                .values(reminded_intervals=subject.reminded_intervals)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            db.commit()
        if result.rowcount != 1:
            logger.info(
                "Reminder %s for subject %s not released; episode moved on since the claim",
                boundary,
                subject.id,
            )

    # ---------- check-in ----------

    def check_in(self, subject_id: int, source: str, now: datetime) -> CheckInEvent:
        """Reset the episode and append a CheckInEvent, in one transaction."""
        with self._writing() as db:
            stmt = (
                update(Subject)
                .where(Subject.id == subject_id)
                .values(
                    last_seen_at=now,
                    alert_status=AlertStatus.OK.value,
                    warning_sent_at=None,
                    reminded_intervals=0,
                    claim_token=None,
                    claimed_at=None,
                    state_version=Subject.state_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            if result.rowcount != 1:
                db.rollback()
                raise SubjectNotFoundError(f"Subject {subject_id} not found")
            event = CheckInEvent(subject_id=subject_id, source=source, created_at=now)
            db.add(event)
            db.commit()
            db.refresh(event)
            db.expunge(event)
            return event
