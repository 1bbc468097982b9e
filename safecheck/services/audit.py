"""Audit log of warning and SMS alert attempts.

Records are append-only, except that a pending sms_alert record is settled
exactly once, after its broadcast.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safecheck.core.errors import StoreWriteError
from safecheck.models.alert_record import AlertRecord

logger = logging.getLogger(__name__)


class AlertKind(str, enum.Enum):
    WARNING = "warning"
    SMS_ALERT = "sms_alert"


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


def new_record(
    subject_id: int,
    kind: AlertKind,
    status: DeliveryStatus,
    message: str,
    sent_at: datetime | None,
) -> AlertRecord:
    """Build an AlertRecord row; the caller adds it to its session."""
    return AlertRecord(
        subject_id=subject_id,
        kind=kind.value,
        status=status.value,
        message=message,
        sent_at=sent_at,
    )


class AuditLog:
    """Writes standalone records (those not tied to a state transition)."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(
        self,
        subject_id: int,
        kind: AlertKind,
        status: DeliveryStatus,
        message: str,
        sent_at: datetime | None = None,
    ) -> None:
        db = self._session_factory()
        try:
            db.add(new_record(subject_id, kind, status, message, sent_at))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreWriteError(f"Failed to write {kind.value} record for subject {subject_id}: {exc}") from exc
        finally:
            db.close()
        logger.debug("Audit %s/%s for subject %s", kind.value, status.value, subject_id)

    def complete(self, record_id: int, status: DeliveryStatus, message: str, sent_at: datetime) -> None:
        """Settle a pending record. Settled records are never changed again."""
        db = self._session_factory()
        try:
            stmt = (
                update(AlertRecord)
                .where(AlertRecord.id == record_id, AlertRecord.status == DeliveryStatus.PENDING.value)
                .values(status=status.value, message=message, sent_at=sent_at)
                .execution_options(synchronize_session=False)
            )
            result = db.execute(stmt)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreWriteError(f"Failed to settle alert record {record_id}: {exc}") from exc
        finally:
            db.close()
        if result.rowcount != 1:
            logger.warning("Alert record %s was not pending; left unchanged", record_id)
