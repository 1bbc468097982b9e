"""SQLAlchemy models."""

from __future__ import annotations

from safecheck.models.alert_record import AlertRecord
from safecheck.models.check_in import CheckInEvent
from safecheck.models.subject import Subject
from safecheck.models.trusted_contact import TrustedContact

__all__ = [
    "AlertRecord",
    "CheckInEvent",
    "Subject",
    "TrustedContact",
]
