"""Read-only lookup of a subject's trusted contacts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safecheck.core.errors import StoreReadError
from safecheck.models.trusted_contact import TrustedContact


@dataclass(frozen=True)
class Contact:
    id: int
    name: str
    phone_number: str


class ContactDirectory:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def contacts_for(self, subject_id: int) -> list[Contact]:
        """All trusted contacts of a subject, oldest first."""
        db = self._session_factory()
        try:
            stmt = (
                select(TrustedContact)
                .where(TrustedContact.subject_id == subject_id)
                .order_by(TrustedContact.id)
            )
            rows = db.execute(stmt).scalars().all()
            return [Contact(id=r.id, name=r.name, phone_number=r.phone_number) for r in rows]
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Failed to load contacts for subject {subject_id}: {exc}") from exc
        finally:
            db.close()
