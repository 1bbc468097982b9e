"""Trusted contact model - third party who receives the final SMS alert."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from safecheck.db.base import Base


class TrustedContact(Base):
    """Contact of a subject. Phone number is E.164 normalized."""

    __tablename__ = "trusted_contacts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)  # +821012345678
    country_code: Mapped[str | None] = mapped_column(String(2), nullable=True)  # KR | JP | US ...
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
