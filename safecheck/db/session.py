"""Database engine and sessions.

Request handlers get a session per request via ``get_db``. The batch passes
and the check-in handler take ``SessionLocal`` itself and open one short
session per read or conditional write.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from safecheck.core.config import settings

connect_args = {}
if settings.database_url.startswith("sqlite"):
    # Pass workers share the engine across threads
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    echo=settings.debug,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Yield a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
