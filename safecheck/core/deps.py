"""FastAPI dependencies."""

import secrets
from typing import Annotated, Callable

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from safecheck.core.clock import Clock
from safecheck.core.config import settings
from safecheck.core.security import decode_access_token
from safecheck.db.session import SessionLocal, get_db
from safecheck.models.subject import Subject
from safecheck.services.batch import BatchRunner
from safecheck.services.check_in import CheckInHandler
from safecheck.services.factory import build_batch_runner, build_check_in_handler

security = HTTPBearer(auto_error=False)


def get_current_subject(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Subject:
    """Require an authenticated subject. Raises 401 if not authenticated."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # sub is the subject id
    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError):
        subject_id = None
    subject = db.get(Subject, subject_id) if subject_id is not None else None
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Subject not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


def require_cron_secret(x_cron_secret: Annotated[str | None, Header()] = None) -> None:
    """Scheduled pass endpoints are only callable by the cron trigger."""
    if not settings.cron_secret or not x_cron_secret or not secrets.compare_digest(
        x_cron_secret, settings.cron_secret
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_clock() -> Clock:
    return Clock()


def get_check_in_handler(
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CheckInHandler:
    return build_check_in_handler(session_factory, clock=clock)


def get_batch_runner(
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> BatchRunner:
    return build_batch_runner(session_factory, clock=clock)
