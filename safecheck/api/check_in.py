"""Check-in API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from safecheck.core.clock import as_utc
from safecheck.core.deps import get_check_in_handler, get_current_subject
from safecheck.core.errors import StoreWriteError, SubjectNotFoundError
from safecheck.db.session import get_db
from safecheck.models.check_in import CheckInEvent
from safecheck.models.subject import Subject
from safecheck.schemas.check_in import CheckInCreate, CheckInResponse, CheckInResult
from safecheck.services.check_in import CheckInHandler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["check-in"])


@router.post("/check-in", response_model=CheckInResult)
def check_in(
    data: CheckInCreate | None = Body(default=None),
    current_subject: Subject = Depends(get_current_subject),
    handler: CheckInHandler = Depends(get_check_in_handler),
):
    """Record that the subject is okay. Resets any warning or alert in progress."""
    d = data or CheckInCreate()
    try:
        event = handler.check_in(current_subject.id, d.source)
    except SubjectNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    except StoreWriteError:
        logger.exception("Check-in failed for subject %s", current_subject.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update check-in status",
        )
    return CheckInResult(
        checked_in_at=as_utc(event.created_at),
        check_in_record=CheckInResponse.model_validate(event),
    )


@router.get("/check-ins/me", response_model=list[CheckInResponse])
def get_my_check_ins(
    limit: int = Query(default=30, ge=1, le=100),
    db: Session = Depends(get_db),
    current_subject: Subject = Depends(get_current_subject),
):
    """Get current subject's check-ins, newest first. Default limit 30."""
    stmt = (
        select(CheckInEvent)
        .where(CheckInEvent.subject_id == current_subject.id)
        .order_by(desc(CheckInEvent.created_at), desc(CheckInEvent.id))
        .limit(limit)
    )
    result = db.execute(stmt)
    return list(result.scalars().all())
