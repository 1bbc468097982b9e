"""Alert history API."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from safecheck.core.deps import get_current_subject
from safecheck.db.session import get_db
from safecheck.models.alert_record import AlertRecord
from safecheck.models.subject import Subject
from safecheck.schemas.alert import AlertRecordResponse

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("/me", response_model=list[AlertRecordResponse])
def list_my_alerts(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_subject: Subject = Depends(get_current_subject),
):
    """Warnings and SMS alerts sent for the current subject, newest first."""
    stmt = (
        select(AlertRecord)
        .where(AlertRecord.subject_id == current_subject.id)
        .order_by(desc(AlertRecord.created_at), desc(AlertRecord.id))
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())
