"""Alert history schemas."""

from datetime import datetime

from pydantic import BaseModel


class AlertRecordResponse(BaseModel):
    id: int
    subject_id: int
    kind: str
    status: str
    message: str | None
    sent_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
