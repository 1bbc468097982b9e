"""Check-in schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CheckInCreate(BaseModel):
    source: Literal["app_open", "manual", "notification"] = "manual"


class CheckInResponse(BaseModel):
    id: int
    subject_id: int
    source: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CheckInResult(BaseModel):
    checked_in_at: datetime
    check_in_record: CheckInResponse
