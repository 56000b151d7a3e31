from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from campus_portal.schemas._time import as_utc


class SubmissionCreate(BaseModel):
    student_id: int
    content: Optional[str] = None


class SubmissionRecord(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    attempt_index: int
    content: Optional[str] = None
    submitted_at: datetime
    is_late: bool = False

    @field_validator("submitted_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
        frozen = True
