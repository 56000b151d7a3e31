from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from campus_portal.schemas._time import as_utc


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    time_limit_minutes: int = Field(default=0, ge=0)
    allow_late_submission: bool = False
    max_marks: float = Field(default=100, gt=0)

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, v):
        return as_utc(v)


class AssignmentRecord(BaseModel):
    """Read-only view of an assignment as the engine sees it."""

    id: int
    title: str
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    time_limit_minutes: int = 0
    allow_late_submission: bool = False
    max_marks: float = 100
    created_at: datetime

    @field_validator("deadline", "created_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True
        frozen = True
