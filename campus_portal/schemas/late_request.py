import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from campus_portal.schemas._time import as_utc


class LateRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_STATUSES = (LateRequestStatus.PENDING, LateRequestStatus.APPROVED)


class LateSubmissionRequest(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    status: LateRequestStatus
    reason: Optional[str] = None
    requested_at: Optional[datetime] = None
    original_deadline: Optional[datetime] = None
    # only meaningful when approved
    extended_deadline: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    admin_notes: Optional[str] = None

    @field_validator("requested_at", "original_deadline", "extended_deadline", "reviewed_at")
    @classmethod
    def _utc(cls, v):
        return as_utc(v)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    class Config:
        from_attributes = True
        frozen = True


class LateRequestCreate(BaseModel):
    student_id: int
    reason: str = Field(min_length=1)


class LateRequestApprove(BaseModel):
    # None = no further time pressure
    extended_deadline: Optional[datetime] = None
    admin_notes: Optional[str] = None
    reviewed_by: str = "Admin"

    @field_validator("extended_deadline")
    @classmethod
    def _deadline_utc(cls, v):
        return as_utc(v)


class LateRequestReject(BaseModel):
    admin_notes: str = Field(min_length=1)
    reviewed_by: str = "Admin"

    @field_validator("admin_notes")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("a reason for rejection is required")
        return v
