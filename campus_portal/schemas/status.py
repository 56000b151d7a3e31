from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from campus_portal.engine.countdown import CountdownDisplay
from campus_portal.engine.deadline import Active, DeadlineState, Expired
from campus_portal.engine.eligibility import EligibilityReason, EligibilityResult
from campus_portal.schemas.late_request import LateSubmissionRequest


class DeadlineStateRead(BaseModel):
    kind: Literal["unlimited", "active", "expired"]
    until: Optional[datetime] = None
    extended: bool = False

    @classmethod
    def from_state(cls, state: DeadlineState) -> "DeadlineStateRead":
        if isinstance(state, Active):
            return cls(kind=state.kind, until=state.until, extended=state.extended)
        if isinstance(state, Expired):
            return cls(kind=state.kind, extended=state.extended)
        return cls(kind=state.kind)


class EligibilityRead(BaseModel):
    allowed: bool
    reason: EligibilityReason
    # separate affordance: may file a late request even though submit is denied
    can_request_late_submission: bool = False

    @classmethod
    def from_result(cls, result: EligibilityResult) -> "EligibilityRead":
        return cls(
            allowed=result.allowed,
            reason=result.reason,
            can_request_late_submission=result.reason == EligibilityReason.LATE_REQUEST_ELIGIBLE,
        )


class CountdownRead(BaseModel):
    text: str
    urgent: bool
    expired: bool

    @classmethod
    def from_display(cls, display: CountdownDisplay) -> "CountdownRead":
        return cls(text=display.text, urgent=display.urgent, expired=display.expired)


class SubmissionStatusRead(BaseModel):
    assignment_id: int
    student_id: int
    now: datetime
    deadline: DeadlineStateRead
    eligibility: EligibilityRead
    countdown: CountdownRead
    attempts_used: int
    attempts_remaining: int
    late_request: Optional[LateSubmissionRequest] = None
