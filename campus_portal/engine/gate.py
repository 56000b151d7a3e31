import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_portal.core.clock import Clock
from campus_portal.core.config import MAX_ATTEMPTS
from campus_portal.core.errors import (
    AttemptsExceeded,
    InvalidExtendedDeadline,
    LateRequestNotAllowed,
    SubmissionNotAllowed,
)
from campus_portal.db import repository
from campus_portal.engine.countdown import CountdownDisplay, present_countdown
from campus_portal.engine.deadline import DeadlineState, resolve_deadline
from campus_portal.engine.eligibility import (
    EligibilityReason,
    EligibilityResult,
    evaluate_eligibility,
)
from campus_portal.engine.ledger import SubmissionLedger
from campus_portal.schemas.assignment import AssignmentRecord
from campus_portal.schemas.late_request import LateRequestStatus, LateSubmissionRequest
from campus_portal.schemas.submission import SubmissionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionStatus:
    assignment: AssignmentRecord
    late_request: Optional[LateSubmissionRequest]
    state: DeadlineState
    eligibility: EligibilityResult
    countdown: CountdownDisplay
    attempt_count: int
    max_attempts: int
    now: datetime

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempt_count)


class SubmissionGate:
    """
    Reads the three facts (assignment, late request, attempt count) from
    the store, runs them through the pure decision functions, and performs
    the guarded writes.

    Every screen that needs a decision goes through `status`, so the
    student list, the countdown and the submit handler cannot disagree.
    """

    def __init__(self, db: Session, clock: Clock, max_attempts: int = MAX_ATTEMPTS):
        self.db = db
        self.clock = clock
        self.max_attempts = max_attempts

    def status(self, assignment_id: int, student_id: int) -> SubmissionStatus:
        # AssignmentNotFound propagates: unknown assignments are never submittable
        assignment = repository.get_assignment(self.db, assignment_id)
        late_request = repository.get_late_request(self.db, assignment_id, student_id)
        attempt_count = SubmissionLedger(self.db, self.max_attempts).count(assignment_id, student_id)
        now = self.clock.now()

        state = resolve_deadline(assignment, late_request, now)
        eligibility = evaluate_eligibility(
            state,
            attempt_count,
            max_attempts=self.max_attempts,
            allow_late_submission=assignment.allow_late_submission,
            has_active_late_request=late_request is not None and late_request.is_active,
        )

        return SubmissionStatus(
            assignment=assignment,
            late_request=late_request,
            state=state,
            eligibility=eligibility,
            countdown=present_countdown(state, now),
            attempt_count=attempt_count,
            max_attempts=self.max_attempts,
            now=now,
        )

    def submit(self, assignment_id: int, student_id: int, content: Optional[str] = None) -> SubmissionRecord:
        current = self.status(assignment_id, student_id)
        if not current.eligibility.allowed:
            raise SubmissionNotAllowed(current.eligibility.reason)

        deadline = current.assignment.deadline
        is_late = deadline is not None and current.now > deadline

        ledger = SubmissionLedger(self.db, self.max_attempts)
        try:
            index = ledger.record_attempt(assignment_id, student_id)
            row = repository.append_submission(
                self.db,
                assignment_id,
                student_id,
                attempt_index=index,
                submitted_at=current.now,
                content=content,
                is_late=is_late,
            )
            self.db.commit()
        except AttemptsExceeded:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            # the attempt index was taken by a concurrent writer
            self.db.rollback()
            raise AttemptsExceeded(assignment_id, student_id, self.max_attempts) from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(row)
        return SubmissionRecord.model_validate(row)

    def request_late_submission(self, assignment_id: int, student_id: int, reason: str) -> LateSubmissionRequest:
        """File a late request; only offered when eligibility says LATE_REQUEST_ELIGIBLE."""
        current = self.status(assignment_id, student_id)
        if current.eligibility.reason != EligibilityReason.LATE_REQUEST_ELIGIBLE:
            raise LateRequestNotAllowed(current.eligibility.reason)

        request = repository.create_late_request(
            self.db, current.assignment, student_id, reason, current.now
        )
        logger.info(
            "late request %s filed: assignment=%s student=%s",
            request.id,
            assignment_id,
            student_id,
        )
        return request

    def approve(
        self,
        request_id: int,
        extended_deadline: Optional[datetime] = None,
        admin_notes: Optional[str] = None,
        reviewed_by: str = "Admin",
    ) -> LateSubmissionRequest:
        now = self.clock.now()
        if extended_deadline is not None and extended_deadline <= now:
            raise InvalidExtendedDeadline(extended_deadline, now)

        request = repository.review_late_request(
            self.db,
            request_id,
            LateRequestStatus.APPROVED,
            now=now,
            reviewed_by=reviewed_by,
            admin_notes=admin_notes,
            extended_deadline=extended_deadline,
        )
        logger.info(
            "late request %s approved by %s (extended deadline: %s)",
            request_id,
            reviewed_by,
            extended_deadline or "none",
        )
        return request

    def reject(self, request_id: int, admin_notes: str, reviewed_by: str = "Admin") -> LateSubmissionRequest:
        request = repository.review_late_request(
            self.db,
            request_id,
            LateRequestStatus.REJECTED,
            now=self.clock.now(),
            reviewed_by=reviewed_by,
            admin_notes=admin_notes,
        )
        logger.info("late request %s rejected by %s", request_id, reviewed_by)
        return request
