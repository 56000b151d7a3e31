"""
Persistence collaborator backed by SQLAlchemy.

Reads return the pydantic value objects the engine consumes; ORM rows do
not leave this module.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_portal.core.errors import (
    AssignmentNotFound,
    InvalidReviewTransition,
    LateRequestNotAllowed,
    LateRequestNotFound,
)
from campus_portal.engine.eligibility import EligibilityReason
from campus_portal.engine.ledger import SubmissionLedger
from campus_portal.models.assignment import Assignment
from campus_portal.models.late_request import LateRequest
from campus_portal.models.submission import Submission
from campus_portal.schemas.assignment import AssignmentCreate, AssignmentRecord
from campus_portal.schemas.late_request import (
    ACTIVE_STATUSES,
    LateRequestStatus,
    LateSubmissionRequest,
)
from campus_portal.schemas.submission import SubmissionRecord

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = {s.value for s in ACTIVE_STATUSES}


# ---- assignments ----

def get_assignment(db: Session, assignment_id: int) -> AssignmentRecord:
    a = db.get(Assignment, assignment_id)
    if a is None:
        raise AssignmentNotFound(assignment_id)
    return AssignmentRecord.model_validate(a)


def create_assignment(db: Session, payload: AssignmentCreate, now: datetime) -> AssignmentRecord:
    deadline = payload.deadline
    # a bare time limit becomes a concrete deadline at creation time
    if deadline is None and payload.time_limit_minutes > 0:
        deadline = now + timedelta(minutes=payload.time_limit_minutes)

    a = Assignment(
        title=payload.title,
        description=payload.description,
        deadline=deadline,
        time_limit_minutes=payload.time_limit_minutes,
        allow_late_submission=payload.allow_late_submission,
        max_marks=payload.max_marks,
        created_at=now,
    )
    db.add(a)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    logger.info("assignment %s created (deadline=%s)", a.id, a.deadline)
    return AssignmentRecord.model_validate(a)


# ---- late submission requests ----

def get_late_request(db: Session, assignment_id: int, student_id: int) -> Optional[LateSubmissionRequest]:
    """
    The active (pending or approved) request for the pair, else the most
    recent rejected one, else None.
    """
    rows = (
        db.query(LateRequest)
        .filter(
            LateRequest.assignment_id == assignment_id,
            LateRequest.student_id == student_id,
        )
        .order_by(LateRequest.requested_at.desc(), LateRequest.id.desc())
        .all()
    )
    if not rows:
        return None

    for row in rows:
        if row.status in _ACTIVE_VALUES:
            return LateSubmissionRequest.model_validate(row)
    return LateSubmissionRequest.model_validate(rows[0])


def get_late_request_by_id(db: Session, request_id: int) -> LateSubmissionRequest:
    row = db.get(LateRequest, request_id)
    if row is None:
        raise LateRequestNotFound(request_id)
    return LateSubmissionRequest.model_validate(row)


def list_late_requests(db: Session, status: Optional[LateRequestStatus] = None) -> list[LateSubmissionRequest]:
    q = db.query(LateRequest)
    if status is not None:
        q = q.filter(LateRequest.status == status.value)
    # newest first
    rows = q.order_by(LateRequest.requested_at.desc(), LateRequest.id.desc()).all()
    return [LateSubmissionRequest.model_validate(r) for r in rows]


def create_late_request(
    db: Session,
    assignment: AssignmentRecord,
    student_id: int,
    reason: str,
    now: datetime,
) -> LateSubmissionRequest:
    row = LateRequest(
        assignment_id=assignment.id,
        student_id=student_id,
        status=LateRequestStatus.PENDING.value,
        reason=reason,
        requested_at=now,
        original_deadline=assignment.deadline,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        # another tab filed first; the partial unique index keeps one active request
        db.rollback()
        raise LateRequestNotAllowed(EligibilityReason.LATE_REQUEST_PENDING) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(row)
    return LateSubmissionRequest.model_validate(row)


def review_late_request(
    db: Session,
    request_id: int,
    status: LateRequestStatus,
    now: datetime,
    reviewed_by: str,
    admin_notes: Optional[str] = None,
    extended_deadline: Optional[datetime] = None,
) -> LateSubmissionRequest:
    """Move a pending request to approved/rejected. Terminal states never change."""
    if status == LateRequestStatus.PENDING:
        raise ValueError("a review must approve or reject")

    values = {
        "status": status.value,
        "reviewed_at": now,
        "reviewed_by": reviewed_by,
        "admin_notes": admin_notes,
        "extended_deadline": extended_deadline if status == LateRequestStatus.APPROVED else None,
    }

    # conditional on still being pending: two reviewers cannot both win
    result = db.execute(
        update(LateRequest)
        .where(
            LateRequest.id == request_id,
            LateRequest.status == LateRequestStatus.PENDING.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        db.rollback()
        current = get_late_request_by_id(db, request_id)
        raise InvalidReviewTransition(request_id, current.status.value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    return get_late_request_by_id(db, request_id)


def delete_late_request(db: Session, request_id: int) -> None:
    row = db.get(LateRequest, request_id)
    if row is None:
        raise LateRequestNotFound(request_id)

    db.delete(row)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---- submissions / attempts ----

def get_attempt_count(db: Session, assignment_id: int, student_id: int) -> int:
    return SubmissionLedger(db).count(assignment_id, student_id)


def record_attempt(db: Session, assignment_id: int, student_id: int) -> int:
    """
    Atomic check-and-increment, committed. Raises AttemptsExceeded at the
    cap and AssignmentNotFound for unknown assignments (no slot is taken).
    """
    if db.get(Assignment, assignment_id) is None:
        raise AssignmentNotFound(assignment_id)

    try:
        index = SubmissionLedger(db).record_attempt(assignment_id, student_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return index


def append_submission(
    db: Session,
    assignment_id: int,
    student_id: int,
    attempt_index: int,
    submitted_at: datetime,
    content: Optional[str] = None,
    is_late: bool = False,
) -> Submission:
    """Adds the row to the caller's transaction; does not commit."""
    s = Submission(
        assignment_id=assignment_id,
        student_id=student_id,
        attempt_index=attempt_index,
        content=content,
        submitted_at=submitted_at,
        is_late=is_late,
    )
    db.add(s)
    db.flush()
    return s


def list_submissions(db: Session, assignment_id: int, student_id: Optional[int] = None) -> list[SubmissionRecord]:
    q = db.query(Submission).filter(Submission.assignment_id == assignment_id)
    if student_id is not None:
        q = q.filter(Submission.student_id == student_id)
    rows = q.order_by(Submission.student_id.asc(), Submission.attempt_index.asc()).all()
    return [SubmissionRecord.model_validate(r) for r in rows]
