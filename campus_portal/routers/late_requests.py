from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from campus_portal.core.clock import Clock
from campus_portal.core.deps import get_clock, get_db
from campus_portal.core.errors import (
    AssignmentNotFound,
    InvalidExtendedDeadline,
    InvalidReviewTransition,
    LateRequestNotAllowed,
    LateRequestNotFound,
)
from campus_portal.db import repository
from campus_portal.engine.gate import SubmissionGate
from campus_portal.schemas.late_request import (
    LateRequestApprove,
    LateRequestCreate,
    LateRequestReject,
    LateRequestStatus,
    LateSubmissionRequest,
)

router = APIRouter()


@router.post(
    "/assignments/{assignment_id}/late-requests",
    response_model=LateSubmissionRequest,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Assignment not found"},
        409: {"description": "Late submission request not available"},
    },
)
def file_late_request(
    assignment_id: int,
    payload: LateRequestCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    gate = SubmissionGate(db, clock)
    try:
        return gate.request_late_submission(assignment_id, payload.student_id, payload.reason)
    except AssignmentNotFound:
        raise HTTPException(status_code=404, detail="Assignment not found")
    except LateRequestNotAllowed as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"reason": exc.reason.value, "message": "Late submission request not available"},
        )


@router.get("/late-requests", response_model=list[LateSubmissionRequest])
def list_late_requests(
    status_filter: LateRequestStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
):
    return repository.list_late_requests(db, status_filter)


def _review_error(exc: Exception) -> HTTPException:
    if isinstance(exc, LateRequestNotFound):
        return HTTPException(status_code=404, detail="Late submission request not found")
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.post(
    "/late-requests/{request_id}/approve",
    response_model=LateSubmissionRequest,
    responses={422: {"description": "Extended deadline is not in the future"}},
)
def approve_late_request(
    request_id: int,
    payload: LateRequestApprove,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    try:
        return SubmissionGate(db, clock).approve(
            request_id,
            extended_deadline=payload.extended_deadline,
            admin_notes=payload.admin_notes,
            reviewed_by=payload.reviewed_by,
        )
    except InvalidExtendedDeadline as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except (LateRequestNotFound, InvalidReviewTransition) as exc:
        raise _review_error(exc)


@router.post("/late-requests/{request_id}/reject", response_model=LateSubmissionRequest)
def reject_late_request(
    request_id: int,
    payload: LateRequestReject,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    try:
        return SubmissionGate(db, clock).reject(
            request_id,
            admin_notes=payload.admin_notes,
            reviewed_by=payload.reviewed_by,
        )
    except (LateRequestNotFound, InvalidReviewTransition) as exc:
        raise _review_error(exc)


@router.delete("/late-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_late_request(request_id: int, db: Session = Depends(get_db)):
    try:
        repository.delete_late_request(db, request_id)
    except LateRequestNotFound:
        raise HTTPException(status_code=404, detail="Late submission request not found")
