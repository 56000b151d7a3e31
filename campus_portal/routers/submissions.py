import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from sqlalchemy.orm import Session

from campus_portal.core.clock import Clock, Ticker
from campus_portal.core.config import COUNTDOWN_REFRESH_TICKS, COUNTDOWN_TICK_SECONDS
from campus_portal.core.deps import get_clock, get_db
from campus_portal.core.errors import AssignmentNotFound, AttemptsExceeded, SubmissionNotAllowed
from campus_portal.db import repository
from campus_portal.engine.countdown import present_countdown
from campus_portal.engine.deadline import resolve_deadline
from campus_portal.engine.gate import SubmissionGate
from campus_portal.schemas.status import (
    CountdownRead,
    DeadlineStateRead,
    EligibilityRead,
    SubmissionStatusRead,
)
from campus_portal.schemas.submission import SubmissionCreate, SubmissionRecord

logger = logging.getLogger(__name__)

router = APIRouter()

_DENIED_DETAIL = {
    "attempts_exhausted": "Maximum submissions reached",
    "deadline_passed": "Deadline has passed",
    "late_request_eligible": "Deadline has passed; a late submission request can be filed",
    "late_request_pending": "Late submission request is awaiting review",
}


def get_tick_interval() -> float:
    return COUNTDOWN_TICK_SECONDS


@router.get(
    "/assignments/{assignment_id}/students/{student_id}/status",
    response_model=SubmissionStatusRead,
    responses={404: {"description": "Assignment not found"}},
)
def submission_status(
    assignment_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    try:
        current = SubmissionGate(db, clock).status(assignment_id, student_id)
    except AssignmentNotFound:
        raise HTTPException(status_code=404, detail="Assignment not found")

    return SubmissionStatusRead(
        assignment_id=assignment_id,
        student_id=student_id,
        now=current.now,
        deadline=DeadlineStateRead.from_state(current.state),
        eligibility=EligibilityRead.from_result(current.eligibility),
        countdown=CountdownRead.from_display(current.countdown),
        attempts_used=current.attempt_count,
        attempts_remaining=current.attempts_remaining,
        late_request=current.late_request,
    )


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRecord,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Submission not allowed right now"},
        404: {"description": "Assignment not found"},
        409: {"description": "Maximum submissions reached"},
    },
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    gate = SubmissionGate(db, clock)
    try:
        return gate.submit(assignment_id, payload.student_id, payload.content)
    except AssignmentNotFound:
        raise HTTPException(status_code=404, detail="Assignment not found")
    except SubmissionNotAllowed as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": exc.reason.value, "message": _DENIED_DETAIL[exc.reason.value]},
        )
    except AttemptsExceeded:
        # lost the race for the last slot; never retried into another slot
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Maximum submissions reached")


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRecord],
)
def list_submissions_for_assignment(
    assignment_id: int,
    student_id: int | None = None,
    db: Session = Depends(get_db),
):
    try:
        repository.get_assignment(db, assignment_id)
    except AssignmentNotFound:
        raise HTTPException(status_code=404, detail="Assignment not found")

    return repository.list_submissions(db, assignment_id, student_id)


@router.websocket("/assignments/{assignment_id}/students/{student_id}/countdown")
async def countdown_stream(
    websocket: WebSocket,
    assignment_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    interval: float = Depends(get_tick_interval),
):
    """
    Pushes one countdown frame per tick. The deadline is re-resolved against
    the clock on every tick; the assignment and late request are re-read
    every COUNTDOWN_REFRESH_TICKS ticks so a review made while the stream is
    open shows up without a reconnect.

    If a tick fails the socket is closed: 1008 when the assignment is gone,
    1011 for anything else.
    """
    try:
        assignment = repository.get_assignment(db, assignment_id)
    except AssignmentNotFound:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Assignment not found")
        return
    late_request = repository.get_late_request(db, assignment_id, student_id)

    await websocket.accept()

    ticks = 0

    async def push(now):
        nonlocal assignment, late_request, ticks
        ticks += 1
        if ticks % COUNTDOWN_REFRESH_TICKS == 0:
            # end the read transaction so committed reviews are visible
            db.rollback()
            assignment = repository.get_assignment(db, assignment_id)
            late_request = repository.get_late_request(db, assignment_id, student_id)

        state = resolve_deadline(assignment, late_request, now)
        display = present_countdown(state, now)
        frame = CountdownRead.from_display(display).model_dump(mode="json")
        frame["deadline"] = DeadlineStateRead.from_state(state).model_dump(mode="json")
        await websocket.send_json(frame)

    async def give_up(exc):
        if isinstance(exc, AssignmentNotFound):
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Assignment not found")
        else:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    ticker = Ticker(clock, interval)
    ticker.start(push, on_error=give_up)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await ticker.stop()
        logger.debug("countdown closed: assignment=%s student=%s", assignment_id, student_id)
