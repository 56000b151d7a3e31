from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from campus_portal.core.clock import Clock
from campus_portal.core.deps import get_clock, get_db
from campus_portal.core.errors import AssignmentNotFound
from campus_portal.db import repository
from campus_portal.schemas.assignment import AssignmentCreate, AssignmentRecord

router = APIRouter()


@router.post(
    "/assignments",
    response_model=AssignmentRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return repository.create_assignment(db, payload, now=clock.now())


@router.get(
    "/assignments/{assignment_id}",
    response_model=AssignmentRecord,
    responses={404: {"description": "Assignment not found"}},
)
def get_assignment(assignment_id: int, db: Session = Depends(get_db)):
    try:
        return repository.get_assignment(db, assignment_id)
    except AssignmentNotFound:
        raise HTTPException(status_code=404, detail="Assignment not found")
