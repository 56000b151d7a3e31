"""
Deadline resolution.

Combines an assignment's own deadline with an optional late submission
request into the single deadline currently in force for one student.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union

from campus_portal.schemas._time import as_utc
from campus_portal.schemas.late_request import LateRequestStatus


@dataclass(frozen=True)
class Unlimited:
    kind: ClassVar[str] = "unlimited"


@dataclass(frozen=True)
class Active:
    until: datetime
    extended: bool = False

    kind: ClassVar[str] = "active"


@dataclass(frozen=True)
class Expired:
    extended: bool = False

    kind: ClassVar[str] = "expired"


DeadlineState = Union[Unlimited, Active, Expired]

UNLIMITED = Unlimited()


def _against(cutoff: datetime, now: datetime, extended: bool) -> DeadlineState:
    # the cutoff instant itself still counts as on time
    if now <= cutoff:
        return Active(until=cutoff, extended=extended)
    return Expired(extended=extended)


def resolve_deadline(assignment, late_request, now: datetime) -> DeadlineState:
    """
    Returns the deadline state for `assignment` at `now`.

    Order (first match wins):
    - approved late request without an extended deadline -> Unlimited
    - approved late request with one -> Active/Expired against it (extended)
    - otherwise the assignment deadline; a missing deadline -> Unlimited

    Pending and rejected requests never move the deadline. Pure: call it
    again on every tick instead of caching the result.
    """
    now = as_utc(now)

    if late_request is not None and late_request.status == LateRequestStatus.APPROVED:
        extended_deadline = as_utc(late_request.extended_deadline)
        if extended_deadline is None:
            return UNLIMITED
        return _against(extended_deadline, now, extended=True)

    deadline: Optional[datetime] = as_utc(assignment.deadline)
    if deadline is None:
        return UNLIMITED
    return _against(deadline, now, extended=False)
