import enum
from dataclasses import dataclass

from campus_portal.core.config import MAX_ATTEMPTS
from campus_portal.engine.deadline import Active, DeadlineState, Expired, Unlimited


class EligibilityReason(str, enum.Enum):
    OK = "ok"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    DEADLINE_PASSED = "deadline_passed"
    # submitting is blocked, but filing a late request is possible
    LATE_REQUEST_ELIGIBLE = "late_request_eligible"
    LATE_REQUEST_PENDING = "late_request_pending"


@dataclass(frozen=True)
class EligibilityResult:
    allowed: bool
    reason: EligibilityReason


def evaluate_eligibility(
    state: DeadlineState,
    attempt_count: int,
    max_attempts: int = MAX_ATTEMPTS,
    allow_late_submission: bool = False,
    has_active_late_request: bool = False,
) -> EligibilityResult:
    """
    Decide whether a new submission attempt is permitted right now.

    Callers must branch on `reason`, not only on `allowed`:
    LATE_REQUEST_ELIGIBLE denies the submission but offers the
    late-request form.

    `has_active_late_request` covers pending and approved requests. When
    the state is a non-extended Expired, an active request can only be a
    pending one, because an approved request always resolves to an
    extended or unlimited state.
    """
    if attempt_count >= max_attempts:
        return EligibilityResult(False, EligibilityReason.ATTEMPTS_EXHAUSTED)

    if isinstance(state, (Active, Unlimited)):
        return EligibilityResult(True, EligibilityReason.OK)

    if not isinstance(state, Expired):
        raise TypeError(f"unknown deadline state: {state!r}")

    if has_active_late_request and not state.extended:
        return EligibilityResult(False, EligibilityReason.LATE_REQUEST_PENDING)

    if allow_late_submission and not has_active_late_request:
        return EligibilityResult(False, EligibilityReason.LATE_REQUEST_ELIGIBLE)

    return EligibilityResult(False, EligibilityReason.DEADLINE_PASSED)
