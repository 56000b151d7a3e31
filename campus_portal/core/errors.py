class CampusPortalError(Exception):
    """Base class for collaborator and workflow failures.

    Expired deadlines and exhausted attempts are not errors; the decision
    functions return them as ordinary results.
    """


class AssignmentNotFound(CampusPortalError):
    def __init__(self, assignment_id: int):
        super().__init__(f"Assignment {assignment_id} not found")
        self.assignment_id = assignment_id


class LateRequestNotFound(CampusPortalError):
    def __init__(self, request_id: int):
        super().__init__(f"Late submission request {request_id} not found")
        self.request_id = request_id


class AttemptsExceeded(CampusPortalError):
    def __init__(self, assignment_id: int, student_id: int, max_attempts: int):
        super().__init__("Maximum submissions reached")
        self.assignment_id = assignment_id
        self.student_id = student_id
        self.max_attempts = max_attempts


class SubmissionNotAllowed(CampusPortalError):
    def __init__(self, reason):
        super().__init__(f"Submission not allowed: {reason.value}")
        self.reason = reason


class LateRequestNotAllowed(CampusPortalError):
    def __init__(self, reason):
        super().__init__(f"Late submission request not allowed: {reason.value}")
        self.reason = reason


class InvalidReviewTransition(CampusPortalError):
    def __init__(self, request_id: int, status: str):
        super().__init__(f"Late submission request {request_id} is already {status}")
        self.request_id = request_id
        self.status = status


class InvalidExtendedDeadline(CampusPortalError):
    def __init__(self, extended_deadline, now):
        super().__init__(f"Extended deadline {extended_deadline.isoformat()} is not in the future")
        self.extended_deadline = extended_deadline
        self.now = now
