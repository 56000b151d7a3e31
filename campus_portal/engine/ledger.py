import logging

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_portal.core.config import MAX_ATTEMPTS
from campus_portal.core.errors import AttemptsExceeded
from campus_portal.models.attempt_counter import AttemptCounter

logger = logging.getLogger(__name__)

# backends with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


class SubmissionLedger:
    """
    Authoritative attempt count per (assignment, student).

    `record_attempt` is a single conditional UPDATE (`count < max_attempts`)
    so two racing writers cannot both take the last slot. It runs inside the
    caller's transaction and never commits; the caller commits or rolls back.
    """

    def __init__(self, db: Session, max_attempts: int = MAX_ATTEMPTS):
        self.db = db
        self.max_attempts = max_attempts

    def count(self, assignment_id: int, student_id: int) -> int:
        value = self.db.execute(
            select(AttemptCounter.count).where(
                AttemptCounter.assignment_id == assignment_id,
                AttemptCounter.student_id == student_id,
            )
        ).scalar_one_or_none()
        return value or 0

    def record_attempt(self, assignment_id: int, student_id: int) -> int:
        """Take the next attempt slot and return its 1-based index."""
        self._ensure_counter(assignment_id, student_id)

        result = self.db.execute(
            update(AttemptCounter)
            .where(
                AttemptCounter.assignment_id == assignment_id,
                AttemptCounter.student_id == student_id,
                AttemptCounter.count < self.max_attempts,
            )
            .values(count=AttemptCounter.count + 1, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            logger.info(
                "attempt rejected: assignment=%s student=%s already at %s",
                assignment_id,
                student_id,
                self.max_attempts,
            )
            raise AttemptsExceeded(assignment_id, student_id, self.max_attempts)

        index = self.count(assignment_id, student_id)
        logger.info(
            "attempt %s/%s recorded: assignment=%s student=%s",
            index,
            self.max_attempts,
            assignment_id,
            student_id,
        )
        return index

    def _ensure_counter(self, assignment_id: int, student_id: int) -> None:
        values = {"assignment_id": assignment_id, "student_id": student_id, "count": 0}
        insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)

        if insert is not None:
            self.db.execute(insert(AttemptCounter).values(**values).on_conflict_do_nothing())
            return

        # other backends: savepoint so a duplicate row doesn't abort the outer transaction
        if self.db.get(AttemptCounter, (assignment_id, student_id)) is not None:
            return
        try:
            with self.db.begin_nested():
                self.db.add(AttemptCounter(**values))
        except IntegrityError:
            pass  # created concurrently; the conditional update decides
