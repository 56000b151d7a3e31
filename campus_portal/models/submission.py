from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from campus_portal.db.base_class import Base


class Submission(Base):
    """One accepted attempt. Rows are never updated or deleted by the engine."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, nullable=False, index=True)

    # 1-based, strictly increasing per (assignment, student)
    attempt_index = Column(Integer, nullable=False)

    content = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # accepted under an extended deadline
    is_late = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", "attempt_index", name="uq_submission_attempt"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
