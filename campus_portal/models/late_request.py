from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_portal.db.base_class import Base

# at most one pending or approved request per (assignment, student)
ACTIVE_STATUS_CLAUSE = "status IN ('pending', 'approved')"


class LateRequest(Base):
    __tablename__ = "late_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(nullable=False)

    # pending -> approved | rejected, never back
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    reason: Mapped[str | None] = mapped_column(Text)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    original_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # review fields (null while pending)
    extended_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_by: Mapped[str | None] = mapped_column(String(255))
    admin_notes: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_late_requests_assignment_student", "assignment_id", "student_id"),
        Index(
            "uq_late_requests_active",
            "assignment_id",
            "student_id",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
    )

    assignment = relationship("Assignment", back_populates="late_requests")
