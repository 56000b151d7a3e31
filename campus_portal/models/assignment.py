from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text, func
from sqlalchemy.orm import relationship

from campus_portal.db.base_class import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=True)

    # 0 = unlimited
    time_limit_minutes = Column(Integer, nullable=False, default=0)
    allow_late_submission = Column(Boolean, nullable=False, default=False)
    max_marks = Column(Float, nullable=False, default=100)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    late_requests = relationship("LateRequest", back_populates="assignment", cascade="all, delete-orphan")
