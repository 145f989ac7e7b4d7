"""
Assessment models - assessments, bank questions and their ordered association.

Questions live in a bank and are attached to assessments by position. The
type-specific answer key is stored as JSON and validated into the matching
question variant by the grading engine.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.config import get_settings
from lms.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from lms.kernel.models.course import Course


class Assessment(Base, TimestampMixin):
    """A graded unit attached to a course."""

    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    assessment_type: Mapped[str] = mapped_column(String(50), default="quiz", nullable=False)

    passing_score: Mapped[int] = mapped_column(Integer, default=70, nullable=False)  # percent
    max_attempts: Mapped[int] = mapped_column(
        Integer,
        default=lambda: get_settings().default_max_attempts,
        nullable=False,
    )
    time_limit: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # minutes, 0 = none

    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    course: Mapped["Course"] = relationship("Course", back_populates="assessments")
    question_links: Mapped[List["AssessmentQuestion"]] = relationship(
        "AssessmentQuestion",
        order_by="AssessmentQuestion.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Assessment {self.title}>"


class Question(Base, TimestampMixin):
    """Bank question with a type-specific answer key."""

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    points: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # e.g. {"options": [{"text": "4", "is_correct": true}]} or {"correct_answer": false}
    answer_key: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class AssessmentQuestion(Base):
    """Ordered link between an assessment and a bank question."""

    __tablename__ = "assessment_questions"

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("assessments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    question: Mapped["Question"] = relationship("Question", lazy="joined")

    __table_args__ = (
        UniqueConstraint("assessment_id", "position", name="uq_assessment_questions_position"),
    )
