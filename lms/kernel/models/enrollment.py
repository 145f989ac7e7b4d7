"""
Enrollment model - one student's relationship to one course.

The progress sub-document is stored as JSON and owned exclusively by the
enrollment. Writes go through an optimistic version check: SQLAlchemy adds
``WHERE version = :old`` to every UPDATE and raises StaleDataError when
another writer got there first.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, JSON, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lms.kernel.models.base import Base, TimestampMixin, generate_uuid


class EnrollmentStatus(str, Enum):
    """Lifecycle status of an enrollment."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    SUSPENDED = "suspended"


class Enrollment(Base, TimestampMixin):
    """Enrollment record, unique per (student, course)."""

    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        String(20),
        default=EnrollmentStatus.ACTIVE,
        nullable=False,
    )
    completion_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    grade: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # EnrollmentProgress document (see lms.engines.progress.records)
    progress: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        Index("ix_enrollments_status_date", "status", "enrollment_date"),
    )

    def __repr__(self) -> str:
        return f"<Enrollment {self.student_id} -> {self.course_id}>"
