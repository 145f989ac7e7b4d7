"""
Course models - courses and their ordered content items.

Owned by the course-authoring subsystem; this service reads them and only
maintains the current_students counter.
"""

import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from lms.kernel.models.assessment import Assessment


class Course(Base, TimestampMixin):
    """A course offered to students."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    max_students: Mapped[int] = mapped_column(Integer, default=1000, nullable=False)
    current_students: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    content: Mapped[List["CourseContent"]] = relationship(
        "CourseContent",
        back_populates="course",
        order_by="CourseContent.position",
        cascade="all, delete-orphan",
    )
    assessments: Mapped[List["Assessment"]] = relationship(
        "Assessment",
        back_populates="course",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Course {self.title}>"


class CourseContent(Base, TimestampMixin):
    """One content item (lesson, video, reading) within a course."""

    __tablename__ = "course_content"

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
    content_type: Mapped[str] = mapped_column(String(50), default="text", nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # minutes
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    course: Mapped["Course"] = relationship("Course", back_populates="content")
