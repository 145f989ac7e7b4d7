"""
Catalog lookups - read access to courses and assessments.

The enrollment service depends on these protocols rather than on the tables
directly, so tests and other callers can inject their own catalog.
"""

import uuid
from typing import List, Optional, Protocol

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lms.engines.grading.assessment import AssessmentDefinition
from lms.engines.grading.questions import question_from_row
from lms.engines.progress.aggregator import CourseTotals
from lms.kernel.models import Assessment, AssessmentQuestion, Course, CourseContent, as_utc


class CourseInfo(BaseModel):
    """What enrollment and progress logic needs to know about a course."""

    id: uuid.UUID
    title: str
    instructor_id: uuid.UUID
    is_published: bool
    max_students: int
    current_students: int
    content_ids: List[uuid.UUID] = []
    assessment_ids: List[uuid.UUID] = []

    @property
    def totals(self) -> CourseTotals:
        return CourseTotals(
            total_content=len(self.content_ids),
            total_assessments=len(self.assessment_ids),
        )

    @property
    def is_full(self) -> bool:
        return self.current_students >= self.max_students


class CourseCatalog(Protocol):
    async def get_course(self, course_id: uuid.UUID) -> Optional[CourseInfo]: ...

    async def adjust_student_count(self, course_id: uuid.UUID, delta: int) -> None: ...

    async def instructor_course_ids(self, instructor_id: uuid.UUID) -> List[uuid.UUID]: ...


class AssessmentCatalog(Protocol):
    async def get_assessment(self, assessment_id: uuid.UUID) -> Optional[AssessmentDefinition]: ...


class SqlCourseCatalog:
    """CourseCatalog backed by the courses / course_content / assessments tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_course(self, course_id: uuid.UUID) -> Optional[CourseInfo]:
        result = await self.session.execute(select(Course).where(Course.id == course_id))
        course = result.scalar_one_or_none()
        if not course:
            return None

        content_q = (
            select(CourseContent.id)
            .where(CourseContent.course_id == course_id)
            .order_by(CourseContent.position)
        )
        content_ids = list((await self.session.execute(content_q)).scalars().all())
        assessment_q = select(Assessment.id).where(Assessment.course_id == course_id)
        assessment_ids = list((await self.session.execute(assessment_q)).scalars().all())

        return CourseInfo(
            id=course.id,
            title=course.title,
            instructor_id=course.instructor_id,
            is_published=course.is_published,
            max_students=course.max_students,
            current_students=course.current_students,
            content_ids=content_ids,
            assessment_ids=assessment_ids,
        )

    async def instructor_course_ids(self, instructor_id: uuid.UUID) -> List[uuid.UUID]:
        q = select(Course.id).where(Course.instructor_id == instructor_id)
        return list((await self.session.execute(q)).scalars().all())

    async def adjust_student_count(self, course_id: uuid.UUID, delta: int) -> None:
        """Atomic increment/decrement; never drops below zero."""
        if delta < 0:
            stmt = (
                update(Course)
                .where(Course.id == course_id, Course.current_students >= -delta)
                .values(current_students=Course.current_students + delta)
            )
        else:
            stmt = (
                update(Course)
                .where(Course.id == course_id)
                .values(current_students=Course.current_students + delta)
            )
        await self.session.execute(stmt)


class SqlAssessmentCatalog:
    """AssessmentCatalog backed by the assessments / questions tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_assessment(self, assessment_id: uuid.UUID) -> Optional[AssessmentDefinition]:
        q = (
            select(Assessment)
            .where(Assessment.id == assessment_id)
            .options(selectinload(Assessment.question_links).joinedload(AssessmentQuestion.question))
        )
        result = await self.session.execute(q)
        row = result.scalar_one_or_none()
        if not row:
            return None
        return AssessmentDefinition(
            id=row.id,
            course_id=row.course_id,
            title=row.title,
            passing_score=row.passing_score,
            max_attempts=row.max_attempts,
            time_limit=row.time_limit,
            is_published=row.is_published,
            start_date=as_utc(row.start_date),
            end_date=as_utc(row.end_date),
            questions=[question_from_row(link.question) for link in row.question_links],
        )
