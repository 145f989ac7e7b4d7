"""
Enrollment Service - enrollment lifecycle, assessment submission and progress.

Every mutating operation is one read-modify-write of one enrollment:
load the row, transform an in-memory EnrollmentRecord with the pure engines,
then save with a version check. If any step raises, nothing is written.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from lms.config import get_settings
from lms.engines.grading.attempt_tracker import AttemptCheck, AttemptTracker
from lms.engines.grading.grader import SubmittedAnswer
from lms.engines.progress.aggregator import (
    ProgressAggregator,
    ProgressBreakdown,
    ProgressUpdate,
)
from lms.engines.progress.lifecycle import EnrollmentLifecycle
from lms.engines.progress.records import EnrollmentRecord
from lms.errors import (
    CourseUnavailable,
    AlreadyEnrolled,
    NotEnrolled,
    NotFound,
    Unauthorized,
)
from lms.kernel.models import Enrollment, EnrollmentStatus, User, UserRole
from lms.logging_config import get_logger
from lms.services.catalog import (
    AssessmentCatalog,
    CourseCatalog,
    CourseInfo,
    SqlAssessmentCatalog,
    SqlCourseCatalog,
)
from lms.services.repository import EnrollmentRepository

logger = get_logger(__name__)


class SubmissionResult(BaseModel):
    """Outcome of one graded submission."""

    enrollment_id: uuid.UUID
    assessment_id: uuid.UUID
    score: int
    max_score: int
    percentage: int
    passed: bool
    attempt_number: int
    overall_progress: int


class AssessmentStatus(BaseModel):
    """Whether the student can take an assessment right now."""

    assessment_id: uuid.UUID
    title: str
    can_take: bool
    reason: Optional[str] = None
    current_attempts: int
    max_attempts: int
    availability: str
    best_score: Optional[int] = None
    passed: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _role(user: User) -> UserRole:
    return UserRole(user.role)


class EnrollmentService:
    """
    Orchestrates the grading and progress engines over persisted enrollments.

    Collaborators (course and assessment lookups) are injected; by default
    they read from the same session.
    """

    def __init__(
        self,
        session: AsyncSession,
        courses: Optional[CourseCatalog] = None,
        assessments: Optional[AssessmentCatalog] = None,
        aggregator: Optional[ProgressAggregator] = None,
        lifecycle: Optional[EnrollmentLifecycle] = None,
    ):
        settings = get_settings()
        self.session = session
        self.repo = EnrollmentRepository(session)
        self.courses = courses or SqlCourseCatalog(session)
        self.assessments = assessments or SqlAssessmentCatalog(session)
        self.aggregator = aggregator or ProgressAggregator(settings.estimated_total_content)
        self.lifecycle = lifecycle or EnrollmentLifecycle(settings.auto_complete_on_full_progress)

    # ------------------------------------------------------------------ #
    # Lookups and access checks
    # ------------------------------------------------------------------ #

    async def _course(self, course_id: uuid.UUID) -> CourseInfo:
        course = await self.courses.get_course(course_id)
        if not course:
            raise NotFound("Course not found", details={"course_id": str(course_id)})
        return course

    async def _load(self, enrollment_id: uuid.UUID) -> Enrollment:
        row = await self.repo.get_row(enrollment_id)
        if not row:
            raise NotFound("Enrollment not found", details={"enrollment_id": str(enrollment_id)})
        return row

    @staticmethod
    def _is_staff_for(user: User, course: CourseInfo) -> bool:
        return _role(user) == UserRole.ADMIN or course.instructor_id == user.id

    def _ensure_can_view(self, row: Enrollment, user: User, course: CourseInfo) -> None:
        """Owner, the course's instructor, or an admin."""
        if row.student_id != user.id and not self._is_staff_for(user, course):
            raise Unauthorized("Not authorized")

    @staticmethod
    def _ensure_owner(row: Enrollment, user: User) -> None:
        if row.student_id != user.id:
            raise Unauthorized("Not authorized")

    @staticmethod
    def _ensure_active(record: EnrollmentRecord) -> None:
        """Only active enrollments accumulate progress or attempts."""
        if record.status != EnrollmentStatus.ACTIVE:
            raise NotEnrolled(
                f"Enrollment is {record.status.value}",
                details={"enrollment_id": str(record.id), "status": record.status.value},
            )

    def _recompute(self, record: EnrollmentRecord, course: CourseInfo, now: datetime) -> None:
        self.aggregator.recompute(record.progress, course.totals)
        self.lifecycle.apply_completion_policy(record, now)

    # ------------------------------------------------------------------ #
    # Enrollment lifecycle
    # ------------------------------------------------------------------ #

    async def enroll(self, user: User, course_id: uuid.UUID) -> EnrollmentRecord:
        """Enroll the caller in a published course with free capacity."""
        course = await self._course(course_id)
        if not course.is_published:
            raise CourseUnavailable("Course is not published", details={"course_id": str(course_id)})
        if await self.repo.get_row_for(user.id, course_id):
            raise AlreadyEnrolled("Already enrolled in this course")
        if course.is_full:
            raise CourseUnavailable("Course is full", details={"course_id": str(course_id)})

        row = await self.repo.add(user.id, course_id)
        await self.courses.adjust_student_count(course_id, 1)
        logger.info(
            "Student enrolled",
            extra={"enrollment_id": str(row.id), "course_id": str(course_id)},
        )
        return self.repo.to_record(row)

    async def unenroll(self, user: User, enrollment_id: uuid.UUID) -> None:
        """Delete the enrollment and release its seat in the course."""
        row = await self._load(enrollment_id)
        course = await self._course(row.course_id)
        self._ensure_can_view(row, user, course)
        course_id = row.course_id
        await self.repo.delete(row)
        await self.courses.adjust_student_count(course_id, -1)
        logger.info(
            "Enrollment removed",
            extra={"enrollment_id": str(enrollment_id), "course_id": str(course_id)},
        )

    async def get(self, user: User, enrollment_id: uuid.UUID) -> EnrollmentRecord:
        row = await self._load(enrollment_id)
        course = await self._course(row.course_id)
        self._ensure_can_view(row, user, course)
        return self.repo.to_record(row)

    async def find_for_course(self, user: User, course_id: uuid.UUID) -> Optional[EnrollmentRecord]:
        """The caller's own enrollment in a course, if any."""
        row = await self.repo.get_row_for(user.id, course_id)
        return self.repo.to_record(row) if row else None

    async def list_for(
        self,
        user: User,
        course_id: Optional[uuid.UUID] = None,
        student_id: Optional[uuid.UUID] = None,
        status: Optional[EnrollmentStatus] = None,
    ) -> List[EnrollmentRecord]:
        """
        Role-scoped listing: students see their own enrollments, instructors
        those of their courses (or one of them), admins anything.
        """
        role = _role(user)
        if role == UserRole.STUDENT:
            rows = await self.repo.list_rows(
                student_id=user.id,
                course_ids=[course_id] if course_id else None,
                status=status,
            )
        elif role == UserRole.INSTRUCTOR:
            if course_id is None:
                course_ids = await self.courses.instructor_course_ids(user.id)
            else:
                course = await self._course(course_id)
                if course.instructor_id != user.id:
                    raise Unauthorized("Not authorized to view enrollments for this course")
                course_ids = [course_id]
            rows = await self.repo.list_rows(student_id=student_id, course_ids=course_ids, status=status)
        else:
            rows = await self.repo.list_rows(
                student_id=student_id,
                course_ids=[course_id] if course_id else None,
                status=status,
            )
        return [self.repo.to_record(r) for r in rows]

    async def list_for_user(self, user: User, student_id: uuid.UUID) -> List[EnrollmentRecord]:
        """
        All enrollments of one student. Visible to the student, an admin, or
        an instructor teaching at least one of the student's courses.
        """
        rows = await self.repo.list_rows(student_id=student_id)
        if user.id != student_id and _role(user) != UserRole.ADMIN:
            taught = set(await self.courses.instructor_course_ids(user.id))
            if not any(r.course_id in taught for r in rows):
                raise Unauthorized("Not authorized to view this user's enrollments")
        return [self.repo.to_record(r) for r in rows]

    async def change_status(
        self,
        user: User,
        enrollment_id: uuid.UUID,
        to_status: EnrollmentStatus,
    ) -> EnrollmentRecord:
        """Explicit status transition; entering completed derives the grade."""
        row = await self._load(enrollment_id)
        course = await self._course(row.course_id)
        self._ensure_can_view(row, user, course)

        record = self.repo.to_record(row)
        self.lifecycle.transition(record, to_status, _role(user), _utcnow())
        row = await self.repo.save(row, record)
        return self.repo.to_record(row)

    # ------------------------------------------------------------------ #
    # Progress
    # ------------------------------------------------------------------ #

    async def progress_breakdown(self, user: User, enrollment_id: uuid.UUID) -> tuple[EnrollmentRecord, ProgressBreakdown]:
        row = await self._load(enrollment_id)
        course = await self._course(row.course_id)
        self._ensure_can_view(row, user, course)
        record = self.repo.to_record(row)
        return record, self.aggregator.breakdown(record.progress, course.totals)

    async def course_progress(
        self, user: User, course_id: uuid.UUID
    ) -> tuple[EnrollmentRecord, ProgressBreakdown]:
        """
        The caller's progress in a course, recomputed against the course's
        current content and assessments. Read-only; nothing is saved.
        """
        course = await self._course(course_id)
        row = await self.repo.get_row_for(user.id, course_id)
        if not row:
            raise NotFound("Not enrolled in this course", details={"course_id": str(course_id)})
        record = self.repo.to_record(row)
        self.aggregator.recompute(record.progress, course.totals)
        return record, self.aggregator.breakdown(record.progress, course.totals)

    async def complete_content(
        self,
        user: User,
        enrollment_id: uuid.UUID,
        content_id: uuid.UUID,
        time_spent: int,
    ) -> EnrollmentRecord:
        """Mark one content item complete and recompute progress."""
        row = await self._load(enrollment_id)
        self._ensure_owner(row, user)
        course = await self._course(row.course_id)
        if content_id not in course.content_ids:
            raise NotFound("Content not found in this course", details={"content_id": str(content_id)})

        now = _utcnow()
        record = self.repo.to_record(row)
        self._ensure_active(record)
        self.aggregator.mark_content_complete(record.progress, content_id, time_spent, now)
        self._recompute(record, course, now)
        row = await self.repo.save(row, record)
        logger.info(
            "Content completed",
            extra={
                "enrollment_id": str(enrollment_id),
                "content_id": str(content_id),
                "overall_progress": record.progress.overall_progress,
            },
        )
        return self.repo.to_record(row)

    async def update_progress(
        self,
        user: User,
        enrollment_id: uuid.UUID,
        update: ProgressUpdate,
    ) -> EnrollmentRecord:
        """
        Trusted overwrite; an explicit progress value wins over recompute.

        Status is left alone, even at 100%: completing an enrollment is a
        role-gated transition, and the owner is not allowed to perform it.
        """
        row = await self._load(enrollment_id)
        self._ensure_owner(row, user)
        course = await self._course(row.course_id)

        now = _utcnow()
        record = self.repo.to_record(row)
        self.aggregator.apply_update(record.progress, update, course.totals, now)
        row = await self.repo.save(row, record)
        return self.repo.to_record(row)

    # ------------------------------------------------------------------ #
    # Assessments
    # ------------------------------------------------------------------ #

    async def assessment_status(
        self,
        user: User,
        enrollment_id: uuid.UUID,
        assessment_id: uuid.UUID,
    ) -> AssessmentStatus:
        row = await self._load(enrollment_id)
        self._ensure_owner(row, user)
        assessment = await self.assessments.get_assessment(assessment_id)
        if not assessment or assessment.course_id != row.course_id:
            raise NotFound("Assessment not found", details={"assessment_id": str(assessment_id)})

        now = _utcnow()
        record = self.repo.to_record(row)
        tracker = AttemptTracker(assessment, record.progress)
        check: AttemptCheck = tracker.check(now)
        entry = tracker.entry
        return AssessmentStatus(
            assessment_id=assessment.id,
            title=assessment.title,
            can_take=check.allowed,
            reason=check.reason.value if check.reason else None,
            current_attempts=check.attempts_used,
            max_attempts=check.max_attempts,
            availability=assessment.availability(now),
            best_score=entry.best_score if entry else None,
            passed=entry.passed if entry else False,
        )

    async def submit_assessment(
        self,
        user: User,
        assessment_id: uuid.UUID,
        answers: Sequence[SubmittedAnswer],
        time_spent: int = 0,
    ) -> SubmissionResult:
        """
        Grade a submission for the caller's enrollment in the assessment's course.

        Order of checks: assessment exists, caller enrolled and active,
        assessment available, attempts remaining.
        """
        assessment = await self.assessments.get_assessment(assessment_id)
        if not assessment:
            raise NotFound("Assessment not found", details={"assessment_id": str(assessment_id)})

        row = await self.repo.get_row_for(user.id, assessment.course_id)
        if not row:
            raise NotEnrolled("Must be enrolled to submit assessment")
        course = await self._course(row.course_id)

        now = _utcnow()
        record = self.repo.to_record(row)
        self._ensure_active(record)
        tracker = AttemptTracker(assessment, record.progress)
        attempt = tracker.record_attempt(answers, time_spent, now)
        self._recompute(record, course, now)
        await self.repo.save(row, record)

        return SubmissionResult(
            enrollment_id=record.id,
            assessment_id=assessment.id,
            score=attempt.score,
            max_score=attempt.max_score,
            percentage=attempt.percentage,
            passed=attempt.passed,
            attempt_number=attempt.attempt_number,
            overall_progress=record.progress.overall_progress,
        )
