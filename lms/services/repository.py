"""
Enrollment repository - load and versioned save of enrollment rows.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from lms.engines.progress.records import EnrollmentProgress, EnrollmentRecord
from lms.errors import AlreadyEnrolled, ConcurrentModification
from lms.kernel.models import Enrollment, EnrollmentStatus, as_utc
from lms.logging_config import get_logger

logger = get_logger(__name__)


def _enum_val(e) -> str:
    """Safely get enum value (SQLite may return str)."""
    return e.value if hasattr(e, "value") else str(e)


class EnrollmentRepository:
    """Maps enrollment rows to EnrollmentRecord and back."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def to_record(row: Enrollment) -> EnrollmentRecord:
        return EnrollmentRecord(
            id=row.id,
            student_id=row.student_id,
            course_id=row.course_id,
            status=EnrollmentStatus(_enum_val(row.status)),
            enrollment_date=as_utc(row.enrollment_date),
            completion_date=as_utc(row.completion_date),
            grade=row.grade,
            progress=EnrollmentProgress.model_validate(row.progress or {}),
            version=row.version,
        )

    async def get_row(self, enrollment_id: uuid.UUID) -> Optional[Enrollment]:
        result = await self.session.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        return result.scalar_one_or_none()

    async def get_row_for(self, student_id: uuid.UUID, course_id: uuid.UUID) -> Optional[Enrollment]:
        q = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def list_rows(
        self,
        student_id: Optional[uuid.UUID] = None,
        course_ids: Optional[List[uuid.UUID]] = None,
        status: Optional[EnrollmentStatus] = None,
    ) -> List[Enrollment]:
        q = select(Enrollment)
        if student_id is not None:
            q = q.where(Enrollment.student_id == student_id)
        if course_ids is not None:
            q = q.where(Enrollment.course_id.in_(course_ids))
        if status is not None:
            q = q.where(Enrollment.status == _enum_val(status))
        q = q.order_by(Enrollment.enrollment_date.desc())
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def add(self, student_id: uuid.UUID, course_id: uuid.UUID) -> Enrollment:
        row = Enrollment(
            student_id=student_id,
            course_id=course_id,
            status=EnrollmentStatus.ACTIVE.value,
            progress=EnrollmentProgress().model_dump(mode="json"),
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AlreadyEnrolled("Already enrolled in this course") from exc
        await self.session.refresh(row)
        return row

    async def save(self, row: Enrollment, record: EnrollmentRecord) -> Enrollment:
        """
        Write the transformed record back onto its row.

        The UPDATE carries the version the row was loaded with; if another
        request saved in between, nothing is written and the caller gets
        ConcurrentModification.
        """
        row.status = _enum_val(record.status)
        row.completion_date = record.completion_date
        row.grade = record.grade
        row.progress = record.progress.model_dump(mode="json")
        try:
            await self.session.flush()
        except StaleDataError as exc:
            logger.warning(
                "Concurrent enrollment update rejected",
                extra={"enrollment_id": str(record.id), "version": record.version},
            )
            raise ConcurrentModification(
                "Enrollment was modified by another request; reload and retry",
                details={"enrollment_id": str(record.id)},
            ) from exc
        await self.session.refresh(row)
        return row

    async def delete(self, row: Enrollment) -> None:
        await self.session.delete(row)
        await self.session.flush()
