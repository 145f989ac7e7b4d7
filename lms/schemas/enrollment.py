"""
Pydantic schemas for enrollment and progress API.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from lms.engines.progress.aggregator import ProgressBreakdown
from lms.engines.progress.records import (
    AssessmentProgress,
    CompletedContent,
    EnrollmentRecord,
)
from lms.kernel.models.enrollment import EnrollmentStatus


class ProgressSchema(BaseModel):
    """Progress sub-document as returned to clients."""

    completed_content: List[CompletedContent] = []
    completed_assessments: List[AssessmentProgress] = []
    overall_progress: int
    time_spent: int
    last_activity: Optional[datetime] = None


class EnrollmentResponse(BaseModel):
    """One enrollment."""

    id: uuid.UUID
    student_id: uuid.UUID
    course_id: uuid.UUID
    status: EnrollmentStatus
    enrollment_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    grade: Optional[str] = None
    progress: ProgressSchema

    @classmethod
    def from_record(cls, record: EnrollmentRecord) -> "EnrollmentResponse":
        return cls(
            id=record.id,
            student_id=record.student_id,
            course_id=record.course_id,
            status=record.status,
            enrollment_date=record.enrollment_date,
            completion_date=record.completion_date,
            grade=record.grade,
            progress=ProgressSchema(**record.progress.model_dump()),
        )


class EnrollmentListResponse(BaseModel):
    items: List[EnrollmentResponse]
    total: int


class EnrollmentLookupResponse(BaseModel):
    """Caller's enrollment in a course, if any."""

    enrolled: bool
    enrollment: Optional[EnrollmentResponse] = None


class StatusChangeRequest(BaseModel):
    status: EnrollmentStatus


class CompleteContentRequest(BaseModel):
    """Mark one content item complete."""

    content_id: uuid.UUID
    time_spent: int = Field(default=0, ge=0)


class ProgressUpdateRequest(BaseModel):
    """
    Trusted overwrite from an upstream computation.

    An explicit ``progress`` value wins; otherwise overall progress is
    recomputed from the completed content and assessments.
    """

    progress: Optional[int] = Field(default=None, ge=0, le=100)
    completed_content: Optional[List[uuid.UUID]] = None
    completed_assessments: Optional[List[AssessmentProgress]] = None
    last_activity: Optional[datetime] = None


class ProgressResponse(BaseModel):
    """Progress with the weighted breakdown behind overall_progress."""

    enrollment_id: uuid.UUID
    status: EnrollmentStatus
    grade: Optional[str] = None
    overall_progress: int
    breakdown: ProgressBreakdown
    time_spent: int
    last_activity: Optional[datetime] = None


class CourseProgressResponse(BaseModel):
    """Caller's progress in one course, recomputed against its structure."""

    enrollment: EnrollmentResponse
    progress: int
    total_content: int
    total_assessments: int
    breakdown: ProgressBreakdown
