"""
Course enrollment endpoints - enroll and look up the caller's enrollment.
"""

import uuid

from fastapi import APIRouter, status

from lms.api.deps import CurrentUser, Enrollments
from lms.schemas.enrollment import (
    CourseProgressResponse,
    EnrollmentLookupResponse,
    EnrollmentResponse,
)

router = APIRouter()


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enroll(course_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Enroll the caller in a published course."""
    record = await service.enroll(user, course_id)
    return EnrollmentResponse.from_record(record)


@router.get("/{course_id}/enrollment", response_model=EnrollmentLookupResponse)
async def get_course_enrollment(course_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Check whether the caller is enrolled in the course."""
    record = await service.find_for_course(user, course_id)
    if record is None:
        return EnrollmentLookupResponse(enrolled=False)
    return EnrollmentLookupResponse(
        enrolled=True,
        enrollment=EnrollmentResponse.from_record(record),
    )


@router.get("/{course_id}/progress", response_model=CourseProgressResponse)
async def get_course_progress(course_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Caller's progress in the course; 404 if not enrolled."""
    record, breakdown = await service.course_progress(user, course_id)
    return CourseProgressResponse(
        enrollment=EnrollmentResponse.from_record(record),
        progress=record.progress.overall_progress,
        total_content=breakdown.total_content,
        total_assessments=breakdown.total_assessments,
        breakdown=breakdown,
    )
