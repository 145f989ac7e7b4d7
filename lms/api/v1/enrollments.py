"""
Enrollment endpoints - listing, status transitions and progress.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Response, status

from lms.api.deps import CurrentUser, Enrollments
from lms.engines.progress.aggregator import ProgressUpdate
from lms.kernel.models.enrollment import EnrollmentStatus
from lms.schemas.assessment import AssessmentStatusResponse
from lms.schemas.enrollment import (
    CompleteContentRequest,
    EnrollmentListResponse,
    EnrollmentResponse,
    ProgressResponse,
    ProgressUpdateRequest,
    StatusChangeRequest,
)

router = APIRouter()


@router.get("", response_model=EnrollmentListResponse)
async def list_enrollments(
    user: CurrentUser,
    service: Enrollments,
    course_id: Optional[uuid.UUID] = None,
    student_id: Optional[uuid.UUID] = None,
    status_filter: Optional[EnrollmentStatus] = Query(default=None, alias="status"),
):
    """
    List enrollments visible to the caller.

    Students get their own; instructors must pass one of their courses;
    admins may filter freely.
    """
    records = await service.list_for(user, course_id=course_id, student_id=student_id, status=status_filter)
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.get("/user/{user_id}", response_model=EnrollmentListResponse)
async def list_user_enrollments(user_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Enrollments of one student: the student, an admin, or one of their instructors."""
    records = await service.list_for_user(user, user_id)
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.get("/{enrollment_id}", response_model=EnrollmentResponse)
async def get_enrollment(enrollment_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    record = await service.get(user, enrollment_id)
    return EnrollmentResponse.from_record(record)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(enrollment_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Remove the enrollment and free its seat."""
    await service.unenroll(user, enrollment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{enrollment_id}/progress", response_model=ProgressResponse)
async def get_progress(enrollment_id: uuid.UUID, user: CurrentUser, service: Enrollments):
    """Overall progress with its content/assessment breakdown."""
    record, breakdown = await service.progress_breakdown(user, enrollment_id)
    return ProgressResponse(
        enrollment_id=record.id,
        status=record.status,
        grade=record.grade,
        overall_progress=record.progress.overall_progress,
        breakdown=breakdown,
        time_spent=record.progress.time_spent,
        last_activity=record.progress.last_activity,
    )


@router.put("/{enrollment_id}/status", response_model=EnrollmentResponse)
async def change_status(
    enrollment_id: uuid.UUID,
    body: StatusChangeRequest,
    user: CurrentUser,
    service: Enrollments,
):
    record = await service.change_status(user, enrollment_id, body.status)
    return EnrollmentResponse.from_record(record)


@router.post("/{enrollment_id}/complete-content", response_model=EnrollmentResponse)
async def complete_content(
    enrollment_id: uuid.UUID,
    body: CompleteContentRequest,
    user: CurrentUser,
    service: Enrollments,
):
    """Mark a content item complete; 400 if it already was."""
    record = await service.complete_content(user, enrollment_id, body.content_id, body.time_spent)
    return EnrollmentResponse.from_record(record)


@router.get(
    "/{enrollment_id}/assessment-status/{assessment_id}",
    response_model=AssessmentStatusResponse,
)
async def get_assessment_status(
    enrollment_id: uuid.UUID,
    assessment_id: uuid.UUID,
    user: CurrentUser,
    service: Enrollments,
):
    result = await service.assessment_status(user, enrollment_id, assessment_id)
    return AssessmentStatusResponse(**result.model_dump())


@router.put("/{enrollment_id}/progress", response_model=EnrollmentResponse)
async def update_progress(
    enrollment_id: uuid.UUID,
    body: ProgressUpdateRequest,
    user: CurrentUser,
    service: Enrollments,
):
    """Overwrite progress from a trusted upstream computation."""
    update = ProgressUpdate(**body.model_dump())
    record = await service.update_progress(user, enrollment_id, update)
    return EnrollmentResponse.from_record(record)
