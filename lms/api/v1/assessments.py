"""
Assessment submission endpoint.
"""

import uuid

from fastapi import APIRouter

from lms.api.deps import CurrentUser, Enrollments
from lms.schemas.assessment import SubmissionRequest, SubmissionResponse

router = APIRouter()


@router.post("/{assessment_id}/submit", response_model=SubmissionResponse)
async def submit_assessment(
    assessment_id: uuid.UUID,
    body: SubmissionRequest,
    user: CurrentUser,
    service: Enrollments,
):
    """
    Grade a submission against the caller's enrollment.

    Fails with 403 if not enrolled, 400 if the assessment is not available
    or the attempt limit is reached.
    """
    result = await service.submit_assessment(user, assessment_id, body.answers, body.time_spent)
    return SubmissionResponse(**result.model_dump())
