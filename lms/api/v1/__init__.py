"""
API v1 routes.
"""

from fastapi import APIRouter

from lms.api.v1 import assessments, courses, enrollments
from lms.schemas.common import ErrorResponse

router = APIRouter(
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

router.include_router(courses.router, prefix="/courses", tags=["Courses"])
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
router.include_router(assessments.router, prefix="/assessments", tags=["Assessments"])
