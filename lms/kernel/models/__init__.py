"""
Kernel Data Models

SQLAlchemy models for users, courses, assessments and enrollments.
"""

from lms.kernel.models.base import Base, TimestampMixin, generate_uuid, as_utc
from lms.kernel.models.user import User, UserRole
from lms.kernel.models.course import Course, CourseContent
from lms.kernel.models.assessment import Assessment, AssessmentQuestion, Question
from lms.kernel.models.enrollment import Enrollment, EnrollmentStatus

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "as_utc",
    # User
    "User",
    "UserRole",
    # Course
    "Course",
    "CourseContent",
    # Assessment
    "Assessment",
    "AssessmentQuestion",
    "Question",
    # Enrollment
    "Enrollment",
    "EnrollmentStatus",
]
