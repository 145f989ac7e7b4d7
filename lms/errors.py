"""
Domain error taxonomy.

Every anticipated failure of a grading or progress operation is an LMSError
carrying an ErrorKind; the API layer maps kinds to HTTP status codes in one
place. Anything else (database or lookup failures) is left to propagate.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Kinds of anticipated domain failures."""
    NOT_FOUND = "not_found"
    NOT_ENROLLED = "not_enrolled"
    UNAUTHORIZED = "unauthorized"
    ASSESSMENT_UNAVAILABLE = "assessment_unavailable"
    ATTEMPT_LIMIT_EXCEEDED = "attempt_limit_exceeded"
    ALREADY_COMPLETED = "already_completed"
    VALIDATION_ERROR = "validation_error"
    ALREADY_ENROLLED = "already_enrolled"
    COURSE_UNAVAILABLE = "course_unavailable"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENT_MODIFICATION = "concurrent_modification"


class LMSError(Exception):
    """Base class for domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.kind.value}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(LMSError):
    kind = ErrorKind.NOT_FOUND


class NotEnrolled(LMSError):
    kind = ErrorKind.NOT_ENROLLED


class Unauthorized(LMSError):
    kind = ErrorKind.UNAUTHORIZED


class AssessmentUnavailable(LMSError):
    kind = ErrorKind.ASSESSMENT_UNAVAILABLE


class AttemptLimitExceeded(LMSError):
    kind = ErrorKind.ATTEMPT_LIMIT_EXCEEDED


class AlreadyCompleted(LMSError):
    kind = ErrorKind.ALREADY_COMPLETED


class InvalidAnswer(LMSError):
    """Submitted answer does not have the shape its question expects."""
    kind = ErrorKind.VALIDATION_ERROR


class AlreadyEnrolled(LMSError):
    kind = ErrorKind.ALREADY_ENROLLED


class CourseUnavailable(LMSError):
    """Course is unpublished or full."""
    kind = ErrorKind.COURSE_UNAVAILABLE


class InvalidTransition(LMSError):
    kind = ErrorKind.INVALID_TRANSITION


class ConcurrentModification(LMSError):
    kind = ErrorKind.CONCURRENT_MODIFICATION


# HTTP status for each kind, used by the exception handler in lms.main
HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NOT_ENROLLED: 403,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.ASSESSMENT_UNAVAILABLE: 400,
    ErrorKind.ATTEMPT_LIMIT_EXCEEDED: 400,
    ErrorKind.ALREADY_COMPLETED: 400,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.ALREADY_ENROLLED: 400,
    ErrorKind.COURSE_UNAVAILABLE: 400,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.CONCURRENT_MODIFICATION: 409,
}
