"""
Enrollment record and its progress sub-document.

These are the in-memory shapes the engines transform. The service loads one
from an ``enrollments`` row, hands it to the engines, and writes the result
back in a single versioned UPDATE.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from lms.engines.grading.grader import GradedAnswer
from lms.kernel.models.enrollment import EnrollmentStatus


class CompletedContent(BaseModel):
    """A content item the student finished."""

    content_id: uuid.UUID
    completed_at: datetime
    time_spent: int = Field(default=0, ge=0)  # minutes


class AssessmentAttempt(BaseModel):
    """One graded attempt. Attempts are append-only."""

    attempt_number: int
    score: int
    max_score: int
    percentage: int
    passed: bool
    answers: List[GradedAnswer] = []
    started_at: datetime
    completed_at: datetime
    time_spent: int = Field(default=0, ge=0)


class AssessmentProgress(BaseModel):
    """Per-assessment entry: attempt history plus derived best/passed."""

    assessment_id: uuid.UUID
    score: int = 0  # latest attempt
    max_score: int = 0  # latest attempt
    attempts: List[AssessmentAttempt] = []
    best_score: int = 0
    passed: bool = False  # monotonic once true
    completed_at: Optional[datetime] = None


class EnrollmentProgress(BaseModel):
    """Progress sub-document owned by an enrollment."""

    completed_content: List[CompletedContent] = []
    completed_assessments: List[AssessmentProgress] = []
    overall_progress: int = Field(default=0, ge=0, le=100)
    time_spent: int = Field(default=0, ge=0)  # minutes
    last_activity: Optional[datetime] = None

    def find_assessment(self, assessment_id: uuid.UUID) -> Optional[AssessmentProgress]:
        for entry in self.completed_assessments:
            if entry.assessment_id == assessment_id:
                return entry
        return None

    def has_completed_content(self, content_id: uuid.UUID) -> bool:
        return any(item.content_id == content_id for item in self.completed_content)

    def passed_assessment_count(self) -> int:
        return sum(1 for entry in self.completed_assessments if entry.passed)


class EnrollmentRecord(BaseModel):
    """Aggregate for one (student, course) pair."""

    id: uuid.UUID
    student_id: uuid.UUID
    course_id: uuid.UUID
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    enrollment_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    grade: Optional[str] = None
    progress: EnrollmentProgress = Field(default_factory=EnrollmentProgress)
    version: int = 1

    def is_completed(self) -> bool:
        """Progress-derived completion, independent of status."""
        return self.progress.overall_progress >= 100
