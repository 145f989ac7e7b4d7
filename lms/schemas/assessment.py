"""
Pydantic schemas for assessment submission API.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from lms.engines.grading.grader import SubmittedAnswer


class SubmissionRequest(BaseModel):
    """Answers for one attempt. Unknown question ids are ignored."""

    answers: List[SubmittedAnswer] = []
    time_spent: int = Field(default=0, ge=0)


class SubmissionResponse(BaseModel):
    enrollment_id: uuid.UUID
    assessment_id: uuid.UUID
    score: int
    max_score: int
    percentage: int
    passed: bool
    attempt_number: int
    overall_progress: int


class AssessmentStatusResponse(BaseModel):
    """Whether the caller can take the assessment now, and why not."""

    assessment_id: uuid.UUID
    title: str
    can_take: bool
    reason: Optional[str] = None
    current_attempts: int
    max_attempts: int
    availability: str
    best_score: Optional[int] = None
    passed: bool = False
