"""
Assessment definition as seen by the grading engine.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from lms.engines.grading.questions import GradableQuestion


class AssessmentDefinition(BaseModel):
    """Read-only view of an assessment: limits, window and ordered questions."""

    id: uuid.UUID
    course_id: uuid.UUID
    title: str = ""
    passing_score: int = Field(default=70, ge=0, le=100)
    max_attempts: int = Field(default=3, ge=1)
    time_limit: int = 0  # minutes, 0 = none
    is_published: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    questions: List[GradableQuestion] = []

    def is_available(self, now: datetime) -> bool:
        """Published and now within [start_date, end_date] (either bound optional)."""
        if not self.is_published:
            return False
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True

    def availability(self, now: datetime) -> str:
        """draft / scheduled / expired / active."""
        if not self.is_published:
            return "draft"
        if self.start_date and now < self.start_date:
            return "scheduled"
        if self.end_date and now > self.end_date:
            return "expired"
        return "active"

    def total_score(self) -> int:
        return sum(q.points for q in self.questions)
