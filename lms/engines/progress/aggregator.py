"""
Progress Aggregator - weighted course completion for an enrollment.

overall = round(content% * 0.7 + passed-assessment% * 0.3)

Only assessments whose ``passed`` flag is set count; merely attempting one
does not. With no course structure to measure against the stored value is
left alone.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from lms.engines.progress.records import (
    AssessmentProgress,
    CompletedContent,
    EnrollmentProgress,
)
from lms.engines.rounding import ratio_percent, round_half_up
from lms.errors import AlreadyCompleted
from lms.logging_config import get_logger

logger = get_logger(__name__)


class CourseTotals(BaseModel):
    """How much there is to complete in a course."""

    total_content: int = 0
    total_assessments: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total_content == 0 and self.total_assessments == 0


class ProgressBreakdown(BaseModel):
    """Detailed view of the weighted progress computation."""

    overall: int
    content: int
    assessments: int
    total_content: int
    total_assessments: int
    completed_content: int
    passed_assessments: int


class ProgressUpdate(BaseModel):
    """Trusted overwrite of progress from an upstream computation."""

    progress: Optional[int] = Field(default=None, ge=0, le=100)
    completed_content: Optional[List[uuid.UUID]] = None
    completed_assessments: Optional[List[AssessmentProgress]] = None
    last_activity: Optional[datetime] = None


class ProgressAggregator:
    """Computes and applies overall progress on an EnrollmentProgress document."""

    CONTENT_WEIGHT = 0.7
    ASSESSMENT_WEIGHT = 0.3

    def __init__(self, estimated_total_content: int = 10):
        self.estimated_total_content = estimated_total_content

    @classmethod
    def breakdown(cls, progress: EnrollmentProgress, totals: CourseTotals) -> ProgressBreakdown:
        completed = len(progress.completed_content)
        passed = progress.passed_assessment_count()
        content_pct = ratio_percent(completed, totals.total_content)
        assessment_pct = ratio_percent(passed, totals.total_assessments)
        return ProgressBreakdown(
            overall=round_half_up(content_pct * cls.CONTENT_WEIGHT + assessment_pct * cls.ASSESSMENT_WEIGHT),
            content=round_half_up(content_pct),
            assessments=round_half_up(assessment_pct),
            total_content=totals.total_content,
            total_assessments=totals.total_assessments,
            completed_content=completed,
            passed_assessments=passed,
        )

    @classmethod
    def recompute(cls, progress: EnrollmentProgress, totals: Optional[CourseTotals]) -> int:
        """Recompute overall_progress; a no-op when totals are unknown or empty."""
        if totals is None or totals.is_empty:
            return progress.overall_progress
        overall = cls.breakdown(progress, totals).overall
        progress.overall_progress = min(max(overall, 0), 100)
        return progress.overall_progress

    @staticmethod
    def set_progress(progress: EnrollmentProgress, value: int) -> int:
        """Explicitly set overall_progress, clamped to [0, 100]."""
        progress.overall_progress = min(max(int(value), 0), 100)
        return progress.overall_progress

    def simple_progress(self, progress: EnrollmentProgress, estimated_total: Optional[int] = None) -> int:
        """Completed content against an estimated total, capped at 100."""
        total = estimated_total or self.estimated_total_content
        value = round_half_up(ratio_percent(len(progress.completed_content), total))
        progress.overall_progress = min(value, 100)
        return progress.overall_progress

    @staticmethod
    def mark_content_complete(
        progress: EnrollmentProgress,
        content_id: uuid.UUID,
        time_spent: int,
        now: datetime,
    ) -> CompletedContent:
        """Append a content completion; a second completion of the same id is rejected."""
        if progress.has_completed_content(content_id):
            raise AlreadyCompleted(
                "Content already marked as completed",
                details={"content_id": str(content_id)},
            )
        item = CompletedContent(content_id=content_id, completed_at=now, time_spent=time_spent)
        progress.completed_content.append(item)
        progress.time_spent += time_spent
        progress.last_activity = now
        return item

    def apply_update(
        self,
        progress: EnrollmentProgress,
        update: ProgressUpdate,
        totals: Optional[CourseTotals],
        now: datetime,
    ) -> int:
        """
        Apply a trusted overwrite.

        An explicit ``progress`` value always wins. Otherwise recompute from
        course totals, or fall back to the simple estimate when the course
        has no structure loaded.
        """
        if update.completed_content is not None:
            existing = {item.content_id: item for item in progress.completed_content}
            replaced: List[CompletedContent] = []
            for content_id in dict.fromkeys(update.completed_content):
                replaced.append(existing.get(content_id) or CompletedContent(content_id=content_id, completed_at=now))
            progress.completed_content = replaced

        if update.completed_assessments is not None:
            progress.completed_assessments = list(update.completed_assessments)

        progress.last_activity = update.last_activity or now

        if update.progress is not None:
            return self.set_progress(progress, update.progress)
        if totals is not None and not totals.is_empty:
            return self.recompute(progress, totals)
        logger.debug("Course structure unavailable, using estimated total")
        return self.simple_progress(progress)
