"""
AttemptTracker - bounded attempts on one assessment for one enrollment.
"""

from datetime import datetime
from typing import Optional, Sequence

from pydantic import BaseModel

from lms.engines.grading.assessment import AssessmentDefinition
from lms.engines.grading.grader import AnswerGrader, SubmittedAnswer
from lms.engines.progress.records import (
    AssessmentAttempt,
    AssessmentProgress,
    EnrollmentProgress,
)
from lms.errors import AssessmentUnavailable, AttemptLimitExceeded, ErrorKind
from lms.logging_config import get_logger

logger = get_logger(__name__)


class AttemptCheck(BaseModel):
    """Whether another attempt is allowed, and why not."""

    allowed: bool
    reason: Optional[ErrorKind] = None
    attempts_used: int
    max_attempts: int


class AttemptTracker:
    """
    Gates and records attempts for one (enrollment, assessment) pair.

    The tracker works on the enrollment's progress document in place; the
    caller persists the document afterwards.
    """

    def __init__(self, assessment: AssessmentDefinition, progress: EnrollmentProgress):
        self.assessment = assessment
        self.progress = progress

    @property
    def entry(self) -> Optional[AssessmentProgress]:
        return self.progress.find_assessment(self.assessment.id)

    @property
    def attempts_used(self) -> int:
        entry = self.entry
        return len(entry.attempts) if entry else 0

    def check(self, now: datetime) -> AttemptCheck:
        """Availability first, then the attempt cap."""
        reason = None
        if not self.assessment.is_available(now):
            reason = ErrorKind.ASSESSMENT_UNAVAILABLE
        elif self.attempts_used >= self.assessment.max_attempts:
            reason = ErrorKind.ATTEMPT_LIMIT_EXCEEDED
        return AttemptCheck(
            allowed=reason is None,
            reason=reason,
            attempts_used=self.attempts_used,
            max_attempts=self.assessment.max_attempts,
        )

    def can_attempt(self, now: datetime) -> bool:
        return self.check(now).allowed

    def record_attempt(
        self,
        answers: Sequence[SubmittedAnswer],
        time_spent: int,
        now: datetime,
        started_at: Optional[datetime] = None,
    ) -> AssessmentAttempt:
        """
        Grade a submission and append it as the next attempt.

        best_score only goes up and passed never reverts to False.
        """
        check = self.check(now)
        if check.reason == ErrorKind.ASSESSMENT_UNAVAILABLE:
            raise AssessmentUnavailable(
                "Assessment is not available",
                details={"assessment_id": str(self.assessment.id)},
            )
        if check.reason == ErrorKind.ATTEMPT_LIMIT_EXCEEDED:
            raise AttemptLimitExceeded(
                "Maximum attempts reached for this assessment",
                details={
                    "assessment_id": str(self.assessment.id),
                    "max_attempts": check.max_attempts,
                },
            )

        grade = AnswerGrader.grade_submission(self.assessment.questions, answers)
        passed = grade.percentage >= self.assessment.passing_score

        attempt = AssessmentAttempt(
            attempt_number=check.attempts_used + 1,
            score=grade.total_score,
            max_score=grade.max_score,
            percentage=grade.percentage,
            passed=passed,
            answers=grade.answers,
            started_at=started_at or now,
            completed_at=now,
            time_spent=time_spent,
        )

        entry = self.entry
        if entry is None:
            entry = AssessmentProgress(
                assessment_id=self.assessment.id,
                best_score=grade.total_score,
            )
            self.progress.completed_assessments.append(entry)

        entry.attempts.append(attempt)
        entry.best_score = max(entry.best_score, grade.total_score)
        entry.score = grade.total_score
        entry.max_score = grade.max_score
        entry.passed = entry.passed or passed
        entry.completed_at = now
        self.progress.last_activity = now

        logger.info(
            "Attempt recorded",
            extra={
                "assessment_id": str(self.assessment.id),
                "attempt_number": attempt.attempt_number,
                "score": attempt.score,
                "max_score": attempt.max_score,
                "passed": passed,
            },
        )
        return attempt
