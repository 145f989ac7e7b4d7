"""
Progress Engine - enrollment progress, completion and grades.

- Overall progress: 70% content completion + 30% passed assessments
- Content completion is recorded once per content item
- Completing an enrollment derives a letter grade (A+ .. F)
"""

from lms.engines.progress.records import (
    AssessmentAttempt,
    AssessmentProgress,
    CompletedContent,
    EnrollmentProgress,
    EnrollmentRecord,
)
from lms.engines.progress.aggregator import (
    CourseTotals,
    ProgressAggregator,
    ProgressBreakdown,
    ProgressUpdate,
)
from lms.engines.progress.lifecycle import (
    EnrollmentLifecycle,
    compute_grade,
    letter_grade,
)

__all__ = [
    "AssessmentAttempt",
    "AssessmentProgress",
    "CompletedContent",
    "EnrollmentProgress",
    "EnrollmentRecord",
    "CourseTotals",
    "ProgressAggregator",
    "ProgressBreakdown",
    "ProgressUpdate",
    "EnrollmentLifecycle",
    "compute_grade",
    "letter_grade",
]
