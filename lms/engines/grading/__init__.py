"""
Grading Engine - auto-grading of assessment submissions.

Question types and their rule:
- multiple-choice: submitted text equals a correct option's text
- true-false: submitted boolean equals the key
- fill-in-blank: case-insensitive match against any accepted answer
- matching: pair i equals key pair i (order-sensitive)
- ordering: submitted sequence equals the key sequence
- essay: never auto-scored correct

AttemptTracker lives in lms.engines.grading.attempt_tracker.
"""

from lms.engines.grading.questions import (
    QuestionType,
    GradableQuestion,
    parse_question,
    question_from_row,
)
from lms.engines.grading.grader import (
    AnswerGrader,
    GradedAnswer,
    SubmissionGrade,
    SubmittedAnswer,
)
from lms.engines.grading.assessment import AssessmentDefinition

__all__ = [
    "QuestionType",
    "GradableQuestion",
    "parse_question",
    "question_from_row",
    "AnswerGrader",
    "GradedAnswer",
    "SubmissionGrade",
    "SubmittedAnswer",
    "AssessmentDefinition",
]
