"""
AnswerGrader - auto-grading of submitted answers against question answer keys.

All-or-nothing per question: a correct answer earns the question's points,
anything else earns 0. Essays are never auto-scored correct; their real score
comes from manual review outside this engine.
"""

import uuid
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence

from pydantic import BaseModel

from lms.engines.grading.questions import (
    EssayQuestion,
    FillInBlankQuestion,
    GradableQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    OrderingQuestion,
    TrueFalseQuestion,
)
from lms.engines.rounding import ratio_percent, round_half_up
from lms.errors import InvalidAnswer


class SubmittedAnswer(BaseModel):
    """One answer as submitted by a student."""

    question_id: uuid.UUID
    answer: Any = None


class GradedAnswer(BaseModel):
    """Result of grading one question."""

    question_id: uuid.UUID
    answer: Any = None
    is_correct: bool
    points: int  # earned


class SubmissionGrade(BaseModel):
    """Result of grading a whole submission."""

    total_score: int
    max_score: int
    percentage: int
    answers: List[GradedAnswer]


class AnswerGrader:
    """Scores answers by question type."""

    @classmethod
    def grade(cls, question: GradableQuestion, answer: Any) -> GradedAnswer:
        """Grade a single answer. Pure: same inputs, same result."""
        is_correct = cls._is_correct(question, answer)
        return GradedAnswer(
            question_id=question.id,
            answer=answer,
            is_correct=is_correct,
            points=question.points if is_correct else 0,
        )

    @classmethod
    def _is_correct(cls, question: GradableQuestion, answer: Any) -> bool:
        if isinstance(question, MultipleChoiceQuestion):
            cls._require(isinstance(answer, str), question, "a string option text")
            return any(opt.is_correct and opt.text == answer for opt in question.options)

        if isinstance(question, TrueFalseQuestion):
            cls._require(isinstance(answer, bool), question, "a boolean")
            return answer == question.correct_answer

        if isinstance(question, FillInBlankQuestion):
            cls._require(isinstance(answer, str), question, "a string")
            submitted = answer.lower()
            return any(accepted.lower() == submitted for accepted in question.correct_answers)

        if isinstance(question, MatchingQuestion):
            pairs = cls._matching_pairs(question, answer)
            # Position matters: pair i must equal key pair i.
            if len(pairs) != len(question.matching_pairs):
                return False
            return all(
                left == expected.left and right == expected.right
                for (left, right), expected in zip(pairs, question.matching_pairs)
            )

        if isinstance(question, OrderingQuestion):
            cls._require(isinstance(answer, list), question, "a list")
            return answer == question.correct_order

        if isinstance(question, EssayQuestion):
            return False

        raise TypeError(f"Unhandled question variant: {type(question).__name__}")

    @staticmethod
    def _require(ok: bool, question: GradableQuestion, expected: str) -> None:
        if not ok:
            raise InvalidAnswer(
                f"Answer for {question.type} question must be {expected}",
                details={"question_id": str(question.id)},
            )

    @classmethod
    def _matching_pairs(cls, question: MatchingQuestion, answer: Any) -> List[tuple]:
        cls._require(isinstance(answer, list), question, "a list of {left, right} pairs")
        pairs = []
        for item in answer:
            cls._require(
                isinstance(item, Mapping) and "left" in item and "right" in item,
                question,
                "a list of {left, right} pairs",
            )
            pairs.append((item["left"], item["right"]))
        return pairs

    @classmethod
    def grade_submission(
        cls,
        questions: Sequence[GradableQuestion],
        answers: Sequence[SubmittedAnswer],
    ) -> SubmissionGrade:
        """
        Grade every question of an assessment.

        Unanswered questions earn 0 and are left out of the graded answers,
        but their points still count toward max_score. Answers for questions
        not in the assessment are ignored; the first answer for a question wins.
        """
        by_question: Dict[uuid.UUID, SubmittedAnswer] = {}
        for submitted in answers:
            by_question.setdefault(submitted.question_id, submitted)

        total_score = 0
        max_score = 0
        graded: List[GradedAnswer] = []
        for question in questions:
            max_score += question.points
            submitted = by_question.get(question.id)
            if submitted is None:
                continue
            result = cls.grade(question, submitted.answer)
            total_score += result.points
            graded.append(result)

        return SubmissionGrade(
            total_score=total_score,
            max_score=max_score,
            percentage=round_half_up(ratio_percent(total_score, max_score)),
            answers=graded,
        )
