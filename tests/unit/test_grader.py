"""Unit tests for grading engine: AnswerGrader, question parsing, rounding."""

import uuid

import pytest
from pydantic import ValidationError

from lms.engines.grading.grader import AnswerGrader, SubmittedAnswer
from lms.engines.grading.questions import (
    EssayQuestion,
    FillInBlankQuestion,
    MatchingQuestion,
    MultipleChoiceQuestion,
    OrderingQuestion,
    QuestionType,
    TrueFalseQuestion,
    parse_question,
)
from lms.engines.rounding import ratio_percent, round_half_up
from lms.errors import ErrorKind, InvalidAnswer


def _mc(points: int = 1) -> MultipleChoiceQuestion:
    return MultipleChoiceQuestion(
        id=uuid.uuid4(),
        points=points,
        options=[
            {"text": "3", "is_correct": False},
            {"text": "4", "is_correct": True},
            {"text": "5", "is_correct": False},
        ],
    )


def _matching() -> MatchingQuestion:
    return MatchingQuestion(
        id=uuid.uuid4(),
        points=2,
        matching_pairs=[
            {"left": "H2O", "right": "water"},
            {"left": "NaCl", "right": "salt"},
        ],
    )


class TestAnswerGrader:
    """Per-question-type grading rules."""

    def test_multiple_choice_correct_option(self):
        q = _mc(points=5)
        result = AnswerGrader.grade(q, "4")
        assert result.is_correct is True
        assert result.points == 5

    def test_multiple_choice_wrong_option(self):
        result = AnswerGrader.grade(_mc(points=5), "3")
        assert result.is_correct is False
        assert result.points == 0

    def test_multiple_choice_unknown_text_is_wrong(self):
        assert AnswerGrader.grade(_mc(), "four").is_correct is False

    def test_true_false(self):
        q = TrueFalseQuestion(id=uuid.uuid4(), correct_answer=False)
        assert AnswerGrader.grade(q, False).is_correct is True
        assert AnswerGrader.grade(q, True).is_correct is False

    def test_true_false_rejects_string(self):
        q = TrueFalseQuestion(id=uuid.uuid4(), correct_answer=True)
        with pytest.raises(InvalidAnswer) as exc_info:
            AnswerGrader.grade(q, "true")
        assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR

    def test_fill_in_blank_is_case_insensitive(self):
        q = FillInBlankQuestion(id=uuid.uuid4(), points=3, correct_answers=["Paris", "paris, france"])
        assert AnswerGrader.grade(q, "PARIS").is_correct is True
        assert AnswerGrader.grade(q, "Paris, France").points == 3
        assert AnswerGrader.grade(q, "Lyon").is_correct is False

    def test_essay_is_never_auto_correct(self):
        q = EssayQuestion(id=uuid.uuid4(), points=10)
        result = AnswerGrader.grade(q, "A thoughtful essay.")
        assert result.is_correct is False
        assert result.points == 0

    def test_matching_in_order(self):
        answer = [{"left": "H2O", "right": "water"}, {"left": "NaCl", "right": "salt"}]
        assert AnswerGrader.grade(_matching(), answer).points == 2

    def test_matching_is_order_sensitive(self):
        """Same pairs in a different order do not count."""
        answer = [{"left": "NaCl", "right": "salt"}, {"left": "H2O", "right": "water"}]
        assert AnswerGrader.grade(_matching(), answer).is_correct is False

    def test_matching_partial_list_is_wrong(self):
        answer = [{"left": "H2O", "right": "water"}]
        assert AnswerGrader.grade(_matching(), answer).is_correct is False

    def test_matching_rejects_malformed_pairs(self):
        with pytest.raises(InvalidAnswer):
            AnswerGrader.grade(_matching(), [["H2O", "water"]])

    def test_ordering_exact_sequence(self):
        q = OrderingQuestion(id=uuid.uuid4(), correct_order=["a", "b", "c"])
        assert AnswerGrader.grade(q, ["a", "b", "c"]).is_correct is True
        assert AnswerGrader.grade(q, ["a", "c", "b"]).is_correct is False

    def test_grading_is_deterministic(self):
        q = _mc(points=2)
        first = AnswerGrader.grade(q, "4")
        second = AnswerGrader.grade(q, "4")
        assert first == second


class TestGradeSubmission:
    """Whole-submission scoring."""

    def test_unanswered_questions_count_toward_max(self):
        q1 = TrueFalseQuestion(id=uuid.uuid4(), points=10, correct_answer=True)
        q2 = TrueFalseQuestion(id=uuid.uuid4(), points=10, correct_answer=False)
        grade = AnswerGrader.grade_submission(
            [q1, q2],
            [SubmittedAnswer(question_id=q1.id, answer=True)],
        )
        assert grade.total_score == 10
        assert grade.max_score == 20
        assert grade.percentage == 50
        assert [a.question_id for a in grade.answers] == [q1.id]

    def test_unknown_question_ids_ignored(self):
        q = TrueFalseQuestion(id=uuid.uuid4(), points=4, correct_answer=True)
        grade = AnswerGrader.grade_submission(
            [q],
            [
                SubmittedAnswer(question_id=uuid.uuid4(), answer=True),
                SubmittedAnswer(question_id=q.id, answer=True),
            ],
        )
        assert grade.total_score == 4
        assert len(grade.answers) == 1

    def test_first_answer_for_question_wins(self):
        q = TrueFalseQuestion(id=uuid.uuid4(), points=4, correct_answer=True)
        grade = AnswerGrader.grade_submission(
            [q],
            [
                SubmittedAnswer(question_id=q.id, answer=False),
                SubmittedAnswer(question_id=q.id, answer=True),
            ],
        )
        assert grade.total_score == 0

    def test_zero_max_score_gives_zero_percent(self):
        q = EssayQuestion(id=uuid.uuid4(), points=0)
        grade = AnswerGrader.grade_submission([q], [SubmittedAnswer(question_id=q.id, answer="x")])
        assert grade.max_score == 0
        assert grade.percentage == 0

    def test_percentage_rounds_half_up(self):
        qs = [TrueFalseQuestion(id=uuid.uuid4(), points=1, correct_answer=True) for _ in range(8)]
        answers = [SubmittedAnswer(question_id=q.id, answer=True) for q in qs[:5]]
        # 5/8 = 62.5%
        assert AnswerGrader.grade_submission(qs, answers).percentage == 63


class TestQuestionParsing:
    """Discriminated question union."""

    def test_parse_by_type(self):
        q = parse_question({"id": str(uuid.uuid4()), "type": "ordering", "correct_order": ["x", "y"]})
        assert isinstance(q, OrderingQuestion)
        assert q.type == QuestionType.ORDERING.value
        assert q.points == 1

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_question({"id": str(uuid.uuid4()), "type": "hotspot"})

    def test_missing_answer_key_rejected(self):
        with pytest.raises(ValidationError):
            parse_question({"id": str(uuid.uuid4()), "type": "true-false"})


class TestRounding:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(62.5) == 63
        assert round_half_up(49.4) == 49

    def test_ratio_of_zero_whole(self):
        assert ratio_percent(3, 0) == 0.0
