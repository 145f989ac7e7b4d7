"""
Question variants for auto-grading.

Each question type carries only the answer key it needs; the union is
discriminated on ``type`` so a stored question row always validates into
exactly one variant.
"""

import uuid
from enum import Enum
from typing import Annotated, Any, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class QuestionType(str, Enum):
    """Supported question types."""
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_BLANK = "fill-in-blank"
    ESSAY = "essay"
    MATCHING = "matching"
    ORDERING = "ordering"


class ChoiceOption(BaseModel):
    """One option of a multiple-choice question."""

    text: str
    is_correct: bool = False


class MatchingPair(BaseModel):
    """One left/right pair of a matching question."""

    left: str
    right: str


class _QuestionBase(BaseModel):
    id: uuid.UUID
    points: int = Field(default=1, ge=0)


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["multiple-choice"] = "multiple-choice"
    options: List[ChoiceOption] = Field(..., min_length=1)


class TrueFalseQuestion(_QuestionBase):
    type: Literal["true-false"] = "true-false"
    correct_answer: bool


class FillInBlankQuestion(_QuestionBase):
    type: Literal["fill-in-blank"] = "fill-in-blank"
    correct_answers: List[str] = Field(..., min_length=1)


class EssayQuestion(_QuestionBase):
    """Essays are graded manually; nothing to auto-grade against."""

    type: Literal["essay"] = "essay"


class MatchingQuestion(_QuestionBase):
    type: Literal["matching"] = "matching"
    matching_pairs: List[MatchingPair] = Field(..., min_length=1)


class OrderingQuestion(_QuestionBase):
    type: Literal["ordering"] = "ordering"
    correct_order: List[str] = Field(..., min_length=1)


GradableQuestion = Annotated[
    Union[
        MultipleChoiceQuestion,
        TrueFalseQuestion,
        FillInBlankQuestion,
        EssayQuestion,
        MatchingQuestion,
        OrderingQuestion,
    ],
    Field(discriminator="type"),
]

_question_adapter: TypeAdapter = TypeAdapter(GradableQuestion)


def parse_question(data: dict[str, Any]) -> GradableQuestion:
    """Validate a raw question mapping into its variant."""
    return _question_adapter.validate_python(data)


def question_from_row(row: Any) -> GradableQuestion:
    """Build a question variant from a ``questions`` table row."""
    return parse_question(
        {
            **(row.answer_key or {}),
            "id": row.id,
            "type": row.question_type,
            "points": row.points,
        }
    )
