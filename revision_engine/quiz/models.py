"""
Quiz data model.

Questions and answers are tagged unions: questions discriminate on `type`,
answers on `kind`. Field names are snake_case in Python and camelCase on
the wire (stored attempts, quiz generation responses).

Grading keys are validated leniently: a malformed key (a string where an
option index is expected, an unknown assertion letter) becomes None so the
question is ungradeable rather than rejected.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Literal, Union

from loguru import logger
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from revision_engine.core.utils import topic_key

ASSERTION_LETTERS = ("A", "B", "C", "D")

# 9999-12-31T00:00:00Z, the last day every timezone can represent
MAX_CREATED_AT_MS = 253402214400000


class QuestionType(str, Enum):
    """Quiz question variants."""

    MCQ_SINGLE = "MCQ_SINGLE"
    MCQ_MULTI = "MCQ_MULTI"
    SHORT = "SHORT"
    NUMERICAL = "NUMERICAL"
    ASSERTION_REASON = "ASSERTION_REASON"
    FILL_BLANK = "FILL_BLANK"


class AnswerKind(str, Enum):
    """Answer shapes."""

    MCQ_SINGLE = "mcq_single"
    MCQ_MULTI = "mcq_multi"
    TEXT = "text"
    ASSERTION_REASON = "assertion_reason"


# =============================================================================
# Lenient coercion
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _index_or_none(value: Any) -> int | None:
    if _is_number(value) and float(value).is_integer():
        return int(value)
    return None


def _indices_or_none(value: Any) -> list[int] | None:
    if not isinstance(value, list):
        return None
    return [int(v) for v in value if _is_number(v) and float(v).is_integer()]


def _number_or_none(value: Any) -> float | None:
    return float(value) if _is_number(value) else None


def _tolerance(value: Any) -> float:
    return abs(float(value)) if _is_number(value) else 0.0


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


def _letter_or_none(value: Any) -> str | None:
    if isinstance(value, str) and value.strip().upper() in ASSERTION_LETTERS:
        return value.strip().upper()
    return None


def _letter_or_blank(value: Any) -> str:
    return _letter_or_none(value) or ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) else ""


OptionIndex = Annotated[int | None, BeforeValidator(_index_or_none)]
OptionIndices = Annotated[list[int] | None, BeforeValidator(_indices_or_none)]
OptionalNumber = Annotated[float | None, BeforeValidator(_number_or_none)]
Tolerance = Annotated[float, BeforeValidator(_tolerance)]
OptionalText = Annotated[str | None, BeforeValidator(_str_or_none)]
TextList = Annotated[list[str] | None, BeforeValidator(_str_list)]
OptionalLetter = Annotated[str | None, BeforeValidator(_letter_or_none)]


class WireModel(BaseModel):
    """Base model with camelCase wire aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Questions
# =============================================================================


class QuestionHints(WireModel):
    hint1: OptionalText = None
    hint2: OptionalText = None


class NumericalKey(WireModel):
    final_answer: OptionalNumber = None
    tolerance: Tolerance = 0.0
    unit: OptionalText = None


class AssertionReasonKey(WireModel):
    assertion: OptionalText = None
    reason: OptionalText = None
    options: TextList = None
    correct_option: OptionalLetter = None


class FillBlankKey(WireModel):
    text_with_blank: OptionalText = None
    answer: OptionalText = None


class QuestionBase(WireModel):
    """Fields shared by every question variant."""

    id: str
    question: str = ""
    options: TextList = None
    concept_tags: TextList = None
    hints: QuestionHints | None = None
    explanation: OptionalText = None
    exam_tips: OptionalText = None
    shortcut_trick: OptionalText = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("question", mode="before")
    @classmethod
    def _coerce_question(cls, value: Any) -> str:
        return _text(value)


class McqSingleQuestion(QuestionBase):
    type: Literal["MCQ_SINGLE"] = "MCQ_SINGLE"
    correct_option: OptionIndex = None


class McqMultiQuestion(QuestionBase):
    type: Literal["MCQ_MULTI"] = "MCQ_MULTI"
    correct_options: OptionIndices = None


class ShortQuestion(QuestionBase):
    type: Literal["SHORT"] = "SHORT"
    expected_keywords: TextList = None


class NumericalQuestion(QuestionBase):
    type: Literal["NUMERICAL"] = "NUMERICAL"
    numerical: NumericalKey | None = None


class AssertionReasonQuestion(QuestionBase):
    type: Literal["ASSERTION_REASON"] = "ASSERTION_REASON"
    assertion_reason: AssertionReasonKey | None = None


class FillBlankQuestion(QuestionBase):
    type: Literal["FILL_BLANK"] = "FILL_BLANK"
    fill_blank: FillBlankKey | None = None


QuizQuestion = Annotated[
    Union[
        McqSingleQuestion,
        McqMultiQuestion,
        ShortQuestion,
        NumericalQuestion,
        AssertionReasonQuestion,
        FillBlankQuestion,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Answers
# =============================================================================


class McqSingleAnswer(WireModel):
    kind: Literal["mcq_single"] = "mcq_single"
    value: OptionIndex = None


class McqMultiAnswer(WireModel):
    kind: Literal["mcq_multi"] = "mcq_multi"
    value: Annotated[list[int], BeforeValidator(lambda v: _indices_or_none(v) or [])] = Field(
        default_factory=list
    )


class TextAnswer(WireModel):
    kind: Literal["text"] = "text"
    value: Annotated[str, BeforeValidator(_text)] = ""


class AssertionReasonAnswer(WireModel):
    kind: Literal["assertion_reason"] = "assertion_reason"
    value: Annotated[str, BeforeValidator(_letter_or_blank)] = ""


AnswerValue = Annotated[
    Union[McqSingleAnswer, McqMultiAnswer, TextAnswer, AssertionReasonAnswer],
    Field(discriminator="kind"),
]

_QUESTION_TYPES = {t.value for t in QuestionType}
_ANSWER_KINDS = {k.value for k in AnswerKind}


def default_answer_for(question_type: str) -> McqSingleAnswer | McqMultiAnswer | TextAnswer | AssertionReasonAnswer:
    """Blank answer matching a question type."""
    if question_type == QuestionType.MCQ_SINGLE:
        return McqSingleAnswer()
    if question_type == QuestionType.MCQ_MULTI:
        return McqMultiAnswer()
    if question_type == QuestionType.ASSERTION_REASON:
        return AssertionReasonAnswer()
    return TextAnswer()


# =============================================================================
# Payloads
# =============================================================================


class QuizPayload(WireModel):
    """A generated quiz."""

    title: OptionalText = None
    subject: OptionalText = None
    topic: OptionalText = None
    difficulty: OptionalText = None
    time_mode: OptionalText = None
    exam_type: OptionalText = None
    questions: list[QuizQuestion] = Field(default_factory=list)

    @field_validator("questions", mode="before")
    @classmethod
    def _drop_unknown_types(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        kept = []
        for item in value:
            if isinstance(item, dict) and item.get("type") in _QUESTION_TYPES:
                kept.append(item)
            elif isinstance(item, BaseModel):
                kept.append(item)
            else:
                logger.debug(f"Dropping question with unsupported shape: {item!r:.80}")
        return kept

    def question_ids_unique(self) -> bool:
        """Whether every question id appears once."""
        ids = [q.id for q in self.questions]
        return len(ids) == len(set(ids))


class StoredQuizAttempt(WireModel):
    """
    One completed quiz submission.

    Immutable once written. Topics and subjects are joined to attempts by
    name/id string match only.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str
    created_at: int
    user_id: str
    subject_id: str = ""
    subject_name: OptionalText = None
    topic_name: str = "Unknown Topic"
    difficulty: OptionalText = None
    time_mode: Literal["Timed", "Practice"] = "Practice"
    exam_type: OptionalText = None
    question_count: int | None = None
    quiz: QuizPayload
    answers: dict[str, AnswerValue] = Field(default_factory=dict)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> Any:
        if _is_number(value):
            value = int(value)
            if not 0 <= value < MAX_CREATED_AT_MS:
                raise ValueError(f"createdAt out of range: {value}")
        return value

    @field_validator("subject_id", mode="before")
    @classmethod
    def _coerce_subject_id(cls, value: Any) -> Any:
        return _text(value)

    @field_validator("topic_name", mode="before")
    @classmethod
    def _coerce_topic_name(cls, value: Any) -> Any:
        return _text(value) or "Unknown Topic"

    @field_validator("time_mode", mode="before")
    @classmethod
    def _coerce_time_mode(cls, value: Any) -> str:
        return "Timed" if value == "Timed" else "Practice"

    @field_validator("question_count", mode="before")
    @classmethod
    def _coerce_question_count(cls, value: Any) -> int | None:
        return _index_or_none(value)

    @field_validator("answers", mode="before")
    @classmethod
    def _drop_unknown_answers(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        return {
            str(qid): answer
            for qid, answer in value.items()
            if isinstance(answer, BaseModel)
            or (isinstance(answer, dict) and answer.get("kind") in _ANSWER_KINDS)
        }

    @property
    def subject_key(self) -> str:
        return self.subject_id or self.subject_name or "unknown"

    @property
    def topic_key(self) -> str:
        return topic_key(self.subject_key, self.topic_name or "Unknown Topic")

    def to_json(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: Any) -> StoredQuizAttempt:
        """Parse from the camelCase wire shape. Raises pydantic.ValidationError."""
        return cls.model_validate(data)


class GenerateQuizRequest(WireModel):
    """Input of the quiz generation collaborator."""

    user_id: str
    subject_id: str
    subject_name: str | None = None
    topic: str
    difficulty: Literal["Easy", "Medium", "Hard"] = "Medium"
    time_mode: Literal["Timed", "Practice"] = "Practice"
    question_count: int = Field(default=10, ge=1, le=20)
    exam_type: str = "General"
    question_types: list[QuestionType] = Field(default_factory=lambda: [QuestionType.MCQ_SINGLE])

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
