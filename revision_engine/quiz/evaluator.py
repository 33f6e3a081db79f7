"""
Answer evaluation for typed quiz questions.

evaluate() returns:
- True: correct
- False: incorrect
- None: cannot be graded (unanswered, missing grading key, or the answer
  shape does not match the question type)

Callers exclude None from accuracy denominators when grading a single
question. Pure functions, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from revision_engine.core.utils import Rating, percent
from revision_engine.quiz.models import (
    AnswerValue,
    AssertionReasonAnswer,
    AssertionReasonQuestion,
    FillBlankQuestion,
    McqMultiAnswer,
    McqMultiQuestion,
    McqSingleAnswer,
    McqSingleQuestion,
    NumericalQuestion,
    QuizQuestion,
    ShortQuestion,
    StoredQuizAttempt,
    TextAnswer,
    default_answer_for,
)

EASY_ACCURACY = 80
MEDIUM_ACCURACY = 55


@dataclass(frozen=True)
class AttemptScore:
    """Per-attempt score as shown in attempt history."""

    total: int
    correct: int
    accuracy: int


def _normalize(text: str) -> str:
    return text.lower().strip()


def _parse_number(text: str) -> float | None:
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def evaluate(question: QuizQuestion, answer: AnswerValue | None) -> bool | None:
    """
    Grade one answer against its question.

    Args:
        question: Any question variant
        answer: The stored answer, or None when the question was never touched

    Returns:
        True, False, or None when ungradeable
    """
    if answer is None:
        return None

    if isinstance(question, McqSingleQuestion):
        if not isinstance(answer, McqSingleAnswer) or answer.value is None:
            return None
        if question.correct_option is None:
            return None
        return answer.value == question.correct_option

    if isinstance(question, McqMultiQuestion):
        if not isinstance(answer, McqMultiAnswer):
            return None
        if question.correct_options is None or not answer.value:
            return None
        return sorted(answer.value) == sorted(question.correct_options)

    if isinstance(question, AssertionReasonQuestion):
        if not isinstance(answer, AssertionReasonAnswer) or not answer.value:
            return None
        key = question.assertion_reason.correct_option if question.assertion_reason else None
        if not key:
            return None
        return answer.value == key

    if isinstance(question, FillBlankQuestion):
        if not isinstance(answer, TextAnswer):
            return None
        expected = question.fill_blank.answer if question.fill_blank else None
        if not expected or not answer.value.strip():
            return None
        return _normalize(answer.value) == _normalize(expected)

    if isinstance(question, NumericalQuestion):
        if not isinstance(answer, TextAnswer):
            return None
        key = question.numerical
        if key is None or key.final_answer is None or not answer.value.strip():
            return None
        value = _parse_number(answer.value)
        if value is None:
            return None
        return abs(value - key.final_answer) <= key.tolerance

    if isinstance(question, ShortQuestion):
        if not isinstance(answer, TextAnswer) or not answer.value.strip():
            return None
        keywords = question.expected_keywords or []
        if not keywords:
            return None
        text = _normalize(answer.value)
        hits = [k for k in keywords if _normalize(k) in text]
        return len(hits) >= min(2, len(keywords))

    return None


def is_answered(answer: AnswerValue | None) -> bool:
    """Whether the learner gave any answer at all."""
    if answer is None:
        return False
    if isinstance(answer, McqSingleAnswer):
        return answer.value is not None
    if isinstance(answer, McqMultiAnswer):
        return len(answer.value) > 0
    if isinstance(answer, AssertionReasonAnswer):
        return bool(answer.value)
    return bool(answer.value.strip())


def score_attempt(attempt: StoredQuizAttempt) -> AttemptScore:
    """
    Score an attempt the way the history view shows it.

    Every question counts in the total; only True results count as correct.
    """
    total = 0
    correct = 0
    for question in attempt.quiz.questions:
        total += 1
        answer = attempt.answers.get(question.id) or default_answer_for(question.type)
        if evaluate(question, answer) is True:
            correct += 1
    return AttemptScore(total=total, correct=correct, accuracy=percent(correct, total))


def _option_letter(index: int) -> str:
    return chr(65 + index)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def correct_answer_text(question: QuizQuestion) -> str:
    """Human-readable answer key, empty when the question has none."""
    if isinstance(question, McqSingleQuestion):
        if question.correct_option is None:
            return ""
        return f"Correct: {_option_letter(question.correct_option)}"

    if isinstance(question, McqMultiQuestion):
        if not question.correct_options:
            return ""
        return "Correct: " + ", ".join(_option_letter(i) for i in question.correct_options)

    if isinstance(question, AssertionReasonQuestion):
        key = question.assertion_reason.correct_option if question.assertion_reason else None
        return f"Correct: {key}" if key else ""

    if isinstance(question, FillBlankQuestion):
        expected = question.fill_blank.answer if question.fill_blank else None
        return f"Correct: {expected}" if expected else ""

    if isinstance(question, NumericalQuestion):
        key = question.numerical
        if key is None or key.final_answer is None:
            return ""
        unit = f" {key.unit}" if key.unit else ""
        return f"Correct: {_format_number(key.final_answer)}{unit} (±{_format_number(key.tolerance)})"

    if isinstance(question, ShortQuestion):
        if not question.expected_keywords:
            return ""
        return "Expected keywords: " + ", ".join(question.expected_keywords)

    return ""


def rating_from_accuracy(accuracy: float) -> Rating:
    """Map a rapid-fire accuracy percentage to a revision rating."""
    if accuracy >= EASY_ACCURACY:
        return Rating.EASY
    if accuracy >= MEDIUM_ACCURACY:
        return Rating.MEDIUM
    return Rating.HARD
