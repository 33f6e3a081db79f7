"""
Unit tests for answer evaluation.

Covers every question type plus the ungradeable cases that must yield
None rather than False.
"""

import pytest

from revision_engine.core.utils import Rating
from revision_engine.quiz.evaluator import (
    correct_answer_text,
    evaluate,
    is_answered,
    rating_from_accuracy,
    score_attempt,
)
from revision_engine.quiz.models import (
    AssertionReasonAnswer,
    AssertionReasonQuestion,
    FillBlankQuestion,
    McqMultiAnswer,
    McqMultiQuestion,
    McqSingleAnswer,
    McqSingleQuestion,
    NumericalQuestion,
    ShortQuestion,
    StoredQuizAttempt,
    TextAnswer,
)


def numerical(final_answer=10, tolerance=1, unit="m"):
    return NumericalQuestion.model_validate(
        {"id": "n", "numerical": {"finalAnswer": final_answer, "tolerance": tolerance, "unit": unit}}
    )


class TestMcq:
    """Single and multiple choice."""

    def test_single_correct_and_wrong(self):
        q = McqSingleQuestion(id="q", correct_option=2)

        assert evaluate(q, McqSingleAnswer(value=2)) is True
        assert evaluate(q, McqSingleAnswer(value=0)) is False

    def test_single_unanswered(self):
        q = McqSingleQuestion(id="q", correct_option=2)
        assert evaluate(q, McqSingleAnswer(value=None)) is None
        assert evaluate(q, None) is None

    def test_single_without_key(self):
        q = McqSingleQuestion(id="q")
        assert evaluate(q, McqSingleAnswer(value=0)) is None

    def test_multi_order_independent(self):
        q = McqMultiQuestion(id="q", correct_options=[2, 0])

        assert evaluate(q, McqMultiAnswer(value=[0, 2])) is True
        assert evaluate(q, McqMultiAnswer(value=[0])) is False
        assert evaluate(q, McqMultiAnswer(value=[0, 1, 2])) is False

    def test_multi_empty_selection(self):
        q = McqMultiQuestion(id="q", correct_options=[1])
        assert evaluate(q, McqMultiAnswer(value=[])) is None

    def test_kind_mismatch(self):
        q = McqSingleQuestion(id="q", correct_option=1)
        assert evaluate(q, TextAnswer(value="1")) is None


class TestTextTypes:
    """Fill in the blank, numerical and short answers."""

    def test_fill_blank_case_and_whitespace(self):
        q = FillBlankQuestion.model_validate({"id": "f", "fillBlank": {"answer": "Photosynthesis"}})

        assert evaluate(q, TextAnswer(value="  photosynthesis ")) is True
        assert evaluate(q, TextAnswer(value="respiration")) is False
        assert evaluate(q, TextAnswer(value="   ")) is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10", True),
            ("11", True),
            ("9.0", True),
            ("11.5", False),
            ("abc", None),
            ("nan", None),
            ("", None),
        ],
    )
    def test_numerical_tolerance(self, value, expected):
        assert evaluate(numerical(), TextAnswer(value=value)) is expected

    def test_numerical_negative_tolerance_is_absolute(self):
        assert evaluate(numerical(tolerance=-1), TextAnswer(value="10.5")) is True

    def test_numerical_without_key(self):
        q = NumericalQuestion(id="n")
        assert evaluate(q, TextAnswer(value="10")) is None

    def test_short_needs_two_keywords(self):
        q = ShortQuestion(id="s", expected_keywords=["Mass", "acceleration", "force"])

        assert evaluate(q, TextAnswer(value="Force equals mass times acceleration")) is True
        assert evaluate(q, TextAnswer(value="It is about force")) is False

    def test_short_single_keyword(self):
        q = ShortQuestion(id="s", expected_keywords=["inertia"])
        assert evaluate(q, TextAnswer(value="INERTIA")) is True

    def test_short_without_keywords(self):
        q = ShortQuestion(id="s", expected_keywords=[])
        assert evaluate(q, TextAnswer(value="anything")) is None


class TestAssertionReason:
    """Assertion/reason letters."""

    def test_letter_match(self):
        q = AssertionReasonQuestion.model_validate({"id": "ar", "assertionReason": {"correctOption": "b"}})

        assert evaluate(q, AssertionReasonAnswer(value="B")) is True
        assert evaluate(q, AssertionReasonAnswer(value="C")) is False
        assert evaluate(q, AssertionReasonAnswer(value="")) is None


class TestHelpers:
    """is_answered, scoring and answer text."""

    def test_is_answered(self):
        assert is_answered(None) is False
        assert is_answered(McqSingleAnswer(value=0)) is True
        assert is_answered(McqMultiAnswer(value=[])) is False
        assert is_answered(TextAnswer(value="  ")) is False
        assert is_answered(AssertionReasonAnswer(value="A")) is True

    def test_score_attempt_counts_every_question(self):
        attempt = StoredQuizAttempt.from_json(
            {
                "id": "a",
                "createdAt": 1,
                "userId": "u",
                "quiz": {
                    "questions": [
                        {"id": "q1", "type": "MCQ_SINGLE", "correctOption": 0},
                        {"id": "q2", "type": "MCQ_SINGLE", "correctOption": 0},
                        {"id": "q3", "type": "MCQ_SINGLE", "correctOption": 0},
                    ]
                },
                "answers": {"q1": {"kind": "mcq_single", "value": 0}},
            }
        )
        score = score_attempt(attempt)

        assert (score.total, score.correct, score.accuracy) == (3, 1, 33)

    def test_correct_answer_text(self):
        assert correct_answer_text(McqSingleQuestion(id="q", correct_option=1)) == "Correct: B"
        assert correct_answer_text(McqMultiQuestion(id="q", correct_options=[0, 2])) == "Correct: A, C"
        assert correct_answer_text(numerical()) == "Correct: 10 m (±1)"
        assert correct_answer_text(ShortQuestion(id="s", expected_keywords=["a", "b"])) == "Expected keywords: a, b"
        assert correct_answer_text(McqSingleQuestion(id="q")) == ""

    @pytest.mark.parametrize(
        "accuracy,rating",
        [(100, Rating.EASY), (80, Rating.EASY), (79, Rating.MEDIUM), (55, Rating.MEDIUM), (54, Rating.HARD), (0, Rating.HARD)],
    )
    def test_rating_from_accuracy(self, accuracy, rating):
        assert rating_from_accuracy(accuracy) == rating
