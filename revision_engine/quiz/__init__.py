"""Quiz question/answer model and answer evaluation."""

from revision_engine.quiz.evaluator import (
    AttemptScore,
    correct_answer_text,
    evaluate,
    is_answered,
    rating_from_accuracy,
    score_attempt,
)
from revision_engine.quiz.models import (
    AnswerKind,
    AnswerValue,
    GenerateQuizRequest,
    QuestionType,
    QuizPayload,
    QuizQuestion,
    StoredQuizAttempt,
)

__all__ = [
    "AnswerKind",
    "AnswerValue",
    "AttemptScore",
    "GenerateQuizRequest",
    "QuestionType",
    "QuizPayload",
    "QuizQuestion",
    "StoredQuizAttempt",
    "correct_answer_text",
    "evaluate",
    "is_answered",
    "rating_from_accuracy",
    "score_attempt",
]
