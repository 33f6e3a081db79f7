"""
Unit tests for quiz wire models.
"""

import pytest
from pydantic import ValidationError

from revision_engine.quiz.models import (
    AssertionReasonQuestion,
    GenerateQuizRequest,
    McqMultiAnswer,
    McqSingleAnswer,
    McqSingleQuestion,
    NumericalQuestion,
    QuestionType,
    QuizPayload,
    StoredQuizAttempt,
    TextAnswer,
    default_answer_for,
)


@pytest.fixture
def attempt_json():
    return {
        "id": "a1",
        "createdAt": 1710504000000.0,
        "userId": "u1",
        "subjectId": "phy",
        "subjectName": "Physics",
        "topicName": "Kinematics",
        "timeMode": "Timed",
        "questionCount": 2,
        "quiz": {
            "questions": [
                {"id": "q1", "type": "MCQ_SINGLE", "question": "?", "options": ["a", "b"], "correctOption": 1},
                {"id": "q2", "type": "NUMERICAL", "question": "?", "numerical": {"finalAnswer": 9.8, "tolerance": 0.1, "unit": "m/s²"}},
            ]
        },
        "answers": {
            "q1": {"kind": "mcq_single", "value": 1},
            "q2": {"kind": "text", "value": "9.75"},
        },
    }


class TestQuizPayload:
    """Tests for question parsing."""

    def test_discriminates_on_type(self, attempt_json):
        quiz = QuizPayload.model_validate(attempt_json["quiz"])

        assert isinstance(quiz.questions[0], McqSingleQuestion)
        assert isinstance(quiz.questions[1], NumericalQuestion)
        assert quiz.questions[1].numerical.final_answer == 9.8

    def test_unknown_types_dropped(self):
        quiz = QuizPayload.model_validate(
            {"questions": [{"id": "q1", "type": "ESSAY"}, {"id": "q2", "type": "SHORT"}, "junk"]}
        )
        assert [q.id for q in quiz.questions] == ["q2"]

    def test_malformed_key_becomes_none(self):
        quiz = QuizPayload.model_validate(
            {
                "questions": [
                    {"id": "q1", "type": "MCQ_SINGLE", "correctOption": "B"},
                    {"id": "q2", "type": "ASSERTION_REASON", "assertionReason": {"correctOption": "E"}},
                ]
            }
        )
        assert quiz.questions[0].correct_option is None
        assert isinstance(quiz.questions[1], AssertionReasonQuestion)
        assert quiz.questions[1].assertion_reason.correct_option is None

    def test_numeric_id_coerced(self):
        quiz = QuizPayload.model_validate({"questions": [{"id": 7, "type": "SHORT"}]})
        assert quiz.questions[0].id == "7"

    def test_question_ids_unique(self):
        quiz = QuizPayload.model_validate(
            {"questions": [{"id": "q1", "type": "SHORT"}, {"id": "q1", "type": "SHORT"}]}
        )
        assert quiz.question_ids_unique() is False


class TestStoredQuizAttempt:
    """Tests for the stored attempt record."""

    def test_from_json(self, attempt_json):
        attempt = StoredQuizAttempt.from_json(attempt_json)

        assert attempt.created_at == 1710504000000
        assert attempt.time_mode == "Timed"
        assert isinstance(attempt.answers["q1"], McqSingleAnswer)
        assert isinstance(attempt.answers["q2"], TextAnswer)

    def test_keys(self, attempt_json):
        attempt = StoredQuizAttempt.from_json(attempt_json)

        assert attempt.subject_key == "phy"
        assert attempt.topic_key == "phy__Kinematics"

    def test_subject_key_falls_back_to_name(self, attempt_json):
        attempt_json["subjectId"] = ""
        assert StoredQuizAttempt.from_json(attempt_json).subject_key == "Physics"

    def test_unknown_time_mode_is_practice(self, attempt_json):
        attempt_json["timeMode"] = "Sprint"
        assert StoredQuizAttempt.from_json(attempt_json).time_mode == "Practice"

    def test_unknown_answer_kinds_dropped(self, attempt_json):
        attempt_json["answers"]["q3"] = {"kind": "drawing", "value": "..."}
        attempt = StoredQuizAttempt.from_json(attempt_json)
        assert "q3" not in attempt.answers

    def test_missing_created_at_rejected(self, attempt_json):
        del attempt_json["createdAt"]
        with pytest.raises(ValidationError):
            StoredQuizAttempt.from_json(attempt_json)

    @pytest.mark.parametrize("created_at", [10**17, -1])
    def test_out_of_range_created_at_rejected(self, attempt_json, created_at):
        attempt_json["createdAt"] = created_at
        with pytest.raises(ValidationError):
            StoredQuizAttempt.from_json(attempt_json)

    def test_to_json_uses_camel_case(self, attempt_json):
        data = StoredQuizAttempt.from_json(attempt_json).to_json()

        assert data["createdAt"] == 1710504000000
        assert data["topicName"] == "Kinematics"
        assert data["quiz"]["questions"][0]["correctOption"] == 1
        assert data["answers"]["q1"] == {"kind": "mcq_single", "value": 1}

    def test_frozen(self, attempt_json):
        attempt = StoredQuizAttempt.from_json(attempt_json)
        with pytest.raises(ValidationError):
            attempt.user_id = "u2"


class TestAnswers:
    """Tests for answer defaults and coercion."""

    def test_default_answer_for(self):
        assert isinstance(default_answer_for(QuestionType.MCQ_SINGLE), McqSingleAnswer)
        assert isinstance(default_answer_for("MCQ_MULTI"), McqMultiAnswer)
        assert isinstance(default_answer_for("FILL_BLANK"), TextAnswer)

    def test_multi_answer_drops_non_integers(self):
        assert McqMultiAnswer.model_validate({"value": [0, "x", 2.0]}).value == [0, 2]


class TestGenerateQuizRequest:
    """Tests for the generation request."""

    def test_payload(self):
        request = GenerateQuizRequest(user_id="u1", subject_id="phy", topic="Optics", question_count=5)
        payload = request.to_payload()

        assert payload["userId"] == "u1"
        assert payload["questionCount"] == 5
        assert payload["questionTypes"] == ["MCQ_SINGLE"]

    def test_question_count_bounds(self):
        with pytest.raises(ValidationError):
            GenerateQuizRequest(user_id="u1", subject_id="phy", topic="Optics", question_count=21)
