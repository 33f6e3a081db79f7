"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from revision_engine.core.utils import DAY_MS  # noqa: E402
from revision_engine.quiz.models import StoredQuizAttempt  # noqa: E402
from revision_engine.storage.kv import MemoryKeyValueStore  # noqa: E402

# 2024-03-15 12:00:00 UTC (a Friday)
NOW = 1710504000000


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed clock, epoch ms."""
    return NOW


@pytest.fixture
def memory_store():
    """Empty in-memory key-value store."""
    return MemoryKeyValueStore()


def mcq(qid, correct=0, options=("A", "B", "C", "D")):
    """Single-answer MCQ as it appears on the wire."""
    return {"id": qid, "type": "MCQ_SINGLE", "question": f"Question {qid}?", "options": list(options), "correctOption": correct}


def mcq_answer(value):
    return {"kind": "mcq_single", "value": value}


@pytest.fixture
def make_attempt():
    """
    Build a StoredQuizAttempt from a compact description.

    results is a list of True (correct), False (wrong) or None (skipped)
    MCQ outcomes; days_ago shifts createdAt back from NOW.
    """

    def _make(
        results=(True,),
        attempt_id=None,
        user_id="u1",
        subject_id="phy",
        subject_name="Physics",
        topic_name="Kinematics",
        time_mode="Practice",
        days_ago=0,
        created_at=None,
        question_count=None,
    ):
        questions = []
        answers = {}
        for i, outcome in enumerate(results):
            qid = f"q{i}"
            questions.append(mcq(qid, correct=1))
            if outcome is True:
                answers[qid] = mcq_answer(1)
            elif outcome is False:
                answers[qid] = mcq_answer(2)
        stamp = created_at if created_at is not None else NOW - days_ago * DAY_MS
        data = {
            "id": attempt_id or f"{user_id}-{subject_id}-{topic_name}-{stamp}",
            "createdAt": stamp,
            "userId": user_id,
            "subjectId": subject_id,
            "subjectName": subject_name,
            "topicName": topic_name,
            "timeMode": time_mode,
            "quiz": {"questions": questions},
            "answers": answers,
        }
        if question_count is not None:
            data["questionCount"] = question_count
        return StoredQuizAttempt.from_json(data)

    return _make
