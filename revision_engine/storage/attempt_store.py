"""
Bounded log of quiz attempts.

Attempts are kept newest-first and capped at `max_attempts`; appending
past the cap silently evicts the oldest entries. Entries that fail
validation on read (missing id, non-numeric createdAt, no questions) are
dropped so one bad record never hides the rest of the log.
"""

from __future__ import annotations

from pydantic import ValidationError
from loguru import logger

from revision_engine.core.exceptions import WriteResult
from revision_engine.quiz.models import StoredQuizAttempt
from revision_engine.storage.kv import JsonBucket, KeyValueStore

ATTEMPTS_BUCKET = "practice_quiz_previous_attempts_v1"
DEFAULT_MAX_ATTEMPTS = 50


def _looks_like_attempt(entry: object) -> bool:
    if not isinstance(entry, dict):
        return False
    if not isinstance(entry.get("id"), str):
        return False
    created_at = entry.get("createdAt")
    if not isinstance(created_at, (int, float)) or isinstance(created_at, bool):
        return False
    quiz = entry.get("quiz")
    return isinstance(quiz, dict) and isinstance(quiz.get("questions"), list) and bool(quiz["questions"])


class AttemptStore:
    """Append-only attempt log over a key-value store."""

    def __init__(self, store: KeyValueStore, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.bucket = JsonBucket(store, ATTEMPTS_BUCKET, default=list)
        self.max_attempts = max_attempts

    def read_all(self) -> list[StoredQuizAttempt]:
        """All valid attempts, newest first. Empty on any storage fault."""
        raw = self.bucket.read()
        if not isinstance(raw, list):
            logger.warning(f"Bucket {ATTEMPTS_BUCKET} is not a list, ignoring it")
            return []

        attempts = []
        for entry in raw:
            if not _looks_like_attempt(entry):
                logger.debug("Dropping malformed attempt entry")
                continue
            try:
                attempt = StoredQuizAttempt.from_json(entry)
            except ValidationError as e:
                logger.debug(f"Dropping attempt {entry.get('id')}: {e.error_count()} validation errors")
                continue
            if attempt.quiz.questions:
                attempts.append(attempt)

        attempts.sort(key=lambda a: a.created_at, reverse=True)
        return attempts

    def append(self, attempt: StoredQuizAttempt) -> WriteResult:
        """Prepend an attempt and evict beyond the cap. Never raises."""
        existing = [a for a in self.read_all() if a.id != attempt.id]
        attempts = sorted([attempt, *existing], key=lambda a: a.created_at, reverse=True)
        attempts = attempts[: self.max_attempts]

        result = self.bucket.write([a.to_json() for a in attempts])
        if result.ok:
            logger.debug(f"Stored attempt {attempt.id} ({len(attempts)} in log)")
        return result

    def filter_by_user(self, user_id: str) -> list[StoredQuizAttempt]:
        """Attempts belonging to one user, newest first."""
        if not user_id:
            return []
        return [a for a in self.read_all() if a.user_id == user_id]

    def clear(self) -> WriteResult:
        return self.bucket.write([])
