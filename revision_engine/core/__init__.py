"""
Core Module - Shared primitives and error types.

All domain modules (syllabus, quiz, storage, study, generation) import
rounding, clock and key helpers from here rather than reimplementing them.
"""

from revision_engine.core.exceptions import (
    GenerationError,
    RevisionEngineError,
    StorageError,
    WriteResult,
)
from revision_engine.core.utils import (
    DAY_MS,
    Rating,
    now_ms,
    percent,
    resolve_timezone,
    round_half_up,
    topic_key,
)

__all__ = [
    "RevisionEngineError",
    "GenerationError",
    "StorageError",
    "WriteResult",
    "DAY_MS",
    "Rating",
    "now_ms",
    "percent",
    "resolve_timezone",
    "round_half_up",
    "topic_key",
]
