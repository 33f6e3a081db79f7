"""Rounding, clock and key helpers."""

from __future__ import annotations

import math
import time
from datetime import timezone, tzinfo
from enum import Enum
from zoneinfo import ZoneInfo

DAY_MS = 24 * 60 * 60 * 1000

KEY_SEPARATOR = "__"


class Rating(str, Enum):
    """Outcome of a revision or flashcard review."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves going up.

    Python's round() uses banker's rounding (round(12.5) == 12); accuracy
    figures must round 12.5 to 13.
    """
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float) -> int:
    """Integer percentage of part in whole, 0 when whole is 0."""
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def resolve_timezone(name: str) -> tzinfo:
    """IANA zone by name; "UTC" needs no tz database."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def topic_key(subject_key: str, topic_name: str) -> str:
    """Build the `subject__topic` key used by stats and progress maps."""
    return f"{subject_key}{KEY_SEPARATOR}{topic_name}"
