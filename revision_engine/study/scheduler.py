"""
Stage-based spaced repetition for topics and flashcards.

Stages run 0..4. A review rating moves the stage:
- hard   -> 0 (full reset)
- medium -> clamp(prev, 1, 2)
- easy   -> min(4, prev + 1)

The next review is `now + INTERVAL_DAYS[stage]` days, with the stage
clamped into the table, so stages 3 and 4 both wait 21 days.

Topic progress and flashcard decks are tracked independently but share
the same transition rule.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from revision_engine.core.exceptions import WriteResult
from revision_engine.core.utils import DAY_MS, Rating, now_ms
from revision_engine.storage.kv import KeyValueStore
from revision_engine.storage.revision_store import (
    FLASHCARDS_BUCKET,
    PROGRESS_BUCKET,
    KeyedBucket,
)

INTERVAL_DAYS = (1, 3, 7, 21)
MAX_STAGE = 4

__all__ = [
    "INTERVAL_DAYS",
    "MAX_STAGE",
    "DeckMode",
    "FlashCard",
    "Rating",
    "RevisionProgress",
    "SpacedScheduler",
    "calc_next_review_at",
    "compute_next_stage",
    "interval_days_for",
]


# =============================================================================
# Transition rule
# =============================================================================


def _clamp_stage(stage: Any) -> int:
    if not isinstance(stage, int) or isinstance(stage, bool):
        return 0
    return max(0, min(MAX_STAGE, stage))


def compute_next_stage(prev_stage: int, rating: Rating | str) -> int:
    """
    Next stage after a review.

    Args:
        prev_stage: Current stage (out-of-range values are clamped)
        rating: easy, medium or hard

    Returns:
        Stage in [0, MAX_STAGE]
    """
    rating = Rating(rating)
    prev = _clamp_stage(prev_stage)
    if rating == Rating.HARD:
        return 0
    if rating == Rating.MEDIUM:
        return max(1, min(2, prev))
    return min(MAX_STAGE, prev + 1)


def interval_days_for(stage: int) -> int:
    index = max(0, min(len(INTERVAL_DAYS) - 1, stage))
    return INTERVAL_DAYS[index]


def calc_next_review_at(stage: int, now: int) -> int:
    """Epoch ms of the next review for a stage reached at `now`."""
    return now + interval_days_for(stage) * DAY_MS


def _optional_ms(value: Any) -> int | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


# =============================================================================
# State
# =============================================================================


@dataclass
class RevisionProgress:
    """Revision state of one topic key."""

    stage: int = 0
    last_revised_at: int | None = None
    next_review_at: int | None = None
    revise_later: bool = False

    def is_due(self, now: int) -> bool:
        return self.next_review_at is not None and self.next_review_at <= now

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stage": self.stage, "reviseLater": self.revise_later}
        if self.last_revised_at is not None:
            data["lastRevisedAt"] = self.last_revised_at
        if self.next_review_at is not None:
            data["nextReviewAt"] = self.next_review_at
        return data

    @classmethod
    def from_dict(cls, data: Any) -> RevisionProgress:
        if not isinstance(data, dict):
            return cls()
        return cls(
            stage=_clamp_stage(data.get("stage")),
            last_revised_at=_optional_ms(data.get("lastRevisedAt")),
            next_review_at=_optional_ms(data.get("nextReviewAt")),
            revise_later=data.get("reviseLater") is True,
        )


@dataclass
class FlashCard:
    """A front/back card with its own stage."""

    id: str
    front: str
    back: str
    stage: int = 0
    next_review_at: int = 0

    def is_due(self, now: int) -> bool:
        return self.next_review_at <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "front": self.front,
            "back": self.back,
            "stage": self.stage,
            "nextReviewAt": self.next_review_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> FlashCard | None:
        if not isinstance(data, dict):
            return None
        if not all(isinstance(data.get(k), str) for k in ("id", "front", "back")):
            return None
        return cls(
            id=data["id"],
            front=data["front"],
            back=data["back"],
            stage=_clamp_stage(data.get("stage")),
            next_review_at=_optional_ms(data.get("nextReviewAt")) or 0,
        )


class DeckMode(str, Enum):
    """Flashcard presentation order."""

    NORMAL = "normal"
    SHUFFLE = "shuffle"
    SPACED = "spaced"


# =============================================================================
# Scheduler
# =============================================================================


class SpacedScheduler:
    """
    Applies review ratings to topic progress and flashcard decks.

    State lives in two keyed buckets of a KeyValueStore. Writes are best
    effort: a failed write is logged and the computed state is still
    returned.
    """

    def __init__(self, store: KeyValueStore):
        self.progress = KeyedBucket(store, PROGRESS_BUCKET)
        self.flashcards = KeyedBucket(store, FLASHCARDS_BUCKET)

    # -------------------------------------------------------------------------
    # Topic progress
    # -------------------------------------------------------------------------

    def progress_for(self, key: str) -> RevisionProgress:
        return RevisionProgress.from_dict(self.progress.get(key))

    def all_progress(self) -> dict[str, RevisionProgress]:
        return {k: RevisionProgress.from_dict(v) for k, v in self.progress.all().items()}

    def mark_topic_revised(
        self,
        key: str,
        rating: Rating | str = Rating.MEDIUM,
        now: int | None = None,
    ) -> RevisionProgress:
        """
        Record a revision of a topic.

        Advances the stage by the rating, stamps the revision time, schedules
        the next review and clears the revise-later flag.
        """
        now = now_ms() if now is None else now
        prev = self.progress_for(key)
        stage = compute_next_stage(prev.stage, rating)
        updated = RevisionProgress(
            stage=stage,
            last_revised_at=now,
            next_review_at=calc_next_review_at(stage, now),
            revise_later=False,
        )
        self.progress.put(key, updated.to_dict())
        logger.debug(f"Topic {key} rated {Rating(rating).value}: stage {prev.stage} -> {stage}")
        return updated

    def mark_revise_later(self, key: str) -> RevisionProgress:
        """Flag a topic for later without touching its stage."""
        prev = self.progress_for(key)
        prev.revise_later = True
        self.progress.put(key, prev.to_dict())
        return prev

    def reset(self, key: str) -> WriteResult:
        return self.progress.remove(key)

    def due_topics(self, now: int | None = None) -> list[tuple[str, RevisionProgress]]:
        """Topics whose next review has passed, most overdue first."""
        now = now_ms() if now is None else now
        due = [(k, p) for k, p in self.all_progress().items() if p.is_due(now)]
        due.sort(key=lambda item: (item[1].next_review_at, item[0]))
        return due

    def last_revised_at(self) -> int | None:
        stamps = [p.last_revised_at for p in self.all_progress().values() if p.last_revised_at]
        return max(stamps) if stamps else None

    # -------------------------------------------------------------------------
    # Flashcards
    # -------------------------------------------------------------------------

    def deck_for(self, key: str) -> list[FlashCard]:
        """Stored deck in stored order; malformed cards are skipped."""
        raw = self.flashcards.get(key)
        if not isinstance(raw, list):
            return []
        return [card for item in raw if (card := FlashCard.from_dict(item)) is not None]

    def save_deck(self, key: str, cards: list[FlashCard]) -> WriteResult:
        return self.flashcards.put(key, [c.to_dict() for c in cards])

    def rate_flashcard(
        self,
        key: str,
        card_id: str,
        rating: Rating | str,
        now: int | None = None,
    ) -> FlashCard | None:
        """Apply a rating to one card. Returns None when the card is unknown."""
        now = now_ms() if now is None else now
        deck = self.deck_for(key)
        for card in deck:
            if card.id == card_id:
                card.stage = compute_next_stage(card.stage, rating)
                card.next_review_at = calc_next_review_at(card.stage, now)
                self.save_deck(key, deck)
                return card
        logger.debug(f"No flashcard {card_id} in deck {key}")
        return None

    def deck(
        self,
        key: str,
        mode: DeckMode | str = DeckMode.SPACED,
        now: int | None = None,
        rng: random.Random | None = None,
    ) -> list[FlashCard]:
        """
        Cards in presentation order.

        normal:  stored order
        shuffle: uniform shuffle
        spaced:  due cards in stored order, otherwise the whole deck by
                 next review time
        """
        mode = DeckMode(mode)
        cards = self.deck_for(key)

        if mode == DeckMode.NORMAL:
            return cards
        if mode == DeckMode.SHUFFLE:
            (rng or random.Random()).shuffle(cards)
            return cards

        now = now_ms() if now is None else now
        due = [c for c in cards if c.is_due(now)]
        if due:
            return due
        return sorted(cards, key=lambda c: c.next_review_at)
