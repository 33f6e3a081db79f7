"""
Mastery classification from topic statistics.

Mastery score:
    coverage = min(1, total / 20)
    score    = round(accuracy × coverage)

Bands: Strong >= 75, Average >= 45, Weak otherwise. Topics with fewer
than 3 graded questions are not ranked.

Weak-topic detection for revision queues is a separate rule set:
- low accuracy: total >= 5 and accuracy < 60
- slow: total >= 5 and avg seconds per question > 60
- high wrong count: wrong >= 3
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from revision_engine.core.utils import round_half_up
from revision_engine.study.stats_aggregator import TopicStats


class MasteryBand(str, Enum):
    """Mastery band of a ranked topic."""

    WEAK = "weak"
    AVERAGE = "average"
    STRONG = "strong"

    @classmethod
    def from_score(cls, score: int) -> MasteryBand:
        if score >= 75:
            return cls.STRONG
        elif score >= 45:
            return cls.AVERAGE
        else:
            return cls.WEAK

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryBand.WEAK: "red",
            MasteryBand.AVERAGE: "yellow",
            MasteryBand.STRONG: "green",
        }[self]


@dataclass(frozen=True)
class TopicMastery:
    """Mastery of one topic key."""

    key: str
    score: int  # 0-100
    band: MasteryBand
    coverage: float
    total: int
    accuracy: int


@dataclass(frozen=True)
class WeakTopic:
    """A topic flagged for revision."""

    key: str
    priority: int
    accuracy: int
    total: int
    flags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def reason(self) -> str:
        return ", ".join(self.flags)


class MasteryClassifier:
    """
    Derives mastery scores, bands and weak-topic rankings.

    Thresholds are configurable; defaults match the dashboard.
    """

    SLOW_WEIGHT = 15
    WRONG_WEIGHT = 20

    def __init__(
        self,
        min_samples: int = 3,
        full_coverage: int = 20,
        weak_min_samples: int = 5,
        weak_accuracy_below: int = 60,
        weak_slow_seconds: int = 60,
        weak_wrong_count: int = 3,
    ):
        """
        Initialize classifier with configurable thresholds.

        Args:
            min_samples: Graded questions needed before a topic is ranked (default 3)
            full_coverage: Graded questions at which coverage reaches 1 (default 20)
            weak_min_samples: Floor for the accuracy and slowness rules (default 5)
            weak_accuracy_below: Accuracy under this is weak (default 60)
            weak_slow_seconds: Avg seconds per question over this is slow (default 60)
            weak_wrong_count: Wrong answers at or above this is weak (default 3)
        """
        self.min_samples = min_samples
        self.full_coverage = full_coverage
        self.weak_min_samples = weak_min_samples
        self.weak_accuracy_below = weak_accuracy_below
        self.weak_slow_seconds = weak_slow_seconds
        self.weak_wrong_count = weak_wrong_count

    def mastery(self, key: str, stats: TopicStats | None) -> TopicMastery | None:
        """
        Score one topic.

        Returns:
            TopicMastery, or None below the sample floor
        """
        if stats is None or stats.total < self.min_samples:
            return None
        coverage = min(1.0, stats.total / self.full_coverage)
        score = round_half_up(stats.accuracy * coverage)
        return TopicMastery(
            key=key,
            score=score,
            band=MasteryBand.from_score(score),
            coverage=coverage,
            total=stats.total,
            accuracy=stats.accuracy,
        )

    def rank_mastery(self, by_topic: Mapping[str, TopicStats]) -> list[TopicMastery]:
        """All rankable topics, highest score first, then by key."""
        ranked = [m for key, stats in by_topic.items() if (m := self.mastery(key, stats)) is not None]
        ranked.sort(key=lambda m: (-m.score, m.key))
        return ranked

    def strong_topics(self, by_topic: Mapping[str, TopicStats]) -> list[TopicMastery]:
        return [m for m in self.rank_mastery(by_topic) if m.band == MasteryBand.STRONG]

    def weak_topics(
        self,
        topic_keys: Iterable[str],
        by_topic: Mapping[str, TopicStats],
    ) -> list[WeakTopic]:
        """
        Flag weak topics and rank them by priority.

        Priority = (100 - accuracy) + 15 if slow + 20 if many wrong answers.
        Topics without stats are never weak. Ties keep input order.

        Args:
            topic_keys: Candidate keys, usually from the syllabus
            by_topic: Topic stats from StatsAggregator

        Returns:
            Weak topics, highest priority first
        """
        weak = []
        for key in topic_keys:
            stats = by_topic.get(key) or TopicStats()
            flags = []

            enough = stats.total >= self.weak_min_samples
            slow = stats.avg_sec_per_q > self.weak_slow_seconds
            many_wrong = stats.wrong >= self.weak_wrong_count

            if enough and stats.accuracy < self.weak_accuracy_below:
                flags.append("low_accuracy")
            if enough and slow:
                flags.append("slow")
            if many_wrong:
                flags.append("high_wrong")

            if not flags:
                continue

            priority = (
                (100 - stats.accuracy)
                + (self.SLOW_WEIGHT if slow else 0)
                + (self.WRONG_WEIGHT if many_wrong else 0)
            )
            weak.append(
                WeakTopic(
                    key=key,
                    priority=priority,
                    accuracy=stats.accuracy,
                    total=stats.total,
                    flags=tuple(flags),
                )
            )

        weak.sort(key=lambda w: -w.priority)
        return weak
