"""
Study Module - statistics, mastery and spaced revision.

Calculators are pure over the attempt log; the scheduler and the
revision service persist through the storage layer. The revision service
is imported from revision_engine.study.revision_service directly.
"""

from revision_engine.study.stats_aggregator import (
    FocusGranularity,
    FocusPoint,
    StatsAggregator,
    StatsReport,
    SubjectStats,
    TopicStats,
    WindowStats,
)
from revision_engine.study.mastery_calculator import (
    MasteryBand,
    MasteryClassifier,
    TopicMastery,
    WeakTopic,
)
from revision_engine.study.scheduler import (
    INTERVAL_DAYS,
    MAX_STAGE,
    DeckMode,
    FlashCard,
    RevisionProgress,
    SpacedScheduler,
    calc_next_review_at,
    compute_next_stage,
    interval_days_for,
)

__all__ = [
    "FocusGranularity",
    "FocusPoint",
    "StatsAggregator",
    "StatsReport",
    "SubjectStats",
    "TopicStats",
    "WindowStats",
    "MasteryBand",
    "MasteryClassifier",
    "TopicMastery",
    "WeakTopic",
    "INTERVAL_DAYS",
    "MAX_STAGE",
    "DeckMode",
    "FlashCard",
    "RevisionProgress",
    "SpacedScheduler",
    "calc_next_review_at",
    "compute_next_stage",
    "interval_days_for",
]
