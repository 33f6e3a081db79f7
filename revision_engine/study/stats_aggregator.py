"""
Statistics over the quiz attempt log.

Folds attempts into per-topic, per-subject and overall counters:
- total/correct/wrong over answered questions (answered but ungradeable
  counts as wrong), skipped for unanswered ones
- focus seconds: a fixed per-question estimate, not measured time
- recency windows: last 7 days vs the 7 days before, per subject
- calendar figures: streak, missed days, daily/weekly/monthly focus

Everything is recomputed from the attempt list and "now"; nothing here is
persisted.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from revision_engine.core.utils import DAY_MS, percent, resolve_timezone, round_half_up
from revision_engine.quiz.evaluator import evaluate, is_answered
from revision_engine.quiz.models import StoredQuizAttempt

FOCUS_DAYS = 28
MISSED_WINDOW_DAYS = 14
RECENT_WINDOW_DAYS = 7


class FocusGranularity(str, Enum):
    """Focus time series buckets."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class TopicStats:
    """Counters for one topic key (`subject__topic`)."""

    total: int = 0
    correct: int = 0
    wrong: int = 0
    skipped: int = 0
    focus_seconds: int = 0
    accuracy: int = 0
    avg_sec_per_q: int = 0

    def finalize(self) -> None:
        self.accuracy = percent(self.correct, self.total)
        self.avg_sec_per_q = round_half_up(self.focus_seconds / self.total) if self.total else 0


@dataclass
class WindowStats:
    """Graded counts inside one recency window."""

    total: int = 0
    correct: int = 0

    @property
    def accuracy(self) -> int:
        return percent(self.correct, self.total)


@dataclass
class SubjectStats(TopicStats):
    """Counters for one subject, plus recency windows."""

    subject_id: str = ""
    subject_name: str | None = None
    attempts: int = 0
    last7: WindowStats = field(default_factory=WindowStats)
    prev7: WindowStats = field(default_factory=WindowStats)

    @property
    def accuracy_delta(self) -> int | None:
        """last7 minus prev7 accuracy, None when either window is empty."""
        if not self.last7.total or not self.prev7.total:
            return None
        return self.last7.accuracy - self.prev7.accuracy


@dataclass(frozen=True)
class FocusPoint:
    """Focus seconds in one period (`YYYY-MM-DD`, `YYYY-Www` or `YYYY-MM`)."""

    period: str
    seconds: int


@dataclass
class StatsReport:
    """Everything the dashboard and CLI read from the attempt log."""

    overall: SubjectStats
    by_subject: dict[str, SubjectStats]
    by_topic: dict[str, TopicStats]
    last_28_days_focus: list[FocusPoint]
    streak: int
    missed_last_14: int
    best_hour: int | None


class StatsAggregator:
    """
    Aggregates attempt logs into StatsReport.

    Calendar days are taken in the configured timezone; recency windows use
    whole elapsed days since "now".
    """

    def __init__(
        self,
        practice_seconds: int = 45,
        timed_seconds: int = 60,
        timezone: str = "UTC",
    ):
        """
        Args:
            practice_seconds: Estimated seconds per question in Practice mode
            timed_seconds: Estimated seconds per question in Timed mode
            timezone: IANA zone used for day, week, month and hour buckets
        """
        self.practice_seconds = practice_seconds
        self.timed_seconds = timed_seconds
        self.tz = resolve_timezone(timezone)

    # =========================================================================
    # Per-attempt helpers
    # =========================================================================

    def focus_seconds(self, attempt: StoredQuizAttempt) -> int:
        """Estimated focus time of one attempt."""
        per_question = self.timed_seconds if attempt.time_mode == "Timed" else self.practice_seconds
        count = attempt.question_count
        if count is None or count <= 0:
            count = len(attempt.quiz.questions)
        return count * per_question

    def local_datetime(self, epoch_ms: int) -> datetime:
        return datetime.fromtimestamp(epoch_ms / 1000, tz=self.tz)

    def local_date(self, epoch_ms: int) -> date:
        return self.local_datetime(epoch_ms).date()

    # =========================================================================
    # Aggregation
    # =========================================================================

    def aggregate(
        self,
        attempts: Iterable[StoredQuizAttempt],
        now: int,
        subject_id: str | None = None,
    ) -> StatsReport:
        """
        Fold attempts into a StatsReport.

        Args:
            attempts: One user's attempts, any order
            now: Current time, epoch ms
            subject_id: Restrict to attempts whose subject key matches

        Returns:
            StatsReport with finalized accuracies
        """
        selected = [a for a in attempts if subject_id is None or a.subject_key == subject_id]

        overall = SubjectStats(subject_id=subject_id or "", subject_name=None)
        by_subject: dict[str, SubjectStats] = {}
        by_topic: dict[str, TopicStats] = {}

        for attempt in selected:
            subject = by_subject.get(attempt.subject_key)
            if subject is None:
                subject = SubjectStats(subject_id=attempt.subject_key, subject_name=attempt.subject_name)
                by_subject[attempt.subject_key] = subject
            elif subject.subject_name is None and attempt.subject_name:
                subject.subject_name = attempt.subject_name

            topic = by_topic.setdefault(attempt.topic_key, TopicStats())
            self._fold(attempt, now, overall, subject, topic)

        overall.finalize()
        for stats in by_subject.values():
            stats.finalize()
        for stats in by_topic.values():
            stats.finalize()

        return StatsReport(
            overall=overall,
            by_subject=by_subject,
            by_topic=by_topic,
            last_28_days_focus=self.last_days_focus(selected, now, FOCUS_DAYS),
            streak=self.streak(selected, now),
            missed_last_14=self.missed_days(selected, now, MISSED_WINDOW_DAYS),
            best_hour=self.best_hour(selected),
        )

    def _fold(
        self,
        attempt: StoredQuizAttempt,
        now: int,
        overall: SubjectStats,
        subject: SubjectStats,
        topic: TopicStats,
    ) -> None:
        focus = self.focus_seconds(attempt)
        window = self._window_for(subject, attempt.created_at, now)
        overall_window = self._window_for(overall, attempt.created_at, now)

        for stats in (overall, subject):
            stats.attempts += 1
        for stats in (overall, subject, topic):
            stats.focus_seconds += focus

        for question in attempt.quiz.questions:
            answer = attempt.answers.get(question.id)
            if not is_answered(answer):
                for stats in (overall, subject, topic):
                    stats.skipped += 1
                continue

            correct = evaluate(question, answer) is True
            for stats in (overall, subject, topic):
                stats.total += 1
                if correct:
                    stats.correct += 1
                else:
                    stats.wrong += 1
            for win in (window, overall_window):
                if win is not None:
                    win.total += 1
                    if correct:
                        win.correct += 1

    def _window_for(self, stats: SubjectStats, created_at: int, now: int) -> WindowStats | None:
        age_days = max(0, (now - created_at) // DAY_MS)
        if age_days < RECENT_WINDOW_DAYS:
            return stats.last7
        if age_days < 2 * RECENT_WINDOW_DAYS:
            return stats.prev7
        return None

    # =========================================================================
    # Calendar figures
    # =========================================================================

    def _active_days(self, attempts: Iterable[StoredQuizAttempt]) -> set[date]:
        return {self.local_date(a.created_at) for a in attempts}

    def streak(self, attempts: Iterable[StoredQuizAttempt], now: int) -> int:
        """Consecutive active days ending today; 0 when today has no attempt."""
        days = self._active_days(attempts)
        day = self.local_date(now)
        count = 0
        while day in days:
            count += 1
            day -= timedelta(days=1)
        return count

    def missed_days(self, attempts: Iterable[StoredQuizAttempt], now: int, window: int = MISSED_WINDOW_DAYS) -> int:
        """Days without any attempt among the last `window` days, today included."""
        days = self._active_days(attempts)
        today = self.local_date(now)
        return sum(1 for i in range(window) if today - timedelta(days=i) not in days)

    def best_hour(self, attempts: Iterable[StoredQuizAttempt]) -> int | None:
        """Hour of day (0-23) with the most focus time; earliest hour on ties."""
        by_hour: dict[int, int] = defaultdict(int)
        for attempt in attempts:
            by_hour[self.local_datetime(attempt.created_at).hour] += self.focus_seconds(attempt)
        if not by_hour:
            return None
        return min(by_hour, key=lambda hour: (-by_hour[hour], hour))

    def _period(self, day: date, granularity: FocusGranularity) -> str:
        if granularity == FocusGranularity.WEEKLY:
            iso = day.isocalendar()
            return f"{iso[0]}-W{iso[1]:02d}"
        if granularity == FocusGranularity.MONTHLY:
            return f"{day.year}-{day.month:02d}"
        return day.isoformat()

    def focus_series(
        self,
        attempts: Iterable[StoredQuizAttempt],
        granularity: FocusGranularity | str = FocusGranularity.DAILY,
    ) -> list[FocusPoint]:
        """Focus seconds grouped by day, ISO week or month, oldest first."""
        granularity = FocusGranularity(granularity)
        totals: dict[str, int] = defaultdict(int)
        for attempt in attempts:
            period = self._period(self.local_date(attempt.created_at), granularity)
            totals[period] += self.focus_seconds(attempt)
        return [FocusPoint(period=p, seconds=totals[p]) for p in sorted(totals)]

    def last_days_focus(self, attempts: Iterable[StoredQuizAttempt], now: int, days: int = FOCUS_DAYS) -> list[FocusPoint]:
        """Daily focus over the `days` days ending today, zero-filled, oldest first."""
        daily = {p.period: p.seconds for p in self.focus_series(attempts, FocusGranularity.DAILY)}
        today = self.local_date(now)
        series = []
        for offset in range(days - 1, -1, -1):
            period = (today - timedelta(days=offset)).isoformat()
            series.append(FocusPoint(period=period, seconds=daily.get(period, 0)))
        return series
