"""
Revision workflow: overview, smart sessions and rapid-fire rounds.

Ties the attempt log, stats, mastery classification and the scheduler
together the way the revision dashboard uses them:

1. overview()           weak/strong topics, due reviews, last revision
2. start_session()      queue the top weak topics for the time available
3. record_rapid_fire()  grade an MCQ round, log it as an attempt, and
                        move the topic's stage by the result
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from loguru import logger

from revision_engine.core.exceptions import GenerationError, WriteResult
from revision_engine.core.utils import Rating, now_ms, percent
from revision_engine.generation.topic_pack import (
    TopicPack,
    TopicPackStore,
    parse_flashcards,
    parse_topic_pack,
)
from revision_engine.quiz.evaluator import evaluate, rating_from_accuracy
from revision_engine.quiz.models import (
    AnswerValue,
    GenerateQuizRequest,
    McqSingleQuestion,
    QuestionType,
    QuizPayload,
    StoredQuizAttempt,
)
from revision_engine.storage.attempt_store import AttemptStore
from revision_engine.study.mastery_calculator import MasteryClassifier, TopicMastery, WeakTopic
from revision_engine.study.scheduler import FlashCard, RevisionProgress, SpacedScheduler
from revision_engine.study.stats_aggregator import StatsAggregator, StatsReport, TopicStats
from revision_engine.syllabus.topics import TopicRef

RAPID_FIRE_EXAM_TYPE = "Rapid Fire"

# minutes available -> (topics, rapid-fire MCQs)
SESSION_GOALS = {
    10: (2, 5),
    20: (3, 8),
    30: (4, 12),
}


@dataclass(frozen=True)
class SessionGoal:
    minutes: int
    topics_count: int
    mcqs: int


def session_goal(minutes: int) -> SessionGoal:
    """Today's goal for 10, 20 or 30 minutes of revision."""
    if minutes not in SESSION_GOALS:
        raise ValueError(f"Unsupported session length: {minutes} (choose 10, 20 or 30)")
    topics_count, mcqs = SESSION_GOALS[minutes]
    return SessionGoal(minutes=minutes, topics_count=topics_count, mcqs=mcqs)


@dataclass
class RevisionOverview:
    """What the revision dashboard shows before a session starts."""

    stats: StatsReport
    weak: list[WeakTopic]
    strong: list[TopicMastery]
    due: list[tuple[str, RevisionProgress]]
    last_revised_at: int | None

    @property
    def pending_weak(self) -> int:
        return len(self.weak)


@dataclass
class RevisionSession:
    """A smart revision queue with the accuracy it started from."""

    goal: SessionGoal
    queue: list[str]
    baseline: dict[str, int] = field(default_factory=dict)

    def summary(self, by_topic: Mapping[str, TopicStats]) -> list[tuple[str, int, int]]:
        """(key, accuracy before, accuracy now) per queued topic."""
        rows = []
        for key in self.queue:
            before = self.baseline.get(key, 0)
            stats = by_topic.get(key)
            rows.append((key, before, stats.accuracy if stats else before))
        return rows


@dataclass
class RapidFireResult:
    """Outcome of a recorded rapid-fire round."""

    accuracy: int
    rating: Rating
    attempt: StoredQuizAttempt
    saved: WriteResult
    progress: RevisionProgress


class RevisionService:
    """Revision workflow over the stores and calculators."""

    def __init__(
        self,
        attempts: AttemptStore,
        scheduler: SpacedScheduler,
        aggregator: StatsAggregator,
        classifier: MasteryClassifier,
        packs: TopicPackStore | None = None,
    ):
        self.attempts = attempts
        self.scheduler = scheduler
        self.aggregator = aggregator
        self.classifier = classifier
        self.packs = packs

    @staticmethod
    def _keys(topics: Iterable[TopicRef], subject_id: str | None) -> list[str]:
        return [t.key for t in topics if subject_id is None or t.subject_id == subject_id]

    def overview(
        self,
        user_id: str,
        topics: list[TopicRef],
        now: int | None = None,
        subject_id: str | None = None,
    ) -> RevisionOverview:
        """
        Build the revision overview for one user.

        Args:
            user_id: Owner of the attempts
            topics: Syllabus topic references
            now: Current time, epoch ms
            subject_id: Restrict weak/strong/due lists to one subject

        Returns:
            RevisionOverview
        """
        now = now_ms() if now is None else now
        stats = self.aggregator.aggregate(self.attempts.filter_by_user(user_id), now)
        keys = self._keys(topics, subject_id)
        key_set = set(keys)

        return RevisionOverview(
            stats=stats,
            weak=self.classifier.weak_topics(keys, stats.by_topic),
            strong=self.classifier.strong_topics({k: s for k, s in stats.by_topic.items() if k in key_set}),
            due=[(k, p) for k, p in self.scheduler.due_topics(now) if k in key_set],
            last_revised_at=self.scheduler.last_revised_at(),
        )

    def start_session(
        self,
        user_id: str,
        topics: list[TopicRef],
        minutes: int = 20,
        now: int | None = None,
        subject_id: str | None = None,
    ) -> RevisionSession:
        """Queue the highest-priority weak topics that fit the time available."""
        goal = session_goal(minutes)
        overview = self.overview(user_id, topics, now, subject_id)
        picked = [w.key for w in overview.weak[: goal.topics_count]]
        baseline = {}
        for key in picked:
            stats = overview.stats.by_topic.get(key)
            baseline[key] = stats.accuracy if stats else 0

        logger.info(f"Revision session for {user_id}: {len(picked)} topics, {goal.mcqs} MCQs")
        return RevisionSession(goal=goal, queue=picked, baseline=baseline)

    # =========================================================================
    # Rapid fire
    # =========================================================================

    def rapid_fire_request(self, user_id: str, topic: TopicRef, minutes: int = 20) -> GenerateQuizRequest:
        """Quiz generation request for a rapid-fire round on one topic."""
        return GenerateQuizRequest(
            user_id=user_id or "anonymous",
            subject_id=topic.subject_id,
            subject_name=topic.subject_name,
            topic=topic.topic_name,
            difficulty="Medium",
            time_mode="Timed",
            question_count=session_goal(minutes).mcqs,
            exam_type=RAPID_FIRE_EXAM_TYPE,
            question_types=[QuestionType.MCQ_SINGLE],
        )

    @staticmethod
    def rapid_fire_questions(quiz: QuizPayload) -> list[McqSingleQuestion]:
        """
        Single-answer MCQs with at least two options.

        Raises:
            GenerationError: The quiz has no usable MCQ
        """
        questions = [
            q
            for q in quiz.questions
            if isinstance(q, McqSingleQuestion) and q.options is not None and len(q.options) >= 2
        ]
        if not questions:
            raise GenerationError("No MCQs generated.")
        return questions

    def record_rapid_fire(
        self,
        user_id: str,
        topic: TopicRef,
        questions: list[McqSingleQuestion],
        answers: Mapping[str, AnswerValue],
        now: int | None = None,
    ) -> RapidFireResult | None:
        """
        Grade a finished rapid-fire round and persist it.

        The round is appended to the attempt log first; the topic's stage
        then moves by the rating derived from accuracy (>= 80 easy, >= 55
        medium, else hard). An empty round records nothing.

        Returns:
            RapidFireResult, or None when there were no questions
        """
        if not questions:
            return None

        now = now_ms() if now is None else now
        correct = sum(1 for q in questions if evaluate(q, answers.get(q.id)) is True)
        accuracy = percent(correct, len(questions))
        rating = rating_from_accuracy(accuracy)

        attempt = StoredQuizAttempt(
            id=f"{topic.key}__rapid__{now}",
            created_at=now,
            user_id=user_id or "anonymous",
            subject_id=topic.subject_id,
            subject_name=topic.subject_name,
            topic_name=topic.topic_name,
            difficulty="Medium",
            time_mode="Timed",
            exam_type=RAPID_FIRE_EXAM_TYPE,
            question_count=len(questions),
            quiz=QuizPayload(questions=list(questions)),
            answers=dict(answers),
        )
        saved = self.attempts.append(attempt)
        if not saved.ok:
            logger.warning(f"Rapid-fire attempt for {topic.key} was not saved: {saved.error}")

        progress = self.scheduler.mark_topic_revised(topic.key, rating, now)
        return RapidFireResult(
            accuracy=accuracy,
            rating=rating,
            attempt=attempt,
            saved=saved,
            progress=progress,
        )

    # =========================================================================
    # Generated content
    # =========================================================================

    def attach_generated_content(
        self,
        topic_key: str,
        pack_text: str | None = None,
        flashcards_text: str | None = None,
        now: int | None = None,
    ) -> tuple[TopicPack | None, list[FlashCard] | None]:
        """
        Parse generated notes and flashcards, then store them.

        Both texts are parsed before anything is written, so a malformed
        response leaves the stored pack and deck untouched.

        Raises:
            GenerationError: Either text is not in the expected format
        """
        now = now_ms() if now is None else now
        pack = parse_topic_pack(pack_text) if pack_text is not None else None
        cards = parse_flashcards(flashcards_text, topic_key, now) if flashcards_text is not None else None

        if pack is not None:
            if self.packs is None:
                raise GenerationError("No topic pack store configured.", retryable=False)
            self.packs.save(topic_key, pack)
        if cards is not None:
            self.scheduler.save_deck(topic_key, cards)
        return pack, cards
