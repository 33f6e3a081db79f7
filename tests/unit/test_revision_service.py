"""
Unit tests for the revision workflow.
"""

import pytest

from revision_engine.core.exceptions import GenerationError
from revision_engine.core.utils import DAY_MS, Rating
from revision_engine.generation.topic_pack import TopicPackStore
from revision_engine.quiz.models import McqSingleAnswer, McqSingleQuestion, QuizPayload, ShortQuestion
from revision_engine.storage.attempt_store import AttemptStore
from revision_engine.storage.kv import MemoryKeyValueStore
from revision_engine.study.mastery_calculator import MasteryClassifier
from revision_engine.study.revision_service import RevisionService, session_goal
from revision_engine.study.scheduler import SpacedScheduler
from revision_engine.study.stats_aggregator import StatsAggregator
from revision_engine.syllabus.topics import TopicRef


class FailingStore(MemoryKeyValueStore):
    """Store that keeps progress but refuses the attempt log."""

    def write(self, bucket, raw):
        if bucket == "practice_quiz_previous_attempts_v1":
            raise OSError("read-only")
        super().write(bucket, raw)


def ref(topic, subject_id="phy"):
    return TopicRef(
        key=f"{subject_id}__{topic}",
        subject_id=subject_id,
        subject_name="Physics" if subject_id == "phy" else "Chemistry",
        topic_name=topic,
    )


def build_service(store):
    return RevisionService(
        attempts=AttemptStore(store),
        scheduler=SpacedScheduler(store),
        aggregator=StatsAggregator(),
        classifier=MasteryClassifier(),
        packs=TopicPackStore(store),
    )


@pytest.fixture
def service(memory_store):
    return build_service(memory_store)


@pytest.fixture
def topics():
    return [ref("Kinematics"), ref("Optics"), ref("Waves"), ref("Bonds", "chem")]


def mcqs(n):
    return [McqSingleQuestion(id=f"q{i}", question="?", options=["a", "b", "c"], correct_option=0) for i in range(n)]


class TestSessionGoal:
    """Tests for session sizing."""

    @pytest.mark.parametrize("minutes,topics_count,mcq_count", [(10, 2, 5), (20, 3, 8), (30, 4, 12)])
    def test_goals(self, minutes, topics_count, mcq_count):
        goal = session_goal(minutes)
        assert (goal.topics_count, goal.mcqs) == (topics_count, mcq_count)

    def test_unsupported_length(self):
        with pytest.raises(ValueError):
            session_goal(15)


class TestOverview:
    """Tests for overview() and start_session()."""

    def test_weak_strong_and_due(self, service, topics, make_attempt, now):
        service.attempts.append(make_attempt(results=[False] * 4 + [True], topic_name="Optics"))
        service.attempts.append(make_attempt(results=[True] * 20, topic_name="Kinematics"))
        service.attempts.append(make_attempt(results=[True], user_id="u2", topic_name="Waves"))
        service.scheduler.mark_topic_revised("phy__Waves", Rating.HARD, now - 2 * DAY_MS)

        overview = service.overview("u1", topics, now)

        assert [w.key for w in overview.weak] == ["phy__Optics"]
        assert overview.pending_weak == 1
        assert [m.key for m in overview.strong] == ["phy__Kinematics"]
        assert [k for k, _ in overview.due] == ["phy__Waves"]
        assert overview.last_revised_at == now - 2 * DAY_MS

    def test_subject_filter(self, service, topics, make_attempt, now):
        service.attempts.append(make_attempt(results=[False] * 5, topic_name="Optics"))
        service.attempts.append(
            make_attempt(results=[False] * 5, subject_id="chem", subject_name="Chemistry", topic_name="Bonds")
        )

        overview = service.overview("u1", topics, now, subject_id="chem")
        assert [w.key for w in overview.weak] == ["chem__Bonds"]

    def test_start_session_takes_top_weak(self, service, topics, make_attempt, now):
        service.attempts.append(make_attempt(results=[False] * 5, topic_name="Optics"))
        service.attempts.append(make_attempt(results=[False] * 3 + [True] * 2, topic_name="Waves"))
        service.attempts.append(make_attempt(results=[False, False, False, True, True, True], topic_name="Kinematics"))

        session = service.start_session("u1", topics, minutes=10, now=now)

        assert session.goal.topics_count == 2
        assert session.queue == ["phy__Optics", "phy__Waves"]
        assert session.baseline == {"phy__Optics": 0, "phy__Waves": 40}

    def test_session_summary(self, service, topics, make_attempt, now):
        service.attempts.append(make_attempt(results=[False] * 5, topic_name="Optics"))
        session = service.start_session("u1", topics, minutes=10, now=now)

        service.attempts.append(make_attempt(attempt_id="later", results=[True] * 5, topic_name="Optics"))
        report = service.aggregator.aggregate(service.attempts.filter_by_user("u1"), now)

        assert session.summary(report.by_topic) == [("phy__Optics", 0, 50)]


class TestRapidFire:
    """Tests for rapid-fire rounds."""

    def test_request(self, service):
        request = service.rapid_fire_request("u1", ref("Optics"), minutes=30)

        assert request.question_count == 12
        assert request.time_mode == "Timed"
        assert request.exam_type == "Rapid Fire"

    def test_questions_filtered(self):
        quiz = QuizPayload(
            questions=[
                McqSingleQuestion(id="a", options=["x"], correct_option=0),
                ShortQuestion(id="b"),
                *mcqs(2),
            ]
        )
        assert [q.id for q in RevisionService.rapid_fire_questions(quiz)] == ["q0", "q1"]

    def test_no_usable_questions(self):
        with pytest.raises(GenerationError) as exc_info:
            RevisionService.rapid_fire_questions(QuizPayload(questions=[ShortQuestion(id="b")]))
        assert exc_info.value.message == "No MCQs generated."

    def test_record_easy(self, service, now):
        questions = mcqs(5)
        answers = {q.id: McqSingleAnswer(value=0) for q in questions[:4]}
        answers["q4"] = McqSingleAnswer(value=1)

        result = service.record_rapid_fire("u1", ref("Optics"), questions, answers, now)

        assert result.accuracy == 80
        assert result.rating == Rating.EASY
        assert result.progress.stage == 1
        assert result.saved.ok
        stored = service.attempts.read_all()[0]
        assert stored.id == f"phy__Optics__rapid__{now}"
        assert stored.exam_type == "Rapid Fire"
        assert stored.question_count == 5

    def test_record_unanswered_is_hard(self, service, now):
        service.scheduler.mark_topic_revised("phy__Optics", Rating.EASY, now - DAY_MS)
        result = service.record_rapid_fire("u1", ref("Optics"), mcqs(3), {}, now)

        assert result.accuracy == 0
        assert result.rating == Rating.HARD
        assert service.scheduler.progress_for("phy__Optics").stage == 0

    def test_record_empty_round(self, service, now):
        assert service.record_rapid_fire("u1", ref("Optics"), [], {}, now) is None
        assert service.attempts.read_all() == []

    def test_failed_attempt_write_still_reschedules(self, now):
        service = build_service(FailingStore())
        result = service.record_rapid_fire("u1", ref("Optics"), mcqs(2), {}, now)

        assert result.saved.ok is False
        assert service.scheduler.progress_for("phy__Optics").last_revised_at == now


class TestAttachGeneratedContent:
    """Tests for storing generated notes and flashcards."""

    def test_attach_both(self, service, now):
        pack, cards = service.attach_generated_content(
            "phy__Optics",
            pack_text='{"formulas": ["n = c/v"], "coreConcept": "Light bends."}',
            flashcards_text='[{"front": "n?", "back": "c/v"}]',
            now=now,
        )

        assert service.packs.get("phy__Optics") == pack
        assert [c.front for c in service.scheduler.deck_for("phy__Optics")] == ["n?"]
        assert cards[0].next_review_at == now

    def test_bad_cards_store_nothing(self, service, now):
        with pytest.raises(GenerationError):
            service.attach_generated_content(
                "phy__Optics",
                pack_text='{"formulas": [], "coreConcept": "x"}',
                flashcards_text="no cards today",
                now=now,
            )

        assert service.packs.get("phy__Optics") is None
        assert service.scheduler.deck_for("phy__Optics") == []
