"""
Quick revision notes and flashcards generated per topic.

The text generator is an external collaborator; this module only builds
prompts and turns its output into validated structures. Parsing is all or
nothing: malformed output raises GenerationError and nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from revision_engine.core.exceptions import GenerationError, WriteResult
from revision_engine.generation.json_repair import safe_json_parse
from revision_engine.storage.kv import KeyValueStore
from revision_engine.storage.revision_store import TOPIC_PACK_BUCKET, KeyedBucket
from revision_engine.study.scheduler import FlashCard

INVALID_FORMAT = "AI response format invalid."

MAX_RAPID_QUESTIONS = 3
MAX_FLASHCARDS = 16


@dataclass(frozen=True)
class RapidQuestion:
    q: str
    a: str | None = None


@dataclass
class TopicPack:
    """Formulas, core concept, common mistakes and a few rapid questions."""

    formulas: list[str] = field(default_factory=list)
    core_concept: str = ""
    common_mistakes: list[str] = field(default_factory=list)
    rapid_questions: list[RapidQuestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "formulas": list(self.formulas),
            "coreConcept": self.core_concept,
            "commonMistakes": list(self.common_mistakes),
            "rapidQuestions": [
                {"q": r.q, **({"a": r.a} if r.a is not None else {})} for r in self.rapid_questions
            ],
        }

    @classmethod
    def from_dict(cls, data: Any) -> TopicPack:
        """
        Build a pack from parsed JSON.

        Raises:
            GenerationError: formulas is not a list or coreConcept is not a string
        """
        if not isinstance(data, dict):
            raise GenerationError(INVALID_FORMAT)
        formulas = data.get("formulas")
        core_concept = data.get("coreConcept")
        if not isinstance(formulas, list) or not isinstance(core_concept, str):
            raise GenerationError(INVALID_FORMAT)

        mistakes = data.get("commonMistakes")
        rapid = data.get("rapidQuestions")

        return cls(
            formulas=[str(f) for f in formulas if f],
            core_concept=core_concept,
            common_mistakes=[str(m) for m in mistakes if m] if isinstance(mistakes, list) else [],
            rapid_questions=_rapid_questions(rapid),
        )


def _rapid_questions(value: Any) -> list[RapidQuestion]:
    if not isinstance(value, list):
        return []
    questions = []
    for item in value[:MAX_RAPID_QUESTIONS]:
        if isinstance(item, dict) and isinstance(item.get("q"), str):
            answer = item.get("a")
            questions.append(RapidQuestion(q=item["q"], a=answer if isinstance(answer, str) else None))
    return questions


# =============================================================================
# Parsing
# =============================================================================


def parse_topic_pack(text: str) -> TopicPack:
    """Parse generator output into a TopicPack. Raises GenerationError."""
    return TopicPack.from_dict(safe_json_parse(text))


def parse_flashcards(text: str, topic_key: str, now: int) -> list[FlashCard]:
    """
    Parse a JSON array of `{front, back}` into a fresh deck.

    Entries without string front and back are skipped; at most 16 cards are
    kept. Every card starts at stage 0 and is due immediately.

    Raises:
        GenerationError: output is not a JSON array
    """
    parsed = safe_json_parse(text)
    if not isinstance(parsed, list):
        raise GenerationError(INVALID_FORMAT)

    valid = [
        item
        for item in parsed
        if isinstance(item, dict) and isinstance(item.get("front"), str) and isinstance(item.get("back"), str)
    ]
    return [
        FlashCard(
            id=f"{topic_key}__{now}__{i}",
            front=item["front"].strip(),
            back=item["back"].strip(),
            stage=0,
            next_review_at=now,
        )
        for i, item in enumerate(valid[:MAX_FLASHCARDS])
    ]


# =============================================================================
# Prompts
# =============================================================================


def topic_pack_prompt(subject_name: str, topic_name: str) -> str:
    return (
        "Return ONLY a valid JSON object (no markdown, no extra text).\n\n"
        f"Subject: {subject_name}\n"
        f"Topic: {topic_name}\n\n"
        "Schema:\n"
        "{\n"
        '  "formulas": ["..."],\n'
        '  "coreConcept": "2-3 lines",\n'
        '  "commonMistakes": ["..."],\n'
        '  "rapidQuestions": [ { "q": "...", "a": "..." } ]\n'
        "}\n\n"
        "Rules:\n"
        "- rapidQuestions length: 2 to 3\n"
        "- Keep coreConcept short and exam-focused"
    )


def flashcards_prompt(subject_name: str, topic_name: str) -> str:
    return (
        "Return ONLY a valid JSON array (no markdown, no extra text).\n\n"
        f"Subject: {subject_name}\n"
        f"Topic: {topic_name}\n\n"
        'Schema: [ { "front": "...", "back": "..." } ]\n'
        "Rules:\n"
        "- Create 10-14 high-impact flashcards\n"
        "- front: definition/formula/one-liner question\n"
        "- back: short answer"
    )


def explain_prompt(subject_name: str, topic_name: str) -> str:
    return (
        "Explain this topic as if in 60 seconds. Keep it short and exam-focused.\n\n"
        f"Subject: {subject_name}\n"
        f"Topic: {topic_name}"
    )


class PromptKind(str, Enum):
    """Generated content a prompt asks for."""

    PACK = "pack"
    CARDS = "cards"
    EXPLAIN = "explain"


_PROMPT_BUILDERS = {
    PromptKind.PACK: topic_pack_prompt,
    PromptKind.CARDS: flashcards_prompt,
    PromptKind.EXPLAIN: explain_prompt,
}


def prompt_for(kind: PromptKind, subject_name: str, topic_name: str) -> str:
    """Prompt text for one kind of generated content about a topic."""
    return _PROMPT_BUILDERS[PromptKind(kind)](subject_name, topic_name)


# =============================================================================
# Storage
# =============================================================================


class TopicPackStore:
    """Generated packs keyed by topic key."""

    def __init__(self, store: KeyValueStore):
        self.packs = KeyedBucket(store, TOPIC_PACK_BUCKET)

    def get(self, key: str) -> TopicPack | None:
        raw = self.packs.get(key)
        if raw is None:
            return None
        try:
            return TopicPack.from_dict(raw)
        except GenerationError:
            return None

    def save(self, key: str, pack: TopicPack) -> WriteResult:
        return self.packs.put(key, pack.to_dict())
