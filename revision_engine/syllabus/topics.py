"""
Topic extraction from syllabus chapter descriptions.

Chapter descriptions are free text. Topics are the checkbox items in it:

    **Mechanics**:
    - [x] Newton's Laws
    - [ ] Work Energy
    Some prose line

Only checkbox lines count as topics. Headers are used for display grouping
by split_sections() and never become topics themselves.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from revision_engine.core.utils import percent, topic_key

CHECKBOX_RE = re.compile(r"^[-•*]\s*\[([ x])\]\s*", re.IGNORECASE)
BOLD_HEADER_RE = re.compile(r"^\*\*(.+?)\*\*\s*:?\s*$")


@dataclass(frozen=True)
class Topic:
    """A checkbox item parsed from a chapter description."""

    text: str
    completed: bool


@dataclass
class Section:
    """A display group: an optional header and the topics under it."""

    title: str | None
    topics: list[Topic] = field(default_factory=list)


@dataclass(frozen=True)
class TopicRef:
    """A topic located in a syllabus, addressable by its stats key."""

    key: str
    subject_id: str
    subject_name: str
    topic_name: str
    chapter_name: str | None = None


def _parse_line(line: str) -> Topic | None:
    trimmed = line.strip()
    match = CHECKBOX_RE.match(trimmed)
    if not match:
        return None
    text = trimmed[match.end():].strip()
    if not text:
        return None
    return Topic(text=text, completed=match.group(1).lower() == "x")


def parse_topics(description: str | None) -> list[Topic]:
    """
    Parse checkbox topics out of a chapter description.

    Args:
        description: Free text, possibly multi-paragraph markdown

    Returns:
        Topics in source line order. Duplicates are kept.
    """
    if not description:
        return []

    topics = []
    for line in description.split("\n"):
        topic = _parse_line(line)
        if topic is not None:
            topics.append(topic)
    return topics


def count_topics(description: str | None) -> tuple[int, int]:
    """Return (total, completed) checkbox topics in a description."""
    topics = parse_topics(description)
    return len(topics), sum(1 for t in topics if t.completed)


def _header_title(trimmed: str) -> str | None:
    match = BOLD_HEADER_RE.match(trimmed)
    if match:
        return match.group(1).strip()
    if trimmed.endswith(":") and len(trimmed) > 1:
        return trimmed[:-1].strip()
    return None


def split_sections(description: str | None) -> list[Section]:
    """
    Group checkbox topics under their headers for display.

    A header is a `**Title**` line (optionally followed by a colon) or any
    non-checkbox line ending in a colon. Topics before the first header
    land in an untitled section. Headers without topics are dropped.
    """
    if not description:
        return []

    sections: list[Section] = []
    current = Section(title=None)

    for line in description.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue

        topic = _parse_line(trimmed)
        if topic is not None:
            current.topics.append(topic)
            continue

        title = _header_title(trimmed)
        if title is not None:
            if current.topics:
                sections.append(current)
            current = Section(title=title)

    if current.topics:
        sections.append(current)
    return sections


def _subject_identity(subject: Mapping[str, Any]) -> tuple[str, str]:
    subject_id = subject.get("id") or subject.get("_id") or subject.get("name") or "unknown"
    return str(subject_id), str(subject.get("name") or "Unknown")


def build_topic_refs(subjects: Iterable[Mapping[str, Any]]) -> list[TopicRef]:
    """
    Flatten a syllabus into topic references.

    A chapter without checkbox topics stands in as a single topic named
    after the chapter. Keys are de-duplicated, first occurrence wins.
    """
    refs: dict[str, TopicRef] = {}

    for subject in subjects or []:
        if not isinstance(subject, Mapping):
            continue
        subject_id, subject_name = _subject_identity(subject)
        chapters = subject.get("chapters")
        if not isinstance(chapters, list):
            continue

        for chapter in chapters:
            if not isinstance(chapter, Mapping):
                continue
            chapter_name = str(chapter.get("name") or "Chapter")
            description = chapter.get("description")
            extracted = parse_topics(description) if isinstance(description, str) else []
            names = [t.text for t in extracted] or [chapter_name]

            for name in names:
                key = topic_key(subject_id, name)
                if key not in refs:
                    refs[key] = TopicRef(
                        key=key,
                        subject_id=subject_id,
                        subject_name=subject_name,
                        topic_name=name,
                        chapter_name=chapter_name,
                    )

    return list(refs.values())


def syllabus_progress(subjects: Iterable[Mapping[str, Any]]) -> tuple[int, int, int]:
    """Return (total, completed, percent) checkbox topics across a syllabus."""
    total = 0
    completed = 0
    for subject in subjects or []:
        if not isinstance(subject, Mapping):
            continue
        chapters = subject.get("chapters")
        if not isinstance(chapters, list):
            continue
        for chapter in chapters:
            if not isinstance(chapter, Mapping):
                continue
            description = chapter.get("description")
            if not isinstance(description, str):
                continue
            t, c = count_topics(description)
            total += t
            completed += c
    return total, completed, percent(completed, total)
