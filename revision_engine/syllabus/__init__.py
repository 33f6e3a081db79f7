"""Syllabus text parsing: checkbox topics, display sections, topic references."""

from revision_engine.syllabus.topics import (
    Section,
    Topic,
    TopicRef,
    build_topic_refs,
    count_topics,
    parse_topics,
    split_sections,
    syllabus_progress,
)

__all__ = [
    "Topic",
    "Section",
    "TopicRef",
    "parse_topics",
    "count_topics",
    "split_sections",
    "build_topic_refs",
    "syllabus_progress",
]
