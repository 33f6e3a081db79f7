"""Collaborators that produce content: quiz backend client and generated-text parsing."""

from revision_engine.generation.json_repair import (
    drop_invalid_escapes,
    escape_newlines_in_strings,
    extract_first_json_value,
    safe_json_parse,
    strip_code_fences,
)
from revision_engine.generation.quiz_client import QuizGenerationClient
from revision_engine.generation.topic_pack import (
    PromptKind,
    TopicPack,
    TopicPackStore,
    explain_prompt,
    flashcards_prompt,
    parse_flashcards,
    parse_topic_pack,
    prompt_for,
    topic_pack_prompt,
)

__all__ = [
    "PromptKind",
    "QuizGenerationClient",
    "TopicPack",
    "TopicPackStore",
    "drop_invalid_escapes",
    "escape_newlines_in_strings",
    "explain_prompt",
    "extract_first_json_value",
    "flashcards_prompt",
    "parse_flashcards",
    "parse_topic_pack",
    "prompt_for",
    "safe_json_parse",
    "strip_code_fences",
    "topic_pack_prompt",
]
