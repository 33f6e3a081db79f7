"""Best-effort JSON persistence: key-value backends, the attempt log and revision state."""

from revision_engine.storage.attempt_store import ATTEMPTS_BUCKET, AttemptStore
from revision_engine.storage.kv import (
    JsonBucket,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from revision_engine.storage.revision_store import (
    FLASHCARDS_BUCKET,
    PROGRESS_BUCKET,
    TOPIC_PACK_BUCKET,
    KeyedBucket,
)

__all__ = [
    "ATTEMPTS_BUCKET",
    "FLASHCARDS_BUCKET",
    "PROGRESS_BUCKET",
    "TOPIC_PACK_BUCKET",
    "AttemptStore",
    "JsonBucket",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "KeyedBucket",
    "MemoryKeyValueStore",
]
