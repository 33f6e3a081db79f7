"""
Keyed JSON buckets for per-topic revision state.

Each bucket is a single JSON object mapping topic keys to entries:
- revision_progress_v1:    topic key -> progress record
- revision_flashcards_v1:  topic key -> list of flashcards
- revision_topic_pack_v1:  topic key -> quick revision notes
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from revision_engine.core.exceptions import WriteResult
from revision_engine.storage.kv import JsonBucket, KeyValueStore

PROGRESS_BUCKET = "revision_progress_v1"
FLASHCARDS_BUCKET = "revision_flashcards_v1"
TOPIC_PACK_BUCKET = "revision_topic_pack_v1"


class KeyedBucket:
    """A JSON object bucket read and written one key at a time."""

    def __init__(self, store: KeyValueStore, name: str):
        self.bucket = JsonBucket(store, name, default=dict)
        self.name = name

    def all(self) -> dict[str, Any]:
        data = self.bucket.read()
        if not isinstance(data, dict):
            logger.warning(f"Bucket {self.name} is not an object, ignoring it")
            return {}
        return data

    def get(self, key: str) -> Any | None:
        return self.all().get(key)

    def put(self, key: str, value: Any) -> WriteResult:
        data = self.all()
        data[key] = value
        return self.bucket.write(data)

    def remove(self, key: str) -> WriteResult:
        data = self.all()
        if key not in data:
            return WriteResult.success()
        del data[key]
        return self.bucket.write(data)
