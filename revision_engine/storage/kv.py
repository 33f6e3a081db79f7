"""
Key-value persistence for revision state.

Each bucket is one JSON document addressed by a versioned name
(e.g. `revision_progress_v1`). Backends store raw strings; JsonBucket adds
parsing and the best-effort contract: reads degrade to a default value and
writes report failure instead of raising.

Buckets are stored as JSON files in ~/.revision_engine/ by default.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from revision_engine.core.exceptions import StorageError, WriteResult


class KeyValueStore(ABC):
    """Raw string storage addressed by bucket name."""

    @abstractmethod
    def read(self, bucket: str) -> str | None:
        """Return the stored string, or None when the bucket is empty. May raise StorageError or OSError."""

    @abstractmethod
    def write(self, bucket: str, raw: str) -> None:
        """Replace the bucket contents. May raise StorageError or OSError."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store, used by tests and dry runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.buckets: dict[str, str] = dict(initial or {})

    def read(self, bucket: str) -> str | None:
        return self.buckets.get(bucket)

    def write(self, bucket: str, raw: str) -> None:
        self.buckets[bucket] = raw


class JsonFileKeyValueStore(KeyValueStore):
    """
    One `<bucket>.json` file per bucket.

    Writes go to a temp file in the same directory and are moved into
    place with os.replace, so a crash mid-write leaves the old contents.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir).expanduser()

    def _path(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or "\\" in bucket or bucket.startswith("."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        return self.data_dir / f"{bucket}.json"

    def read(self, bucket: str) -> str | None:
        filepath = self._path(bucket)
        if not filepath.exists():
            return None
        try:
            return filepath.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise StorageError(f"Bucket {bucket} is not valid UTF-8: {e}") from e

    def write(self, bucket: str, raw: str) -> None:
        filepath = self._path(bucket)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{bucket}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(raw)
            os.replace(tmp_name, filepath)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class JsonBucket:
    """
    A JSON value in one bucket.

    read() never raises: a missing bucket, unreadable file or corrupt JSON
    all yield the default. write() never raises either; the outcome is
    returned as a WriteResult.
    """

    def __init__(self, store: KeyValueStore, name: str, default: Callable[[], Any]):
        self.store = store
        self.name = name
        self.default = default

    def read(self) -> Any:
        try:
            raw = self.store.read(self.name)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not read bucket {self.name}: {e}")
            return self.default()

        if not raw:
            return self.default()

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Bucket {self.name} holds invalid JSON, ignoring it: {e}")
            return self.default()

    def write(self, value: Any) -> WriteResult:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Could not serialize bucket {self.name}: {e}")
            return WriteResult.failure(str(e))

        try:
            self.store.write(self.name, raw)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not write bucket {self.name}: {e}")
            return WriteResult.failure(str(e))
        return WriteResult.success()
