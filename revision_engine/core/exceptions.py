"""Error types shared across the revision engine."""

from __future__ import annotations

from dataclasses import dataclass


class RevisionEngineError(Exception):
    """Base class for revision engine errors."""

    pass


class GenerationError(RevisionEngineError):
    """
    Raised when an upstream generation collaborator fails.

    Covers quiz generation, topic packs, flashcards and explanations:
    transport failures as well as malformed or unparseable output.
    """

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class StorageError(RevisionEngineError):
    """Raised by key-value backends. Stores catch it and degrade."""

    pass


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a best-effort write."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> WriteResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> WriteResult:
        return cls(ok=False, error=error)
