"""Exception hierarchy shared by the ingestion, store and viewer layers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class DocChatError(RuntimeError):
    """Base class for all errors raised by the package."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class ChunkStoreUnavailableError(DocChatError):
    """Raised when the chunk store backend cannot be initialised or queried."""


class DocumentNotFoundError(DocChatError):
    """Raised when a requested document is not present in the store."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document '{document_id}' not found: no source available")
        self.document_id = document_id


class IngestError(DocChatError):
    """Raised when a single document cannot be parsed, chunked or stored."""

    def __init__(self, message: str, *, filename: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, cause=cause)
        self.filename = filename


class StallDetectedError(IngestError):
    """Raised when the chunking window stops advancing through the text."""

    def __init__(self, position: int, attempts: int, *, filename: str | None = None) -> None:
        super().__init__(
            f"Chunking stalled at position {position} after {attempts} attempts",
            filename=filename,
        )
        self.position = position
        self.attempts = attempts


@dataclass(frozen=True)
class FailedBatch:
    """Describes a delete batch that exhausted its retries."""

    collection: str
    start: int
    end: int
    ids: tuple[str, ...]
    error: str


class BatchDeleteError(DocChatError):
    """Raised when a corpus reset aborts because a batch could not be deleted."""

    def __init__(self, failed_batches: Sequence[FailedBatch], *, cause: Exception | None = None) -> None:
        descriptions = ", ".join(f"{batch.collection}[{batch.start}:{batch.end}]" for batch in failed_batches)
        super().__init__(f"Corpus reset aborted; failed batches: {descriptions}", cause=cause)
        self.failed_batches = list(failed_batches)


__all__ = [
    "BatchDeleteError",
    "ChunkStoreUnavailableError",
    "DocChatError",
    "DocumentNotFoundError",
    "FailedBatch",
    "IngestError",
    "StallDetectedError",
]
