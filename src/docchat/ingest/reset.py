"""Batched, retried deletion of the whole corpus."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from ..errors import BatchDeleteError, FailedBatch
from ..store.base import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION, ChunkStore
from ..telemetry import emit_reset_event

LOGGER = logging.getLogger(__name__)

MAX_BATCH_SIZE = 500


@dataclass(frozen=True)
class ResetReport:
    deleted_chunks: int
    deleted_documents: int
    duration: float


class CorpusResetter:
    """Delete every chunk, then every document, in retried batches."""

    def __init__(
        self,
        store: ChunkStore,
        *,
        batch_size: int = 100,
        max_retries: int = 3,
        base_delay: float = 1.0,
        inter_batch_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.batch_size = min(MAX_BATCH_SIZE, max(1, batch_size))
        self.max_retries = max(0, max_retries)
        self.base_delay = base_delay
        self.inter_batch_delay = inter_batch_delay
        self._sleep = sleep

    def reset(self) -> ResetReport:
        started = time.perf_counter()
        deleted_chunks = self._delete_all(
            CHUNKS_COLLECTION, self.store.list_chunk_ids(), self.store.delete_chunks
        )
        deleted_documents = self._delete_all(
            DOCUMENTS_COLLECTION, self.store.list_document_ids(), self.store.delete_documents
        )
        report = ResetReport(
            deleted_chunks=deleted_chunks,
            deleted_documents=deleted_documents,
            duration=time.perf_counter() - started,
        )
        LOGGER.info(
            "Corpus reset removed %s chunks and %s documents in %.2fs",
            report.deleted_chunks,
            report.deleted_documents,
            report.duration,
        )
        return report

    def _delete_all(
        self,
        collection: str,
        ids: Sequence[str],
        delete: Callable[[Sequence[str]], int],
    ) -> int:
        if not ids:
            LOGGER.info("No %s to delete", collection)
            return 0

        deleted = 0
        for start in range(0, len(ids), self.batch_size):
            end = min(start + self.batch_size, len(ids))
            batch = list(ids[start:end])
            self._delete_batch(collection, start, end, batch, delete)
            deleted += len(batch)
            LOGGER.info("Deleted %s/%s %s", deleted, len(ids), collection)
            if end < len(ids) and self.inter_batch_delay > 0:
                self._sleep(self.inter_batch_delay)
        return deleted

    def _delete_batch(
        self,
        collection: str,
        start: int,
        end: int,
        batch: list[str],
        delete: Callable[[Sequence[str]], int],
    ) -> None:
        attempt = 0
        while True:
            try:
                delete(batch)
            except Exception as error:
                attempt += 1
                emit_reset_event(
                    "reset.batch.failed",
                    collection=collection,
                    start=start,
                    end=end,
                    attempt=attempt,
                    error=error,
                )
                if attempt > self.max_retries:
                    failed = FailedBatch(
                        collection=collection,
                        start=start,
                        end=end,
                        ids=tuple(batch),
                        error=str(error),
                    )
                    raise BatchDeleteError([failed], cause=error) from error
                self._sleep(self.base_delay * 2 ** (attempt - 1))
                continue
            emit_reset_event("reset.batch.deleted", collection=collection, start=start, end=end, attempt=attempt + 1)
            return


__all__ = ["CorpusResetter", "MAX_BATCH_SIZE", "ResetReport"]
