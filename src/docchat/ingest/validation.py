"""Corpus quality checks run after ingestion."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import Chunk
from ..store.base import ChunkStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 10
DEFAULT_THRESHOLD = 80.0


@dataclass(frozen=True)
class ValidationReport:
    documents_present: bool
    sampled_chunks: int
    valid_chunks: int
    quality_score: float
    threshold: float

    @property
    def ok(self) -> bool:
        return self.documents_present and self.sampled_chunks > 0 and self.quality_score >= self.threshold

    def to_record(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "documentsPresent": self.documents_present,
            "sampledChunks": self.sampled_chunks,
            "validChunks": self.valid_chunks,
            "qualityScore": round(self.quality_score, 1),
            "threshold": self.threshold,
        }


def is_valid_chunk(chunk: Chunk) -> bool:
    """A chunk is usable when it has content, positional metadata and keywords."""

    return bool(
        chunk.content.strip()
        and chunk.metadata.end_pos > chunk.metadata.start_pos
        and chunk.keywords
    )


def validate_corpus(
    store: ChunkStore,
    *,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    threshold: float = DEFAULT_THRESHOLD,
) -> ValidationReport:
    documents_present = bool(store.list_document_ids())
    if not documents_present:
        LOGGER.warning("Document collection is empty")

    sample = store.sample_chunks(sample_size)
    if not sample:
        LOGGER.warning("Chunk collection is empty")
    valid = sum(1 for chunk in sample if is_valid_chunk(chunk))
    score = (valid / len(sample)) * 100.0 if sample else 0.0

    report = ValidationReport(
        documents_present=documents_present,
        sampled_chunks=len(sample),
        valid_chunks=valid,
        quality_score=score,
        threshold=threshold,
    )
    log = LOGGER.info if report.ok else LOGGER.warning
    log("Corpus quality score %.1f%% (%s/%s valid chunks)", score, valid, len(sample))
    return report


__all__ = ["ValidationReport", "is_valid_chunk", "validate_corpus"]
