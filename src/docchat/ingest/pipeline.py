"""Corpus ingestion: extract, chunk and persist documents to the chunk store."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..errors import ChunkStoreUnavailableError, IngestError
from ..logging_config import AUDIT_LOGGER_NAME
from ..models import Chunk, Document
from ..store.base import ChunkStore
from ..telemetry import emit_ingest_event
from .chunking import TextChunker
from .extractors import ExtractedText, extract_document, load_manifest
from .keywords import classify_document, title_from_filename
from .reset import CorpusResetter, ResetReport

LOGGER = logging.getLogger(__name__)
audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


@dataclass(slots=True)
class IngestReport:
    """Outcome of a batch ingestion; failures never abort the batch."""

    documents: int = 0
    chunks: int = 0
    failures: List[tuple[str, str]] = field(default_factory=list)
    document_ids: List[str] = field(default_factory=list)
    reset: Optional[ResetReport] = None

    @property
    def ok(self) -> bool:
        return not self.failures


class CorpusIngestor:
    """Ingest corpus files one by one, persisting chunks in small batches."""

    def __init__(
        self,
        store: ChunkStore,
        *,
        chunker: Optional[TextChunker] = None,
        batch_size: int = 2,
        resetter: Optional[CorpusResetter] = None,
    ) -> None:
        self.store = store
        self.chunker = chunker or TextChunker()
        self.batch_size = max(1, batch_size)
        self.resetter = resetter or CorpusResetter(store)

    def ingest_text(self, filename: str, extracted: ExtractedText) -> Document:
        """Persist one document and its chunks; returns the stored document record."""

        started = time.perf_counter()
        document = self.store.add_document(
            Document(
                filename=filename,
                title=title_from_filename(filename),
                type=classify_document(filename),
                total_pages=extracted.total_pages,
                total_size=len(extracted.text),
            )
        )
        try:
            chunk_count = self._store_chunks(
                self.chunker.chunk_document(
                    extracted.text,
                    document_id=document.id,
                    filename=filename,
                    total_pages=extracted.total_pages,
                    document_type=document.type,
                )
            )
            document = self.store.update_document(replace(document, total_chunks=chunk_count))
        except Exception:
            self._discard_partial(document)
            raise

        duration_ms = (time.perf_counter() - started) * 1000.0
        emit_ingest_event(
            "ingest.document.complete",
            file_name=filename,
            document_id=document.id,
            size_chars=document.total_size,
            pages=document.total_pages,
            chunks=document.total_chunks,
            duration_ms=duration_ms,
        )
        audit_logger.info(
            {
                "filename": filename,
                "document_id": document.id,
                "chunks": document.total_chunks,
                "pages": document.total_pages,
                "size_chars": document.total_size,
                "duration_ms": round(duration_ms, 3),
            }
        )
        return document

    def _store_chunks(self, chunks: Iterable[Chunk]) -> int:
        count = 0
        pending: List[Chunk] = []
        for chunk in chunks:
            pending.append(chunk)
            if len(pending) >= self.batch_size:
                count += len(self.store.add_chunks(pending))
                pending = []
        if pending:
            count += len(self.store.add_chunks(pending))
        return count

    def _discard_partial(self, document: Document) -> None:
        try:
            self.store.delete_document(document.id)
        except ChunkStoreUnavailableError as error:
            LOGGER.error("Failed to remove partially ingested document %s: %s", document.id, error)

    def ingest_file(self, path: Path | str) -> Document:
        path = Path(path)
        try:
            extracted = extract_document(path)
            return self.ingest_text(path.name, extracted)
        except IngestError:
            raise
        except Exception as error:
            raise IngestError(f"Failed to ingest {path.name}: {error}", filename=path.name, cause=error) from error

    def ingest_paths(self, paths: Sequence[Path | str]) -> IngestReport:
        report = IngestReport()
        for index, path in enumerate(paths, start=1):
            name = Path(path).name
            LOGGER.info("[%s/%s] Ingesting %s", index, len(paths), name)
            try:
                document = self.ingest_file(path)
            except IngestError as error:
                emit_ingest_event("ingest.document.failed", file_name=name, error=error)
                audit_logger.info({"filename": name, "error": str(error)})
                report.failures.append((name, str(error)))
                continue
            report.documents += 1
            report.chunks += document.total_chunks
            report.document_ids.append(document.id)

        LOGGER.info(
            "Ingested %s documents (%s chunks); %s failures",
            report.documents,
            report.chunks,
            len(report.failures),
        )
        for name, message in report.failures:
            LOGGER.warning("Failed to ingest %s: %s", name, message)
        return report

    def rebuild(self, corpus_dir: Path | str) -> IngestReport:
        """Delete the whole corpus, then ingest every manifest entry of *corpus_dir*."""

        paths = load_manifest(corpus_dir)
        reset_report = self.resetter.reset()
        report = self.ingest_paths(paths)
        report.reset = reset_report
        return report


__all__ = ["CorpusIngestor", "IngestReport"]
