"""Corpus orchestration shared by the HTTP API and the command line."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..citations.fields import navigation_intent
from ..citations.markers import ResolvedAnswer, parse_answer
from ..config import Settings, get_settings
from ..errors import DocumentNotFoundError
from ..events import NavigationIntent
from ..ingest.chunking import ChunkingConfig, TextChunker
from ..ingest.keywords import KeywordExtractor, load_synonym_dictionary
from ..ingest.pipeline import CorpusIngestor, IngestReport
from ..ingest.reset import CorpusResetter, ResetReport
from ..ingest.validation import ValidationReport, validate_corpus
from ..models import Chunk, Document
from ..pages import PageLayout, build_page_layout
from ..retriever import RetrievalResult, Retriever
from ..store import get_chunk_store
from ..store.base import ChunkStore
from ..telemetry import traced_duration
from ..viewer.sync import find_first_match

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SearchHit:
    chunk: Chunk
    page: Optional[int]


def build_resetter(store: ChunkStore, settings: Settings) -> CorpusResetter:
    return CorpusResetter(
        store,
        batch_size=settings.reset_batch_size,
        max_retries=settings.reset_max_retries,
        base_delay=settings.reset_base_delay,
        inter_batch_delay=settings.reset_inter_batch_delay,
    )


def build_ingestor(store: ChunkStore, settings: Settings) -> CorpusIngestor:
    chunker = TextChunker(
        ChunkingConfig(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap),
        KeywordExtractor(load_synonym_dictionary(settings.synonym_dictionary_path)),
    )
    return CorpusIngestor(
        store,
        chunker=chunker,
        batch_size=settings.ingest_batch_size,
        resetter=build_resetter(store, settings),
    )


class CorpusService:
    """Read and maintenance operations over the configured chunk store."""

    def __init__(self, store: ChunkStore | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._store = store

    @property
    def store(self) -> ChunkStore:
        if self._store is None:
            self._store = get_chunk_store()
        return self._store

    # Documents ---------------------------------------------------------------------
    def list_documents(self) -> List[Document]:
        return self.store.get_all_documents()

    def get_document(self, document_id: str) -> Document:
        document = self.store.get_document_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def get_chunks(self, document_id: str) -> List[Chunk]:
        self.get_document(document_id)
        return self.store.get_chunks_by_document(document_id)

    def page_layout(self, document_id: str) -> PageLayout:
        document = self.get_document(document_id)
        return build_page_layout(self.store.get_chunks_by_document(document_id), document.total_pages)

    def search_document(self, document_id: str, query: str) -> Optional[SearchHit]:
        document = self.get_document(document_id)
        chunks = self.store.get_chunks_by_document(document_id)
        chunk = find_first_match(chunks, query)
        if chunk is None:
            return None
        layout = build_page_layout(chunks, document.total_pages)
        return SearchHit(chunk=chunk, page=layout.page_of(chunk.id))

    # Citations ---------------------------------------------------------------------
    def resolve_citations(
        self, content: str, chunk_references: Sequence[Any], *, message_id: str = ""
    ) -> ResolvedAnswer:
        return parse_answer(content, chunk_references, message_id=message_id)

    def activation_intent(self, reference: Any) -> Optional[NavigationIntent]:
        return navigation_intent(reference)

    def retrieve(self, question: str, top_k: int = 5) -> RetrievalResult:
        return Retriever(self.store).retrieve(question, top_k=top_k)

    # Maintenance -------------------------------------------------------------------
    def rebuild(self, corpus_dir: Path | str | None = None) -> IngestReport:
        directory = Path(corpus_dir) if corpus_dir else self.settings.corpus_dir
        with traced_duration("corpus.rebuild", corpus_dir=str(directory)):
            return build_ingestor(self.store, self.settings).rebuild(directory)

    def clear(self) -> ResetReport:
        with traced_duration("corpus.clear"):
            return build_resetter(self.store, self.settings).reset()

    def validate(self, *, sample_size: int = 10, threshold: float = 80.0) -> ValidationReport:
        return validate_corpus(self.store, sample_size=sample_size, threshold=threshold)


@lru_cache()
def get_corpus_service() -> CorpusService:
    """Return the process-wide corpus service (FastAPI dependency)."""

    return CorpusService()


def reset_corpus_service_cache() -> None:
    get_corpus_service.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "CorpusService",
    "SearchHit",
    "build_ingestor",
    "build_resetter",
    "get_corpus_service",
    "reset_corpus_service_cache",
]
