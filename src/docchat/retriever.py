"""Build per-answer chunk references for a question from the chunk store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from .models import Chunk, ChunkReference, Document
from .pages import PageLayout, build_page_layout
from .store.base import ChunkStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RetrievalResult:
    question: str
    references: List[ChunkReference] = field(default_factory=list)

    @property
    def sources(self) -> List[str]:
        labels: List[str] = []
        for reference in self.references:
            label = reference.document_title
            if reference.page:
                label = f"{label} (p. {reference.page})"
            if label not in labels:
                labels.append(label)
        return labels


class Retriever:
    """Look up matching chunks and snapshot them as chunk references.

    References always carry a page: chunks stored without one get the page the
    estimator assigns them within their document.
    """

    def __init__(self, store: ChunkStore) -> None:
        self._store = store

    def retrieve(self, question: str, top_k: int = 5) -> RetrievalResult:
        result = RetrievalResult(question=question)
        if top_k <= 0 or not question.strip():
            return result

        documents: Dict[str, Document | None] = {}
        layouts: Dict[str, PageLayout] = {}
        for chunk in self._store.search_chunks(question, k=top_k):
            if chunk.document_id not in documents:
                documents[chunk.document_id] = self._store.get_document_by_id(chunk.document_id)
            document = documents[chunk.document_id]
            page = chunk.page or self._estimated_page(chunk, document, layouts)
            result.references.append(ChunkReference.from_chunk(chunk, document, page=page))

        LOGGER.info("Retrieved %s references for question", len(result.references))
        return result

    def _estimated_page(
        self,
        chunk: Chunk,
        document: Document | None,
        layouts: Dict[str, PageLayout],
    ) -> int | None:
        layout = layouts.get(chunk.document_id)
        if layout is None:
            total_pages = document.total_pages if document is not None else 0
            layout = build_page_layout(self._store.get_chunks_by_document(chunk.document_id), total_pages)
            layouts[chunk.document_id] = layout
        return layout.page_of(chunk.id)


__all__ = ["RetrievalResult", "Retriever"]
