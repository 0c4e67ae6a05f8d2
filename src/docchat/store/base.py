"""Chunk store protocol shared by all backends."""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ..models import Chunk, Document

CHUNKS_COLLECTION = "pdf_chunks"
DOCUMENTS_COLLECTION = "pdf_documents"


@runtime_checkable
class ChunkStore(Protocol):
    """Persistence contract for documents and their chunks.

    Chunks are returned in ingestion position order. Backend failures surface as
    :class:`~docchat.errors.ChunkStoreUnavailableError`.
    """

    backend_name: str

    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        ...

    def get_chunks_by_document(self, document_id: str) -> List[Chunk]:
        ...

    def get_all_documents(self) -> List[Document]:
        ...

    def add_document(self, document: Document) -> Document:
        ...

    def update_document(self, document: Document) -> Document:
        ...

    def add_chunks(self, chunks: Sequence[Chunk]) -> List[Chunk]:
        ...

    def list_chunk_ids(self) -> List[str]:
        ...

    def list_document_ids(self) -> List[str]:
        ...

    def delete_chunks(self, chunk_ids: Sequence[str]) -> int:
        ...

    def delete_documents(self, document_ids: Sequence[str]) -> int:
        ...

    def delete_document(self, document_id: str) -> int:
        ...

    def search_chunks(self, query: str, k: int = 5) -> List[Chunk]:
        ...

    def sample_chunks(self, limit: int = 10) -> List[Chunk]:
        ...


def keyword_score(chunk: Chunk, terms: Sequence[str]) -> int:
    """Count query terms present in the chunk's lowered text or keywords."""

    haystack = chunk.content.lower()
    lowered_keywords = {keyword.lower() for keyword in chunk.keywords}
    return sum(1 for term in terms if term in haystack or term in lowered_keywords)


def query_terms(query: str) -> list[str]:
    return [term for term in query.lower().split() if term]


__all__ = [
    "CHUNKS_COLLECTION",
    "ChunkStore",
    "DOCUMENTS_COLLECTION",
    "keyword_score",
    "query_terms",
]
