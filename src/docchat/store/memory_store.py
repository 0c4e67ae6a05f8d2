"""In-memory chunk store with optional JSON persistence."""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..models import Chunk, Document, utc_now
from ..telemetry import emit_store_event
from .base import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION, keyword_score, query_terms

LOGGER = logging.getLogger(__name__)


class InMemoryChunkStore:
    """Keep documents and chunks in dictionaries, optionally mirrored to a JSON file."""

    backend_name = "memory"

    def __init__(self, persist_path: Path | str | None = None) -> None:
        self._documents: Dict[str, Document] = {}
        self._chunks: Dict[str, Chunk] = {}
        self._persist_path = Path(persist_path) if persist_path else None
        if self._persist_path is not None:
            self._persist_path.parent.mkdir(parents=True, exist_ok=True)
            self._load()

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    # Reads -----------------------------------------------------------------------
    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    def get_chunks_by_document(self, document_id: str) -> List[Chunk]:
        chunks = [chunk for chunk in self._chunks.values() if chunk.document_id == document_id]
        return sorted(chunks, key=lambda chunk: (chunk.metadata.position, chunk.metadata.start_pos))

    def get_all_documents(self) -> List[Document]:
        return list(self._documents.values())

    def list_chunk_ids(self) -> List[str]:
        return list(self._chunks)

    def list_document_ids(self) -> List[str]:
        return list(self._documents)

    def search_chunks(self, query: str, k: int = 5) -> List[Chunk]:
        terms = query_terms(query)
        if not terms or k <= 0:
            return []
        scored = []
        for order, chunk in enumerate(self._chunks.values()):
            score = keyword_score(chunk, terms)
            if score:
                scored.append((-score, order, chunk))
        scored.sort(key=lambda item: (item[0], item[1]))
        return [chunk for _, _, chunk in scored[:k]]

    def sample_chunks(self, limit: int = 10) -> List[Chunk]:
        return list(self._chunks.values())[: max(0, limit)]

    # Writes ----------------------------------------------------------------------
    def add_document(self, document: Document) -> Document:
        stored = replace(document, id=document.id or self._new_id())
        self._documents[stored.id] = stored
        self._save()
        emit_store_event("store.document.add", backend=self.backend_name, count=1, document_id=stored.id)
        return stored

    def update_document(self, document: Document) -> Document:
        if document.id not in self._documents:
            raise KeyError(f"Document '{document.id}' does not exist")
        stored = replace(document, updated_at=utc_now())
        self._documents[stored.id] = stored
        self._save()
        return stored

    def add_chunks(self, chunks: Sequence[Chunk]) -> List[Chunk]:
        stored: List[Chunk] = []
        for chunk in chunks:
            item = chunk if chunk.id else chunk.with_id(self._new_id())
            self._chunks[item.id] = item
            stored.append(item)
        if stored:
            self._save()
            emit_store_event(
                "store.chunks.add",
                backend=self.backend_name,
                count=len(stored),
                document_id=stored[0].document_id,
            )
        return stored

    def delete_chunks(self, chunk_ids: Sequence[str]) -> int:
        removed = sum(1 for chunk_id in chunk_ids if self._chunks.pop(chunk_id, None) is not None)
        self._save()
        emit_store_event("store.chunks.delete", backend=self.backend_name, count=removed)
        return removed

    def delete_documents(self, document_ids: Sequence[str]) -> int:
        removed = sum(
            1 for document_id in document_ids if self._documents.pop(document_id, None) is not None
        )
        self._save()
        emit_store_event("store.documents.delete", backend=self.backend_name, count=removed)
        return removed

    def delete_document(self, document_id: str) -> int:
        """Delete a document and its chunks; returns the number of chunks removed."""

        chunk_ids = [chunk.id for chunk in self._chunks.values() if chunk.document_id == document_id]
        removed = self.delete_chunks(chunk_ids)
        self.delete_documents([document_id])
        return removed

    # Persistence -----------------------------------------------------------------
    def _load(self) -> None:
        assert self._persist_path is not None
        if not self._persist_path.exists():
            return
        try:
            payload = json.loads(self._persist_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            LOGGER.warning("Failed to load chunk store from %s: %s", self._persist_path, error)
            return

        for record in payload.get(DOCUMENTS_COLLECTION, []):
            document = Document.from_record(record)
            if document.id:
                self._documents[document.id] = document
        for record in payload.get(CHUNKS_COLLECTION, []):
            chunk = Chunk.from_record(record)
            if chunk.id:
                self._chunks[chunk.id] = chunk
        LOGGER.info(
            "Loaded %s documents and %s chunks from %s",
            len(self._documents),
            len(self._chunks),
            self._persist_path,
        )

    def _save(self) -> None:
        if self._persist_path is None:
            return
        payload = {
            DOCUMENTS_COLLECTION: [document.to_record() for document in self._documents.values()],
            CHUNKS_COLLECTION: [chunk.to_record() for chunk in self._chunks.values()],
        }
        tmp_path = self._persist_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self._persist_path)


__all__ = ["InMemoryChunkStore"]
