"""Chunk store backed by two Chroma collections."""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from ..errors import ChunkStoreUnavailableError
from ..models import Chunk, ChunkMetadata, Document, utc_now
from ..telemetry import emit_store_event
from .base import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from ..embeddings import EmbeddingModel

LOGGER = logging.getLogger(__name__)

DEFAULT_DISTANCE_METRIC = "cosine"


def _chunk_metadata(chunk: Chunk) -> Dict[str, Any]:
    meta = chunk.metadata
    return {
        "documentId": chunk.document_id,
        "filename": chunk.filename,
        "position": meta.position,
        "startPos": meta.start_pos,
        "endPos": meta.end_pos,
        "originalSize": meta.original_size,
        "page": meta.page,
        "section": meta.section or "",
        "documentType": meta.document_type or "",
        "keywords": json.dumps(sorted(chunk.keywords), ensure_ascii=False),
        "createdAt": chunk.created_at,
        "updatedAt": chunk.updated_at,
    }


def _chunk_from(chunk_id: str, content: str, metadata: Mapping[str, Any]) -> Chunk:
    try:
        keywords = json.loads(metadata.get("keywords") or "[]")
    except ValueError:
        keywords = []
    return Chunk(
        id=chunk_id,
        document_id=str(metadata.get("documentId", "")),
        filename=str(metadata.get("filename", "")),
        content=content or "",
        keywords=frozenset(keywords),
        metadata=ChunkMetadata.from_record(metadata),
        created_at=str(metadata.get("createdAt") or utc_now()),
        updated_at=str(metadata.get("updatedAt") or utc_now()),
    )


def _document_metadata(document: Document) -> Dict[str, Any]:
    record = document.to_record()
    record.pop("id", None)
    return record


class ChromaChunkStore:
    """Persist documents and chunks in Chroma; chunks are embedded for similarity search."""

    backend_name = "chroma"

    def __init__(
        self,
        persist_dir: str | Path,
        *,
        client: Optional[Any] = None,
        embedding_model: Optional["EmbeddingModel"] = None,
        distance_metric: str = DEFAULT_DISTANCE_METRIC,
    ) -> None:
        self.persist_dir = Path(persist_dir)
        if client is None:
            try:
                import chromadb
            except ImportError as exc:  # pragma: no cover - depends on optional dependency
                raise ChunkStoreUnavailableError(
                    "CHUNK_STORE=chroma requires the 'chromadb' package to be installed",
                    cause=exc,
                ) from exc
            self.persist_dir.mkdir(parents=True, exist_ok=True)
            try:
                client = chromadb.PersistentClient(path=str(self.persist_dir))
            except Exception as exc:  # pragma: no cover - depends on chromadb runtime
                raise ChunkStoreUnavailableError(
                    "Failed to initialise Chroma persistent client", cause=exc
                ) from exc
        self._client = client

        if embedding_model is None:
            from ..embeddings import get_embedding_model

            try:
                embedding_model = get_embedding_model()
            except RuntimeError as exc:
                raise ChunkStoreUnavailableError(str(exc), cause=exc) from exc
        self.embedding_model = embedding_model

        try:
            self._documents = self._client.get_or_create_collection(name=DOCUMENTS_COLLECTION)
            self._chunks = self._client.get_or_create_collection(
                name=CHUNKS_COLLECTION, metadata={"hnsw:space": distance_metric}
            )
        except Exception as exc:
            raise ChunkStoreUnavailableError("Failed to initialise Chroma collections", cause=exc) from exc

    def _call(self, action: str, func, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ChunkStoreUnavailableError:
            raise
        except Exception as exc:
            LOGGER.error("Chroma %s failed: %s", action, exc)
            raise ChunkStoreUnavailableError(f"Chroma {action} failed", cause=exc) from exc

    # Reads -----------------------------------------------------------------------
    def get_document_by_id(self, document_id: str) -> Optional[Document]:
        if not document_id:
            return None
        records = self._call("document lookup", self._documents.get, ids=[document_id], include=["metadatas"])
        ids = records.get("ids") or []
        if not ids:
            return None
        metadata = dict((records.get("metadatas") or [{}])[0] or {})
        metadata["id"] = ids[0]
        return Document.from_record(metadata)

    def get_chunks_by_document(self, document_id: str) -> List[Chunk]:
        records = self._call(
            "chunk lookup",
            self._chunks.get,
            where={"documentId": document_id},
            include=["documents", "metadatas"],
        )
        chunks = self._records_to_chunks(records)
        return sorted(chunks, key=lambda chunk: (chunk.metadata.position, chunk.metadata.start_pos))

    def get_all_documents(self) -> List[Document]:
        records = self._call("document listing", self._documents.get, include=["metadatas"])
        documents: List[Document] = []
        for document_id, metadata in zip(records.get("ids") or [], records.get("metadatas") or []):
            payload = dict(metadata or {})
            payload["id"] = document_id
            documents.append(Document.from_record(payload))
        return documents

    def list_chunk_ids(self) -> List[str]:
        return list(self._call("chunk id listing", self._chunks.get, include=[]).get("ids") or [])

    def list_document_ids(self) -> List[str]:
        return list(self._call("document id listing", self._documents.get, include=[]).get("ids") or [])

    def search_chunks(self, query: str, k: int = 5) -> List[Chunk]:
        if not query.strip() or k <= 0:
            return []
        total = self._call("count", self._chunks.count)
        if not total:
            return []
        embedding = self.embedding_model.embed_texts([query])[0]
        result = self._call(
            "query",
            self._chunks.query,
            query_embeddings=[embedding],
            n_results=min(k, total),
            include=["documents", "metadatas", "distances"],
        )
        ids = (result.get("ids") or [[]])[0]
        documents = (result.get("documents") or [[]])[0]
        metadatas = (result.get("metadatas") or [[]])[0]
        return [
            _chunk_from(chunk_id, content, metadata or {})
            for chunk_id, content, metadata in zip(ids, documents, metadatas)
        ]

    def sample_chunks(self, limit: int = 10) -> List[Chunk]:
        if limit <= 0:
            return []
        records = self._call("chunk sample", self._chunks.get, limit=limit, include=["documents", "metadatas"])
        return self._records_to_chunks(records)

    @staticmethod
    def _records_to_chunks(records: Mapping[str, Any]) -> List[Chunk]:
        ids = records.get("ids") or []
        documents = records.get("documents") or [""] * len(ids)
        metadatas = records.get("metadatas") or [{}] * len(ids)
        return [
            _chunk_from(chunk_id, content, metadata or {})
            for chunk_id, content, metadata in zip(ids, documents, metadatas)
        ]

    # Writes ----------------------------------------------------------------------
    def add_document(self, document: Document) -> Document:
        stored = replace(document, id=document.id or uuid.uuid4().hex)
        self._upsert_document(stored)
        emit_store_event("store.document.add", backend=self.backend_name, count=1, document_id=stored.id)
        return stored

    def update_document(self, document: Document) -> Document:
        if self.get_document_by_id(document.id) is None:
            raise KeyError(f"Document '{document.id}' does not exist")
        stored = replace(document, updated_at=utc_now())
        self._upsert_document(stored)
        return stored

    def _upsert_document(self, document: Document) -> None:
        embedding = self.embedding_model.embed_texts([document.title or document.filename])
        self._call(
            "document upsert",
            self._documents.upsert,
            ids=[document.id],
            embeddings=embedding,
            documents=[document.title],
            metadatas=[_document_metadata(document)],
        )

    def add_chunks(self, chunks: Sequence[Chunk]) -> List[Chunk]:
        stored = [chunk if chunk.id else chunk.with_id(uuid.uuid4().hex) for chunk in chunks]
        if not stored:
            return []
        contents = [chunk.content for chunk in stored]
        embeddings = self.embedding_model.embed_texts(contents)
        self._call(
            "chunk upsert",
            self._chunks.upsert,
            ids=[chunk.id for chunk in stored],
            embeddings=embeddings,
            documents=contents,
            metadatas=[_chunk_metadata(chunk) for chunk in stored],
        )
        emit_store_event(
            "store.chunks.add",
            backend=self.backend_name,
            count=len(stored),
            document_id=stored[0].document_id,
        )
        return stored

    def delete_chunks(self, chunk_ids: Sequence[str]) -> int:
        ids = list(chunk_ids)
        if ids:
            self._call("chunk delete", self._chunks.delete, ids=ids)
        emit_store_event("store.chunks.delete", backend=self.backend_name, count=len(ids))
        return len(ids)

    def delete_documents(self, document_ids: Sequence[str]) -> int:
        ids = list(document_ids)
        if ids:
            self._call("document delete", self._documents.delete, ids=ids)
        emit_store_event("store.documents.delete", backend=self.backend_name, count=len(ids))
        return len(ids)

    def delete_document(self, document_id: str) -> int:
        chunk_ids = [chunk.id for chunk in self.get_chunks_by_document(document_id)]
        removed = self.delete_chunks(chunk_ids)
        self.delete_documents([document_id])
        return removed


__all__ = ["ChromaChunkStore"]
