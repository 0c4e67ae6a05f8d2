"""Shared fixtures: a manual clock scheduler, seeded stores and a fake Chroma client."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

import pytest

from docchat.config import reset_settings_cache
from docchat.embeddings import reset_embedding_model_cache
from docchat.models import Chunk, ChunkMetadata, Document
from docchat.services.corpus import reset_corpus_service_cache
from docchat.store import reset_chunk_store_cache
from docchat.store.memory_store import InMemoryChunkStore
from docchat.timers import TimerRegistry


class FakeHandle:
    def __init__(self, when: float, sequence: int, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.sequence = sequence
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic stand-in for an event loop: time only moves on ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: List[FakeHandle] = []
        self._sequence = 0

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        self._sequence += 1
        handle = FakeHandle(self.now + delay, self._sequence, callback, args)
        self._handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [handle for handle in self._handles if not handle.cancelled and handle.when <= target]
            if not due:
                break
            handle = min(due, key=lambda item: (item.when, item.sequence))
            self._handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._handles if not handle.cancelled)


class FakeEmbeddingModel:
    model_name = "fake"

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    def embed_texts(self, texts: Iterable[str]) -> List[List[float]]:
        texts = list(texts)
        self.calls.append(texts)
        return [[float(len(text)), 1.0] for text in texts]


class FakeCollection:
    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.name = name
        self.metadata = metadata or {}
        self.records: Dict[str, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def upsert(self, ids, embeddings, documents, metadatas) -> None:
        self._check()
        for record_id, embedding, document, metadata in zip(ids, embeddings, documents, metadatas):
            self.records[record_id] = {"embedding": embedding, "document": document, "metadata": dict(metadata)}

    def get(self, ids=None, where=None, include=None, limit=None) -> Dict[str, Any]:
        self._check()
        selected = [
            (record_id, record)
            for record_id, record in self.records.items()
            if (ids is None or record_id in ids)
            and (not where or all(record["metadata"].get(key) == value for key, value in where.items()))
        ]
        if limit is not None:
            selected = selected[:limit]
        return {
            "ids": [record_id for record_id, _ in selected],
            "documents": [record["document"] for _, record in selected],
            "metadatas": [record["metadata"] for _, record in selected],
        }

    def delete(self, ids) -> None:
        self._check()
        for record_id in ids:
            self.records.pop(record_id, None)

    def count(self) -> int:
        self._check()
        return len(self.records)

    def query(self, query_embeddings, n_results, include=None) -> Dict[str, Any]:
        self._check()
        selected = list(self.records.items())[:n_results]
        return {
            "ids": [[record_id for record_id, _ in selected]],
            "documents": [[record["document"] for _, record in selected]],
            "metadatas": [[record["metadata"] for _, record in selected]],
            "distances": [[0.0 for _ in selected]],
        }


class FakeChromaClient:
    def __init__(self) -> None:
        self.collections: Dict[str, FakeCollection] = {}

    def get_or_create_collection(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, metadata)
        return self.collections[name]


def make_chunk(
    document_id: str,
    position: int,
    content: str,
    *,
    page: int = 0,
    chunk_id: Optional[str] = None,
    keywords: Iterable[str] = (),
) -> Chunk:
    start = position * 100
    return Chunk(
        id=chunk_id if chunk_id is not None else f"{document_id}-c{position}",
        document_id=document_id,
        filename=f"{document_id}.pdf",
        content=content,
        keywords=frozenset(keywords),
        metadata=ChunkMetadata(
            position=position,
            start_pos=start,
            end_pos=start + len(content),
            original_size=len(content),
            page=page,
        ),
    )


def seed_document(
    store: InMemoryChunkStore,
    document_id: str,
    contents: List[str],
    *,
    total_pages: int = 0,
    pages: Optional[List[int]] = None,
    title: Optional[str] = None,
) -> Document:
    document = store.add_document(
        Document(
            id=document_id,
            filename=f"{document_id}.pdf",
            title=title or document_id,
            total_pages=total_pages,
            total_chunks=len(contents),
        )
    )
    store.add_chunks(
        [
            make_chunk(document_id, index, content, page=(pages[index] if pages else 0))
            for index, content in enumerate(contents)
        ]
    )
    return document


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("INSTALL_HEAVY", "false")
    monkeypatch.setenv("CHUNK_STORE", "memory")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("STORE_PERSIST_PATH", raising=False)
    monkeypatch.delenv("SYNONYM_DICTIONARY_PATH", raising=False)
    reset_settings_cache()
    reset_chunk_store_cache()
    reset_corpus_service_cache()
    reset_embedding_model_cache()
    yield
    reset_settings_cache()
    reset_chunk_store_cache()
    reset_corpus_service_cache()
    reset_embedding_model_cache()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def timers(scheduler: FakeScheduler) -> TimerRegistry:
    return TimerRegistry(scheduler)


@pytest.fixture
def memory_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def fake_chroma_client() -> FakeChromaClient:
    return FakeChromaClient()
