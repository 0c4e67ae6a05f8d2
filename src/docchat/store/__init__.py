"""Chunk store backends and the configured-store factory."""
from __future__ import annotations

from functools import lru_cache

from ..config import get_settings
from ..errors import ChunkStoreUnavailableError
from .base import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION, ChunkStore
from .memory_store import InMemoryChunkStore


@lru_cache()
def get_chunk_store() -> ChunkStore:
    """Return a lazily initialised chunk store based on configuration."""

    settings = get_settings()
    backend = settings.chunk_store

    if backend == "memory":
        return InMemoryChunkStore(settings.store_persist_path)

    if backend == "chroma":
        from .chroma_store import ChromaChunkStore

        try:
            return ChromaChunkStore(settings.chroma_persist_dir)
        except ChunkStoreUnavailableError:
            raise
        except Exception as exc:  # pragma: no cover - unexpected backend failure
            raise ChunkStoreUnavailableError("Failed to initialise Chroma store", cause=exc) from exc

    raise ValueError(f"Unsupported CHUNK_STORE backend: {backend!r}")


def reset_chunk_store_cache() -> None:
    """Clear the cached chunk store (primarily for testing)."""

    get_chunk_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "CHUNKS_COLLECTION",
    "ChunkStore",
    "ChunkStoreUnavailableError",
    "DOCUMENTS_COLLECTION",
    "InMemoryChunkStore",
    "get_chunk_store",
    "reset_chunk_store_cache",
]
