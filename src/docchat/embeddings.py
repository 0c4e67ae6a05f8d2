"""Chunk embeddings for the Chroma store, backed by Sentence Transformers."""
from __future__ import annotations

import hashlib
import logging
import os
import random
import time
from functools import lru_cache
from typing import List, Sequence

from .telemetry import log_event

DEFAULT_MODEL_NAME = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"
FALLBACK_DIMENSION = 384
FALLBACK_MODEL_NAME = "deterministic-fallback"

LOGGER = logging.getLogger(__name__)


def _install_heavy_enabled() -> bool:
    flag = os.getenv("INSTALL_HEAVY", "true").strip().lower()
    return flag not in {"0", "false", "no", "off"}


class EmbeddingModel:
    """SentenceTransformer wrapper that degrades to hash-seeded vectors.

    The fallback is used when ``INSTALL_HEAVY`` is disabled or the model cannot
    be loaded, so the Chroma store keeps working in lightweight environments.
    """

    def __init__(self, model_name_or_path: str | None = None, *, device: str | None = None) -> None:
        model_path = model_name_or_path or os.getenv("EMBEDDING_MODEL_PATH", DEFAULT_MODEL_NAME)
        self._model = None
        self._dimension = FALLBACK_DIMENSION
        self._model_name = FALLBACK_MODEL_NAME

        if not _install_heavy_enabled():
            LOGGER.info("INSTALL_HEAVY is disabled; using deterministic fallback embeddings.")
            return

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as error:  # pragma: no cover - depends on optional deps
            raise RuntimeError(
                "sentence-transformers is not installed; install docchat[heavy] or set INSTALL_HEAVY=false"
            ) from error

        try:
            self._model = SentenceTransformer(model_path, device=device or os.getenv("EMBEDDING_DEVICE"))
        except Exception as error:  # pragma: no cover - unexpected backend errors
            LOGGER.warning(
                "Failed to initialize sentence-transformers model '%s': %s. "
                "Using deterministic fallback embeddings instead.",
                model_path,
                error,
            )
            self._model = None
            return

        self._model_name = model_path
        self._dimension = int(self._model.get_sentence_embedding_dimension())

    @property
    def model_name(self) -> str:
        return self._model_name

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        if self._model is not None:
            embeddings = self._model.encode(
                list(texts),
                convert_to_numpy=True,
                show_progress_bar=False,
                normalize_embeddings=True,
            ).tolist()
        else:
            embeddings = [self._deterministic_embedding(str(text)) for text in texts]
        log_event(
            LOGGER,
            "embeddings.encode",
            level="debug",
            duration_ms=(time.perf_counter() - started) * 1000.0,
            details={"model": self._model_name, "count": len(texts)},
        )
        return embeddings

    def _deterministic_embedding(self, text: str) -> List[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest(), "big")
        rng = random.Random(seed)
        return [rng.uniform(-1.0, 1.0) for _ in range(self._dimension)]


@lru_cache()
def get_embedding_model() -> EmbeddingModel:
    return EmbeddingModel()


def reset_embedding_model_cache() -> None:
    """Clear the cached embedding model instance (primarily for testing)."""

    get_embedding_model.cache_clear()  # type: ignore[attr-defined]


__all__ = ["EmbeddingModel", "get_embedding_model", "reset_embedding_model_cache"]
