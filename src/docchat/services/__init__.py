"""Service layer wiring stores, ingestion and citation resolution together."""
from __future__ import annotations

from .corpus import CorpusService, get_corpus_service, reset_corpus_service_cache

__all__ = ["CorpusService", "get_corpus_service", "reset_corpus_service_cache"]
