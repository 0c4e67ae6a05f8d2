"""Ingestion package: chunking, keyword extraction, corpus reset and validation."""
from __future__ import annotations

from .chunking import ChunkingConfig, TextChunker
from .keywords import KeywordExtractor, SynonymDictionary, classify_document, load_synonym_dictionary
from .pipeline import CorpusIngestor, IngestReport
from .reset import CorpusResetter, ResetReport
from .validation import ValidationReport, validate_corpus

__all__ = [
    "ChunkingConfig",
    "CorpusIngestor",
    "CorpusResetter",
    "IngestReport",
    "KeywordExtractor",
    "ResetReport",
    "SynonymDictionary",
    "TextChunker",
    "ValidationReport",
    "classify_document",
    "load_synonym_dictionary",
    "validate_corpus",
]
