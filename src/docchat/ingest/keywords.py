"""Keyword extraction and document classification for ingested text."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

LOGGER = logging.getLogger(__name__)

_HANGUL_WORD_RE = re.compile(r"[가-힣]{2,10}")
_LATIN_WORD_RE = re.compile(r"[A-Z][a-z]+")
_ARTICLE_RE = re.compile(r"제[0-9]+[조항호]")

COMMON_WORDS = frozenset(
    {
        "은", "는", "이", "가", "을", "를", "의", "과", "와", "에", "로", "에서",
        "및", "또는", "이다", "것", "등", "밖", "까지", "부터", "만", "도",
        "것을", "것이", "것에", "것으로", "것에서는",
        "년", "월", "일", "시", "분", "초",
    }
)

LEGAL_TERMS = ("법률", "시행령", "시행규칙", "규정")
GUIDELINE_TERMS = ("지침", "가이드라인", "매뉴얼", "안내")

DOCUMENT_TYPE_LEGAL = "법령"
DOCUMENT_TYPE_GUIDELINE = "지침"
DOCUMENT_TYPE_OTHER = "기타"


@dataclass(slots=True)
class SynonymDictionary:
    """Term dictionary: plain keywords plus base-term to synonym mappings."""

    keywords: tuple[str, ...] = ()
    synonym_mappings: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "SynonymDictionary":
        keywords = tuple(
            keyword for keyword in payload.get("keywords") or () if isinstance(keyword, str) and keyword
        )
        mappings: dict[str, tuple[str, ...]] = {}
        raw_mappings = payload.get("synonymMappings") or {}
        if isinstance(raw_mappings, Mapping):
            for base, synonyms in raw_mappings.items():
                if isinstance(synonyms, (list, tuple)):
                    mappings[str(base)] = tuple(
                        synonym for synonym in synonyms if isinstance(synonym, str) and synonym
                    )
        return cls(keywords=keywords, synonym_mappings=mappings)

    @classmethod
    def from_file(cls, path: Path | str) -> "SynonymDictionary":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payload, Mapping):
            raise ValueError(f"Synonym dictionary at {path} must be a JSON object")
        dictionary = cls.from_mapping(payload)
        LOGGER.info(
            "Loaded synonym dictionary from %s (%s keywords, %s mappings)",
            path,
            len(dictionary.keywords),
            len(dictionary.synonym_mappings),
        )
        return dictionary


def load_synonym_dictionary(path: Path | str | None) -> Optional[SynonymDictionary]:
    """Load the dictionary at *path*; a missing or unreadable file yields ``None``."""

    if path is None:
        return None
    path = Path(path)
    if not path.exists():
        LOGGER.warning("Synonym dictionary %s not found; using extracted keywords only", path)
        return None
    try:
        return SynonymDictionary.from_file(path)
    except (OSError, ValueError) as error:
        LOGGER.warning("Failed to load synonym dictionary %s: %s", path, error)
        return None


class KeywordExtractor:
    """Pull script-specific word tokens and dictionary matches out of a text."""

    def __init__(self, dictionary: Optional[SynonymDictionary] = None) -> None:
        self.dictionary = dictionary

    def extract(self, text: str) -> frozenset[str]:
        keywords: set[str] = set()

        for word in _HANGUL_WORD_RE.findall(text):
            if word not in COMMON_WORDS:
                keywords.add(word)

        for word in _LATIN_WORD_RE.findall(text):
            if 3 <= len(word) <= 20:
                keywords.add(word)

        keywords.update(_ARTICLE_RE.findall(text))

        if self.dictionary is not None:
            for base, synonyms in self.dictionary.synonym_mappings.items():
                matched = [synonym for synonym in synonyms if synonym in text]
                if matched:
                    keywords.add(base)
                    keywords.update(matched)
            keywords.update(keyword for keyword in self.dictionary.keywords if keyword in text)

        return frozenset(keywords)


def classify_document(filename: str) -> str:
    if any(term in filename for term in LEGAL_TERMS):
        return DOCUMENT_TYPE_LEGAL
    if any(term in filename for term in GUIDELINE_TERMS):
        return DOCUMENT_TYPE_GUIDELINE
    return DOCUMENT_TYPE_OTHER


def title_from_filename(filename: str) -> str:
    name = Path(filename).name
    suffix = Path(name).suffix
    if suffix.lower() in {".pdf", ".txt"}:
        return name[: -len(suffix)]
    return name


__all__ = [
    "COMMON_WORDS",
    "DOCUMENT_TYPE_GUIDELINE",
    "DOCUMENT_TYPE_LEGAL",
    "DOCUMENT_TYPE_OTHER",
    "KeywordExtractor",
    "SynonymDictionary",
    "classify_document",
    "load_synonym_dictionary",
    "title_from_filename",
]
