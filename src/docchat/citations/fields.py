"""Ordered-fallback field accessors for chunk references.

References reach the resolver from several pipeline stages, so the same field
may appear under different names (``documentId`` vs ``document_id``, a page
nested under ``metadata``...). Each accessor tries its names in order and
returns the first non-empty value.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..events import NavigationIntent

DOCUMENT_ID_FIELDS = ("documentId", "document_id", "docId", "metadata.documentId")
CHUNK_ID_FIELDS = ("chunkId", "chunk_id", "id")
TITLE_FIELDS = ("documentTitle", "document_title", "title", "filename", "metadata.title")
PAGE_FIELDS = ("page", "metadata.page", "location.page")
KEYWORD_FIELDS = ("keywords", "metadata.keywords")
CONTENT_FIELDS = ("content", "text")

_MISSING = object()


def _lookup(source: Any, name: str) -> Any:
    if source is None:
        return _MISSING
    if isinstance(source, Mapping):
        return source.get(name, _MISSING)
    return getattr(source, name, _MISSING)


def get_path(source: Any, path: str) -> Any:
    """Resolve a dotted *path* through mappings and attributes; ``None`` when absent."""

    current = source
    for part in path.split("."):
        current = _lookup(current, part)
        if current is _MISSING:
            return None
    return current


def first_present(source: Any, paths: Sequence[str]) -> Any:
    for path in paths:
        value = get_path(source, path)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def document_id_of(reference: Any) -> str:
    value = first_present(reference, DOCUMENT_ID_FIELDS)
    return str(value) if value is not None else ""


def chunk_id_of(reference: Any) -> str:
    value = first_present(reference, CHUNK_ID_FIELDS)
    return str(value) if value is not None else ""


def title_of(reference: Any) -> str:
    value = first_present(reference, TITLE_FIELDS)
    return str(value) if value is not None else ""


def page_of(reference: Any) -> Optional[int]:
    """Return the first positive page number, or ``None``."""

    for path in PAGE_FIELDS:
        value = get_path(reference, path)
        try:
            page = int(value)
        except (TypeError, ValueError):
            continue
        if page > 0:
            return page
    return None


def keywords_of(reference: Any) -> tuple[str, ...]:
    value = first_present(reference, KEYWORD_FIELDS)
    if not value or isinstance(value, str):
        return ()
    return tuple(str(keyword) for keyword in value if keyword)


def content_of(reference: Any) -> str:
    value = first_present(reference, CONTENT_FIELDS)
    return str(value) if value is not None else ""


def navigation_intent(reference: Any) -> Optional[NavigationIntent]:
    """Build the intent for activating *reference*; ``None`` when either id is missing."""

    document_id = document_id_of(reference)
    chunk_id = chunk_id_of(reference)
    if not document_id or not chunk_id:
        return None
    return NavigationIntent(
        document_id=document_id,
        chunk_id=chunk_id,
        title=title_of(reference),
        page=page_of(reference),
    )


__all__ = [
    "chunk_id_of",
    "content_of",
    "document_id_of",
    "first_present",
    "get_path",
    "keywords_of",
    "navigation_intent",
    "page_of",
    "title_of",
]
