"""Domain models for documents, chunks and answer messages."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional


def utc_now() -> str:
    """Return the current UTC time as an ISO-8601 string."""

    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(slots=True)
class ChunkMetadata:
    """Positional and page metadata attached to a chunk."""

    position: int
    start_pos: int
    end_pos: int
    original_size: int
    page: int = 0
    section: Optional[str] = None
    document_type: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "position": self.position,
            "startPos": self.start_pos,
            "endPos": self.end_pos,
            "originalSize": self.original_size,
            "page": self.page,
        }
        if self.section:
            record["section"] = self.section
        if self.document_type:
            record["documentType"] = self.document_type
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ChunkMetadata":
        start = _as_int(record.get("startPos", record.get("startPosition")))
        end = _as_int(record.get("endPos", record.get("endPosition")), start)
        return cls(
            position=_as_int(record.get("position")),
            start_pos=start,
            end_pos=end,
            original_size=_as_int(record.get("originalSize"), end - start),
            page=_as_int(record.get("page")),
            section=record.get("section") or None,
            document_type=record.get("documentType") or None,
        )


@dataclass(slots=True)
class Chunk:
    """Unit of retrievable content owned by a document."""

    document_id: str
    content: str
    metadata: ChunkMetadata
    keywords: frozenset[str] = frozenset()
    filename: str = ""
    id: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def page(self) -> int:
        return self.metadata.page

    def with_id(self, chunk_id: str) -> "Chunk":
        return replace(self, id=chunk_id)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "documentId": self.document_id,
            "filename": self.filename,
            "content": self.content,
            "keywords": sorted(self.keywords),
            "metadata": self.metadata.to_record(),
            "searchableText": self.content.lower(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Chunk":
        return cls(
            id=str(record.get("id", "")),
            document_id=str(record.get("documentId", "")),
            filename=str(record.get("filename", "")),
            content=str(record.get("content", "")),
            keywords=frozenset(record.get("keywords") or ()),
            metadata=ChunkMetadata.from_record(record.get("metadata") or {}),
            created_at=str(record.get("createdAt") or utc_now()),
            updated_at=str(record.get("updatedAt") or utc_now()),
        )


@dataclass(slots=True)
class Document:
    """Ingested source document; owns its chunks."""

    filename: str
    title: str
    type: str = ""
    total_pages: int = 0
    total_chunks: int = 0
    total_size: int = 0
    id: str = ""
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "title": self.title,
            "type": self.type,
            "totalPages": self.total_pages,
            "totalChunks": self.total_chunks,
            "totalSize": self.total_size,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Document":
        return cls(
            id=str(record.get("id", "")),
            filename=str(record.get("filename", "")),
            title=str(record.get("title", "")),
            type=str(record.get("type", "")),
            total_pages=_as_int(record.get("totalPages")),
            total_chunks=_as_int(record.get("totalChunks")),
            total_size=_as_int(record.get("totalSize")),
            created_at=str(record.get("createdAt") or utc_now()),
            updated_at=str(record.get("updatedAt") or utc_now()),
        )


@dataclass(frozen=True, slots=True)
class ChunkReference:
    """Answer-scoped snapshot of a chunk's identifying fields."""

    chunk_id: str
    document_id: str
    document_title: str
    content: str
    page: Optional[int] = None
    section: Optional[str] = None
    keywords: tuple[str, ...] = ()
    start_pos: Optional[int] = None
    end_pos: Optional[int] = None
    position: Optional[int] = None

    @classmethod
    def from_chunk(
        cls,
        chunk: Chunk,
        document: Document | None = None,
        *,
        page: int | None = None,
    ) -> "ChunkReference":
        """Snapshot *chunk*; *page* overrides the chunk's own (possibly zero) page."""

        resolved_page = page if page else (chunk.metadata.page or None)
        title = document.title if document is not None else chunk.filename
        return cls(
            chunk_id=chunk.id,
            document_id=chunk.document_id,
            document_title=title,
            content=chunk.content,
            page=resolved_page,
            section=chunk.metadata.section,
            keywords=tuple(sorted(chunk.keywords)),
            start_pos=chunk.metadata.start_pos,
            end_pos=chunk.metadata.end_pos,
            position=chunk.metadata.position,
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "chunkId": self.chunk_id,
            "documentId": self.document_id,
            "documentTitle": self.document_title,
            "content": self.content,
            "page": self.page,
            "section": self.section,
            "keywords": list(self.keywords),
        }
        if self.start_pos is not None:
            record["metadata"] = {
                "startPos": self.start_pos,
                "endPos": self.end_pos,
                "position": self.position,
            }
        return record


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(slots=True)
class Message:
    """A chat message; model answers carry ordered chunk references."""

    id: str
    role: Role
    content: str
    sources: list[str] = field(default_factory=list)
    chunk_references: list[Any] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now)

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER


__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkReference",
    "Document",
    "Message",
    "Role",
    "utc_now",
]
