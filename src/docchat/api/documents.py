"""Document, chunk and page-layout endpoints."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..errors import ChunkStoreUnavailableError, DocumentNotFoundError
from ..models import Chunk, Document
from ..services.corpus import CorpusService, get_corpus_service

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentOut(BaseModel):
    id: str
    filename: str
    title: str
    type: str
    total_pages: int
    total_chunks: int
    total_size: int
    created_at: str
    updated_at: str


class ChunkOut(BaseModel):
    id: str
    document_id: str
    filename: str
    content: str
    keywords: list[str]
    metadata: dict[str, Any]


class PageOut(BaseModel):
    page: int
    chunk_ids: list[str]


class PageLayoutOut(BaseModel):
    document_id: str
    pages: list[PageOut]
    display_total: int
    max_page: int
    estimated: bool


class SearchHitOut(BaseModel):
    chunk: ChunkOut
    page: Optional[int] = Field(None, description="Page owning the chunk, real or estimated.")


def serialize_document(document: Document) -> DocumentOut:
    return DocumentOut(
        id=document.id,
        filename=document.filename,
        title=document.title,
        type=document.type,
        total_pages=document.total_pages,
        total_chunks=document.total_chunks,
        total_size=document.total_size,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def serialize_chunk(chunk: Chunk) -> ChunkOut:
    return ChunkOut(
        id=chunk.id,
        document_id=chunk.document_id,
        filename=chunk.filename,
        content=chunk.content,
        keywords=sorted(chunk.keywords),
        metadata=chunk.metadata.to_record(),
    )


def http_error(exc: Exception) -> HTTPException:
    """Map a service error to its HTTP status: 404 for missing documents, else 503."""

    status_code = 404 if isinstance(exc, DocumentNotFoundError) else 503
    return HTTPException(status_code=status_code, detail=str(exc))


@router.get("", response_model=list[DocumentOut])
def list_documents(service: CorpusService = Depends(get_corpus_service)) -> list[DocumentOut]:
    try:
        documents = service.list_documents()
    except ChunkStoreUnavailableError as exc:
        raise http_error(exc) from exc
    return [serialize_document(document) for document in documents]


@router.get("/{document_id}", response_model=DocumentOut)
def get_document(document_id: str, service: CorpusService = Depends(get_corpus_service)) -> DocumentOut:
    try:
        return serialize_document(service.get_document(document_id))
    except (DocumentNotFoundError, ChunkStoreUnavailableError) as exc:
        raise http_error(exc) from exc


@router.get("/{document_id}/chunks", response_model=list[ChunkOut])
def get_chunks(document_id: str, service: CorpusService = Depends(get_corpus_service)) -> list[ChunkOut]:
    try:
        chunks = service.get_chunks(document_id)
    except (DocumentNotFoundError, ChunkStoreUnavailableError) as exc:
        raise http_error(exc) from exc
    return [serialize_chunk(chunk) for chunk in chunks]


@router.get("/{document_id}/pages", response_model=PageLayoutOut)
def get_pages(document_id: str, service: CorpusService = Depends(get_corpus_service)) -> PageLayoutOut:
    try:
        layout = service.page_layout(document_id)
    except (DocumentNotFoundError, ChunkStoreUnavailableError) as exc:
        raise http_error(exc) from exc
    return PageLayoutOut(
        document_id=document_id,
        pages=[
            PageOut(page=page, chunk_ids=[chunk.id for chunk in chunks])
            for page, chunks in layout.buckets.items()
        ],
        display_total=layout.display_total,
        max_page=layout.max_page,
        estimated=layout.estimated,
    )


@router.get("/{document_id}/search", response_model=Optional[SearchHitOut])
def search_document(
    document_id: str,
    q: str = Query(..., min_length=1, description="Case-insensitive text to find."),
    service: CorpusService = Depends(get_corpus_service),
) -> Optional[SearchHitOut]:
    try:
        hit = service.search_document(document_id, q)
    except (DocumentNotFoundError, ChunkStoreUnavailableError) as exc:
        raise http_error(exc) from exc
    if hit is None:
        return None
    return SearchHitOut(chunk=serialize_chunk(hit.chunk), page=hit.page)
