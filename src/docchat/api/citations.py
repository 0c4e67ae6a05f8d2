"""Citation resolution, activation and retrieval endpoints."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from ..citations.markers import CitationGroup, CitationMarker, EmphasisSegment, Segment
from ..citations.fields import chunk_id_of, document_id_of
from ..errors import ChunkStoreUnavailableError
from ..services.corpus import CorpusService, get_corpus_service
from .documents import http_error

router = APIRouter(tags=["citations"])


class ResolveRequest(BaseModel):
    content: str = Field(..., description="Answer markdown containing **N** citation groups.")
    chunk_references: list[dict[str, Any]] = Field(default_factory=list)
    message_id: str = ""


class MarkerOut(BaseModel):
    key: str
    number: int
    document_id: str
    chunk_id: str
    reference: dict[str, Any]


class SegmentOut(BaseModel):
    type: str
    text: Optional[str] = None
    index: Optional[int] = None
    numbers: list[int] = Field(default_factory=list)
    markers: list[MarkerOut] = Field(default_factory=list)


class ResolveResponse(BaseModel):
    message_id: str
    segments: list[SegmentOut]
    markers: list[MarkerOut]


class ActivateRequest(BaseModel):
    reference: dict[str, Any]


class NavigationIntentOut(BaseModel):
    document_id: str
    chunk_id: str
    title: str
    page: Optional[int] = None


class RetrieveRequest(BaseModel):
    question: str = Field(..., min_length=1)
    top_k: int = Field(5, ge=1, le=50)


class RetrieveResponse(BaseModel):
    question: str
    chunk_references: list[dict[str, Any]]
    sources: list[str]


def _serialize_marker(marker: CitationMarker) -> MarkerOut:
    return MarkerOut(
        key=marker.key,
        number=marker.number,
        document_id=document_id_of(marker.reference),
        chunk_id=chunk_id_of(marker.reference),
        reference=dict(marker.reference),
    )


def _serialize_segment(segment: Segment) -> SegmentOut:
    if isinstance(segment, CitationGroup):
        return SegmentOut(
            type="citation",
            index=segment.index,
            numbers=list(segment.numbers),
            markers=[_serialize_marker(marker) for marker in segment.markers],
        )
    kind = "emphasis" if isinstance(segment, EmphasisSegment) else "text"
    return SegmentOut(type=kind, text=segment.text)


@router.post("/citations/resolve", response_model=ResolveResponse)
def resolve_citations(
    request: ResolveRequest,
    service: CorpusService = Depends(get_corpus_service),
) -> ResolveResponse:
    resolved = service.resolve_citations(
        request.content, request.chunk_references, message_id=request.message_id
    )
    return ResolveResponse(
        message_id=resolved.message_id,
        segments=[_serialize_segment(segment) for segment in resolved.segments],
        markers=[_serialize_marker(marker) for marker in resolved.markers],
    )


@router.post(
    "/citations/activate",
    response_model=NavigationIntentOut,
    responses={204: {"description": "Activation suppressed: document or chunk id missing."}},
)
def activate_citation(
    request: ActivateRequest,
    service: CorpusService = Depends(get_corpus_service),
):
    intent = service.activation_intent(request.reference)
    if intent is None:
        return Response(status_code=204)
    return NavigationIntentOut(
        document_id=intent.document_id,
        chunk_id=intent.chunk_id,
        title=intent.title,
        page=intent.page,
    )


@router.post("/retrieve", response_model=RetrieveResponse)
def retrieve(
    request: RetrieveRequest,
    service: CorpusService = Depends(get_corpus_service),
) -> RetrieveResponse:
    try:
        result = service.retrieve(request.question, top_k=request.top_k)
    except ChunkStoreUnavailableError as exc:
        raise http_error(exc) from exc
    return RetrieveResponse(
        question=result.question,
        chunk_references=[reference.to_record() for reference in result.references],
        sources=result.sources,
    )
