"""Corpus maintenance endpoints: rebuild, clear and validate."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..errors import BatchDeleteError, ChunkStoreUnavailableError
from ..ingest.reset import ResetReport
from ..services.corpus import CorpusService, get_corpus_service
from .documents import http_error

router = APIRouter(prefix="/corpus", tags=["corpus"])


class RebuildRequest(BaseModel):
    corpus_dir: Optional[str] = Field(None, description="Directory holding manifest.json or source files.")


class IngestFailureOut(BaseModel):
    filename: str
    error: str


class ResetOut(BaseModel):
    deleted_chunks: int
    deleted_documents: int
    duration_seconds: float


class RebuildResponse(BaseModel):
    status: str
    documents: int
    chunks: int
    document_ids: list[str]
    failures: list[IngestFailureOut]
    reset: Optional[ResetOut] = None


class ValidationOut(BaseModel):
    ok: bool
    documents_present: bool
    sampled_chunks: int
    valid_chunks: int
    quality_score: float
    threshold: float


def _serialize_reset(report: ResetReport) -> ResetOut:
    return ResetOut(
        deleted_chunks=report.deleted_chunks,
        deleted_documents=report.deleted_documents,
        duration_seconds=round(report.duration, 3),
    )


def _batch_error(exc: BatchDeleteError) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={
            "message": str(exc),
            "failed_batches": [
                {"collection": batch.collection, "start": batch.start, "end": batch.end, "error": batch.error}
                for batch in exc.failed_batches
            ],
        },
    )


@router.post("/rebuild", response_model=RebuildResponse)
def rebuild_corpus(
    request: RebuildRequest,
    service: CorpusService = Depends(get_corpus_service),
) -> RebuildResponse:
    """Clear the store and ingest every document listed in the corpus directory."""

    try:
        report = service.rebuild(request.corpus_dir)
    except BatchDeleteError as exc:
        raise _batch_error(exc) from exc
    except ChunkStoreUnavailableError as exc:
        raise http_error(exc) from exc
    except (FileNotFoundError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return RebuildResponse(
        status="ok" if report.ok else "partial",
        documents=report.documents,
        chunks=report.chunks,
        document_ids=list(report.document_ids),
        failures=[IngestFailureOut(filename=name, error=error) for name, error in report.failures],
        reset=_serialize_reset(report.reset) if report.reset is not None else None,
    )


@router.delete("", response_model=ResetOut)
def clear_corpus(service: CorpusService = Depends(get_corpus_service)) -> ResetOut:
    try:
        return _serialize_reset(service.clear())
    except BatchDeleteError as exc:
        raise _batch_error(exc) from exc
    except ChunkStoreUnavailableError as exc:
        raise http_error(exc) from exc


@router.get("/validate", response_model=ValidationOut)
def validate_corpus(
    sample_size: int = Query(10, ge=1, le=500),
    threshold: float = Query(80.0, ge=0.0, le=100.0),
    service: CorpusService = Depends(get_corpus_service),
) -> ValidationOut:
    try:
        report = service.validate(sample_size=sample_size, threshold=threshold)
    except ChunkStoreUnavailableError as exc:
        raise http_error(exc) from exc
    return ValidationOut(
        ok=report.ok,
        documents_present=report.documents_present,
        sampled_chunks=report.sampled_chunks,
        valid_chunks=report.valid_chunks,
        quality_score=report.quality_score,
        threshold=report.threshold,
    )
