"""Structured lifecycle logging for ingestion, store access and navigation."""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterator, Optional

LOGGER = logging.getLogger("docchat.telemetry")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    document_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if document_id:
        event["document_id"] = document_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    document_id: str | None = None,
    size_chars: int | None = None,
    pages: int | None = None,
    chunks: int | None = None,
    duration_ms: float | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_chars": size_chars,
        "pages": pages,
        "chunks": chunks,
    }
    level = "error" if error else "info"
    log_event(
        LOGGER,
        step,
        level=level,
        document_id=document_id,
        duration_ms=duration_ms,
        details=details,
        exc=error,
    )


def emit_store_event(
    step: str,
    *,
    backend: str,
    count: int,
    document_id: str | None = None,
    error: BaseException | None = None,
) -> None:
    details = {"backend": backend, "count": count}
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, document_id=document_id, details=details, exc=error)


def emit_reset_event(
    step: str,
    *,
    collection: str,
    start: int,
    end: int,
    attempt: int,
    error: BaseException | None = None,
) -> None:
    details = {"collection": collection, "start": start, "end": end, "attempt": attempt}
    level = "warning" if error else "info"
    log_event(LOGGER, step, level=level, details=details, exc=error)


def emit_navigation_event(
    step: str,
    *,
    document_id: str | None,
    page: int | None,
    chunk_id: str | None = None,
    view_mode: str | None = None,
) -> None:
    details = {"page": page, "chunk_id": chunk_id, "view_mode": view_mode}
    log_event(LOGGER, step, level="debug", document_id=document_id, details=details)


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_ingest_event",
    "emit_navigation_event",
    "emit_reset_event",
    "emit_store_event",
    "log_event",
    "traced_duration",
]
