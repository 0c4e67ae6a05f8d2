import logging
from typing import Any, Callable, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from docchat.api import citations_router, corpus_router, documents_router
from docchat.config import get_settings
from docchat.errors import ChunkStoreUnavailableError
from docchat.logging_config import configure_logging
from docchat.store import get_chunk_store
from docchat.telemetry import log_event

configure_logging(get_settings().log_dir)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocChat API")
app.include_router(documents_router)
app.include_router(citations_router)
app.include_router(corpus_router)


@app.on_event("startup")
async def _log_startup() -> None:
    settings = get_settings()
    log_event(
        LOGGER,
        "app.startup",
        chunk_store=settings.chunk_store,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )


T = TypeVar("T")


def _resolve_dependency(factory: Callable[[], T]) -> T:
    """Resolve a dependency while respecting FastAPI overrides."""

    override: Any | None = app.dependency_overrides.get(factory)
    resolved: Any = override if override is not None else factory
    return resolved() if callable(resolved) else resolved


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"


@app.get("/readyz", response_class=PlainTextResponse)
def readiness_probe() -> str:
    """Readiness probe that ensures the chunk store can be reached."""

    try:
        store = _resolve_dependency(get_chunk_store)
        store.list_document_ids()
    except ChunkStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=f"chunk_store_unavailable: {exc}") from exc
    return "ok"
