"""HTTP routers exposed by the FastAPI application."""
from __future__ import annotations

from .citations import router as citations_router
from .corpus import router as corpus_router
from .documents import router as documents_router

__all__ = ["citations_router", "corpus_router", "documents_router"]
