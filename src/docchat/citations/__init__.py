"""Citation marker resolution, activation and previews."""
from __future__ import annotations

from .fields import navigation_intent
from .markers import (
    CitationGroup,
    CitationMarker,
    EmphasisSegment,
    ResolvedAnswer,
    TextSegment,
    activate,
    parse_answer,
    parse_message,
)
from .preview import PreviewController, build_preview

__all__ = [
    "CitationGroup",
    "CitationMarker",
    "EmphasisSegment",
    "PreviewController",
    "ResolvedAnswer",
    "TextSegment",
    "activate",
    "build_preview",
    "navigation_intent",
    "parse_answer",
    "parse_message",
]
