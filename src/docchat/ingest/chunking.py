"""Fixed-size overlapping chunker with boundary-aware cut points."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional

from ..errors import StallDetectedError
from ..models import Chunk, ChunkMetadata
from .keywords import KeywordExtractor

LOGGER = logging.getLogger(__name__)

BOUNDARY_CHARACTERS = (".", "!", "?", "。", "\n", " ")


@dataclass(slots=True)
class ChunkingConfig:
    chunk_size: int = 2000
    overlap: int = 200
    min_keep_ratio: float = 0.5
    max_stall_retries: int = 3

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.overlap < 0:
            raise ValueError("overlap must not be negative")
        if self.overlap >= self.chunk_size:
            raise ValueError(
                f"overlap ({self.overlap}) must be smaller than chunk_size ({self.chunk_size})"
            )


class ChunkSpan(NamedTuple):
    start: int
    end: int


def page_for_offset(offset: int, text_length: int, total_pages: int) -> int:
    """Map a character offset to a 1-based page; 0 when the page count is unknown."""

    if total_pages <= 0 or text_length <= 0:
        return 0
    return min(total_pages, offset * total_pages // text_length + 1)


class TextChunker:
    """Split document text into overlapping chunks of at most ``chunk_size`` characters."""

    def __init__(
        self,
        config: Optional[ChunkingConfig] = None,
        keyword_extractor: Optional[KeywordExtractor] = None,
    ) -> None:
        self.config = config or ChunkingConfig()
        self.keyword_extractor = keyword_extractor or KeywordExtractor()

    def iter_spans(self, text: str, *, filename: str | None = None) -> Iterator[ChunkSpan]:
        length = len(text)
        position = 0
        while position < length:
            end = self._find_cut(text, position)
            attempts = 0
            while end < length and end - self.config.overlap <= position:
                attempts += 1
                if attempts > self.config.max_stall_retries:
                    raise StallDetectedError(position, attempts, filename=filename)
                LOGGER.warning(
                    "Chunk window at %s does not advance (end %s); retrying with a hard cut",
                    position,
                    end,
                )
                end = min(length, max(end, position + self.config.chunk_size))
            yield ChunkSpan(position, end)
            if end >= length:
                break
            position = max(0, end - self.config.overlap)

    def _find_cut(self, text: str, position: int) -> int:
        window_end = position + self.config.chunk_size
        if window_end >= len(text):
            return len(text)
        window = text[position:window_end]
        boundary = max(window.rfind(character) for character in BOUNDARY_CHARACTERS)
        if boundary >= 0 and boundary + 1 >= self.config.chunk_size * self.config.min_keep_ratio:
            return position + boundary + 1
        return window_end

    def chunk_document(
        self,
        text: str,
        *,
        document_id: str = "",
        filename: str = "",
        total_pages: int = 0,
        document_type: str | None = None,
    ) -> Iterator[Chunk]:
        """Yield chunks in position order, each tagged with page and keyword metadata."""

        length = len(text)
        for position, span in enumerate(self.iter_spans(text, filename=filename)):
            content = text[span.start : span.end]
            metadata = ChunkMetadata(
                position=position,
                start_pos=span.start,
                end_pos=span.end,
                original_size=len(content),
                page=page_for_offset(span.start, length, total_pages),
                document_type=document_type,
            )
            LOGGER.debug(
                "Chunk %s offsets %s-%s page %s",  # noqa: G004 - f-string not required
                position,
                span.start,
                span.end,
                metadata.page,
            )
            yield Chunk(
                document_id=document_id,
                filename=filename,
                content=content,
                metadata=metadata,
                keywords=self.keyword_extractor.extract(content),
            )


__all__ = ["BOUNDARY_CHARACTERS", "ChunkSpan", "ChunkingConfig", "TextChunker", "page_for_offset"]
