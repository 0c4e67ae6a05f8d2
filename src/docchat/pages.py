"""Group a document's chunks into pages, estimating page numbers when absent.

The layout is a pure function of the chunk sequence (in storage order) and the
document's authoritative page count. When no chunk carries a page number the
chunks are spread evenly across ``total_pages``; without a page count a fixed
number of chunks per page is assumed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from .models import Chunk

LOGGER = logging.getLogger(__name__)

CHUNKS_PER_PAGE = 3


def estimate_page(index: int, chunk_count: int, total_pages: int) -> int:
    """Return the estimated 1-based page for the chunk at *index*.

    With a page count the chunks are split into contiguous runs whose sizes
    differ by at most one, longer runs first, so a page never loses chunks
    when the document gains some.
    """

    if total_pages > 0 and chunk_count > 0:
        index = min(max(index, 0), chunk_count - 1)
        base, extra = divmod(chunk_count, total_pages)
        wide = extra * (base + 1)
        if index < wide:
            return index // (base + 1) + 1
        return extra + (index - wide) // base + 1
    return index // CHUNKS_PER_PAGE + 1


def is_unpaginated(chunks: Sequence[Chunk]) -> bool:
    return all(not chunk.page for chunk in chunks)


@dataclass(frozen=True)
class PageLayout:
    """Ordered page number to chunks mapping for one document."""

    buckets: Mapping[int, tuple[Chunk, ...]]
    total_pages: int = 0
    estimated: bool = False
    _page_by_chunk: Mapping[str, int] = field(default_factory=dict, repr=False)

    @property
    def pages(self) -> list[int]:
        return list(self.buckets)

    @property
    def max_page(self) -> int:
        return max(self.buckets, default=0)

    @property
    def display_total(self) -> int:
        return self.total_pages if self.total_pages > 0 else self.max_page

    @property
    def first_page(self) -> Optional[int]:
        return min(self.buckets, default=None)

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    def page_of(self, chunk_id: str) -> Optional[int]:
        return self._page_by_chunk.get(chunk_id)

    def chunks_on(self, page: int) -> tuple[Chunk, ...]:
        return self.buckets.get(page, ())

    def has_page(self, page: int) -> bool:
        return bool(self.buckets.get(page))

    def nearest_populated(self, page: int, direction: int) -> Optional[int]:
        """Return *page* if it owns chunks, else the closest populated page toward *direction*."""

        if direction == 0:
            raise ValueError("direction must be +1 or -1")
        if direction > 0:
            candidates = [candidate for candidate in self.buckets if candidate >= page]
            return min(candidates, default=None)
        candidates = [candidate for candidate in self.buckets if candidate <= page]
        return max(candidates, default=None)

    def to_record(self) -> dict[str, object]:
        return {
            "pages": [
                {"page": page, "chunkIds": [chunk.id for chunk in chunks]}
                for page, chunks in self.buckets.items()
            ],
            "displayTotal": self.display_total,
            "maxPage": self.max_page,
            "estimated": self.estimated,
        }


EMPTY_LAYOUT = PageLayout(buckets={})


def _assign_pages(chunks: Sequence[Chunk], total_pages: int) -> tuple[list[int], bool]:
    count = len(chunks)
    if is_unpaginated(chunks):
        return [estimate_page(index, count, total_pages) for index in range(count)], True

    # Mixed metadata: an unpaged chunk inherits the page of the chunk before it.
    first_known = next(chunk.page for chunk in chunks if chunk.page)
    assigned: list[int] = []
    previous = first_known
    for chunk in chunks:
        page = chunk.page or previous
        assigned.append(page)
        previous = page
    return assigned, False


def build_page_layout(chunks: Sequence[Chunk], total_pages: int = 0) -> PageLayout:
    """Build the page layout for *chunks* given the document's page count."""

    total_pages = max(0, int(total_pages or 0))
    if not chunks:
        return PageLayout(buckets={}, total_pages=total_pages)

    pages, estimated = _assign_pages(chunks, total_pages)
    grouped: dict[int, list[Chunk]] = {}
    page_by_chunk: dict[str, int] = {}
    for chunk, page in zip(chunks, pages):
        grouped.setdefault(page, []).append(chunk)
        if chunk.id:
            page_by_chunk[chunk.id] = page

    buckets = {page: tuple(grouped[page]) for page in sorted(grouped)}
    if estimated:
        LOGGER.debug("Estimated %s pages for %s unpaginated chunks", len(buckets), len(chunks))
    return PageLayout(
        buckets=buckets,
        total_pages=total_pages,
        estimated=estimated,
        _page_by_chunk=page_by_chunk,
    )


__all__ = [
    "CHUNKS_PER_PAGE",
    "EMPTY_LAYOUT",
    "PageLayout",
    "build_page_layout",
    "estimate_page",
    "is_unpaginated",
]
