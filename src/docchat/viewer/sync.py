"""Keep the paginated text view and the native page view on one current page.

Programmatic moves (page buttons, page entry, citation activation, search hits)
raise ``suppress_feedback`` until the scroll they trigger has settled, so the
text view's visibility observer cannot turn that scroll into another page
change. All timers run through a :class:`~docchat.timers.TimerRegistry`.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from ..errors import ChunkStoreUnavailableError
from ..events import EventChannel, NavigationIntent
from ..models import Chunk, Document
from ..pages import EMPTY_LAYOUT, PageLayout, build_page_layout
from ..store.base import ChunkStore
from ..telemetry import emit_navigation_event
from ..timers import TimerRegistry

LOGGER = logging.getLogger(__name__)

SETTLE_DELAY = 0.35
SCROLL_DEBOUNCE = 0.1
EDGE_COOLDOWN = 0.8
HIGHLIGHT_DURATION = 2.0

NO_SOURCE_MESSAGE = "no source available"

_SETTLE_TIMER = "sync:settle"
_SCROLL_TIMER = "sync:scroll"
_FLASH_TIMER = "sync:flash"
_SEARCH_TIMER = "sync:search"


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class ViewMode(str, Enum):
    TEXT = "text"
    NATIVE = "native"


class ViewPort(Protocol):
    """Scrolling surface provided by the hosting view."""

    def scroll_to_page(self, page: int, mode: ViewMode) -> None:
        ...

    def scroll_to_chunk(self, chunk_id: str) -> None:
        ...

    def set_flash(self, chunk_id: Optional[str]) -> None:
        ...


class NullViewPort:
    def scroll_to_page(self, page: int, mode: ViewMode) -> None:
        return None

    def scroll_to_chunk(self, chunk_id: str) -> None:
        return None

    def set_flash(self, chunk_id: Optional[str]) -> None:
        return None


def find_first_match(chunks: Sequence[Chunk], query: str) -> Optional[Chunk]:
    """Return the first chunk in storage order containing *query*, ignoring case."""

    needle = query.strip().lower()
    if not needle:
        return None
    return next((chunk for chunk in chunks if needle in chunk.content.lower()), None)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ViewSynchronizer:
    def __init__(
        self,
        store: ChunkStore,
        timers: TimerRegistry,
        *,
        viewport: Optional[ViewPort] = None,
        settle_delay: float = SETTLE_DELAY,
        scroll_debounce: float = SCROLL_DEBOUNCE,
        edge_cooldown: float = EDGE_COOLDOWN,
        highlight_duration: float = HIGHLIGHT_DURATION,
    ) -> None:
        self.store = store
        self.timers = timers
        self.viewport: ViewPort = viewport or NullViewPort()
        self.settle_delay = settle_delay
        self.scroll_debounce = scroll_debounce
        self.edge_cooldown = edge_cooldown
        self.highlight_duration = highlight_duration

        self.state = SyncState.IDLE
        self.view_mode = ViewMode.TEXT
        self.current_page = 0
        self.document: Optional[Document] = None
        self.chunks: list[Chunk] = []
        self.layout: PageLayout = EMPTY_LAYOUT
        self.highlighted_chunk_id: Optional[str] = None
        self.flash_chunk_id: Optional[str] = None
        self.suppress_feedback = False
        self.error: Optional[str] = None

        self._generation = 0
        self._last_edge_at: Optional[float] = None
        self._pending_ratios: dict[str, float] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._tasks: set[Any] = set()

    # Document lifecycle ----------------------------------------------------------
    @property
    def document_id(self) -> Optional[str]:
        return self.document.id if self.document is not None else None

    @property
    def display_total(self) -> int:
        return self.layout.display_total

    async def select_document(self, document_id: str) -> bool:
        """Load *document_id*; returns False when the selection failed or was superseded."""

        self._generation += 1
        generation = self._generation
        last_good = self._last_good_view()
        self._reset_view()
        self.state = SyncState.LOADING
        LOGGER.debug("Loading document %s", document_id)

        try:
            document = await _resolve(self.store.get_document_by_id(document_id))
            chunks = list(await _resolve(self.store.get_chunks_by_document(document_id))) if document else []
        except ChunkStoreUnavailableError as error:
            if generation != self._generation:
                return False
            LOGGER.warning("Failed to load document %s: %s", document_id, error)
            if last_good is not None:
                self._restore_view(last_good, str(error))
            else:
                self._enter_empty_ready(str(error))
            return False

        if generation != self._generation:
            LOGGER.debug("Discarding stale load of document %s", document_id)
            return False
        if document is None:
            self._enter_empty_ready(NO_SOURCE_MESSAGE)
            return False

        self.document = document
        self.chunks = chunks
        self.layout = build_page_layout(chunks, document.total_pages)
        self.state = SyncState.READY
        self._navigate(1)
        return True

    def deselect(self) -> None:
        self._generation += 1
        self._reset_view()
        self.state = SyncState.IDLE
        self.current_page = 0

    def show_full_document(self) -> None:
        self.clear_highlight()

    def clear_highlight(self) -> None:
        self.highlighted_chunk_id = None
        self.timers.cancel(_SEARCH_TIMER)
        self._clear_flash()

    def _reset_view(self) -> None:
        self.timers.cancel_all()
        self.document = None
        self.chunks = []
        self.layout = EMPTY_LAYOUT
        self.highlighted_chunk_id = None
        self.flash_chunk_id = None
        self.suppress_feedback = False
        self.error = None
        self._pending_ratios = {}
        self._last_edge_at = None

    def _last_good_view(self) -> Optional[tuple[Document, list[Chunk], PageLayout, int]]:
        if self.state is not SyncState.READY or self.document is None:
            return None
        return self.document, self.chunks, self.layout, self.current_page

    def _restore_view(self, view: tuple[Document, list[Chunk], PageLayout, int], error: str) -> None:
        self.document, self.chunks, self.layout, self.current_page = view
        self.state = SyncState.READY
        self.error = error

    def _enter_empty_ready(self, error: str) -> None:
        self.state = SyncState.READY
        self.layout = EMPTY_LAYOUT
        self.current_page = 0
        self.error = error

    # Programmatic navigation -------------------------------------------------------
    def _begin_programmatic_scroll(self) -> None:
        """Ignore observed scrolling until the scroll about to be issued has settled."""

        self.suppress_feedback = True
        self.timers.cancel(_SCROLL_TIMER)
        self._pending_ratios = {}
        self.timers.schedule(_SETTLE_TIMER, self.settle_delay, self._settle)

    def _navigate(self, page: int) -> int:
        self._begin_programmatic_scroll()
        self.current_page = page
        self.viewport.scroll_to_page(page, self.view_mode)
        emit_navigation_event(
            "viewer.navigate",
            document_id=self.document_id,
            page=page,
            view_mode=self.view_mode.value,
        )
        return page

    def _settle(self) -> None:
        self.suppress_feedback = False

    def next_page(self) -> Optional[int]:
        if self.state is not SyncState.READY:
            return None
        target = self.layout.nearest_populated(self.current_page + 1, +1)
        return self._navigate(target) if target is not None else None

    def prev_page(self) -> Optional[int]:
        if self.state is not SyncState.READY or self.current_page <= 1:
            return None
        target = self.layout.nearest_populated(self.current_page - 1, -1)
        return self._navigate(target) if target is not None else None

    def go_to_page(self, page: int) -> Optional[int]:
        if self.state is not SyncState.READY or self.layout.is_empty:
            return None
        clamped = min(max(1, page), max(1, self.display_total))
        target = self.layout.nearest_populated(clamped, +1)
        if target is None:
            target = self.layout.nearest_populated(clamped, -1)
        return self._navigate(target) if target is not None else None

    def set_view_mode(self, mode: ViewMode | str) -> None:
        self.view_mode = ViewMode(mode)
        if self.state is SyncState.READY and self.current_page > 0:
            self._navigate(self.current_page)

    # Observed scrolling ------------------------------------------------------------
    def on_visibility(self, ratios: Mapping[str, float]) -> None:
        """Record chunk visibility ratios reported by the text view."""

        if self.state is not SyncState.READY or self.suppress_feedback:
            return
        self._pending_ratios = dict(ratios)
        self.timers.schedule(_SCROLL_TIMER, self.scroll_debounce, self._apply_visibility)

    def _apply_visibility(self) -> None:
        ratios, self._pending_ratios = self._pending_ratios, {}
        if self.suppress_feedback or not ratios:
            return
        chunk_id, ratio = max(ratios.items(), key=lambda item: item[1])
        if ratio <= 0:
            return
        page = self.layout.page_of(chunk_id)
        if page is not None and page != self.current_page:
            LOGGER.debug("Scroll moved current page %s -> %s", self.current_page, page)
            self.current_page = page

    def on_edge_wheel(self, direction: int) -> Optional[int]:
        """Handle a wheel gesture past the top (-1) or bottom (+1) edge of the text view."""

        if self.state is not SyncState.READY or direction == 0:
            return None
        now = self.timers.now()
        if self._last_edge_at is not None and now - self._last_edge_at < self.edge_cooldown:
            return None
        self._last_edge_at = now
        return self.next_page() if direction > 0 else self.prev_page()

    # Citations and search ----------------------------------------------------------
    async def activate_citation(self, intent: NavigationIntent) -> bool:
        if not intent.document_id or not intent.chunk_id:
            return False
        if self.state is not SyncState.READY or self.document_id != intent.document_id:
            if not await self.select_document(intent.document_id):
                return False

        layout_page = self.layout.page_of(intent.chunk_id)
        native = bool(intent.page and intent.page > 0)
        target = intent.page if native else layout_page
        if target is None:
            LOGGER.info("Chunk %s not found in document %s", intent.chunk_id, intent.document_id)
            return False

        self.view_mode = ViewMode.NATIVE if native else ViewMode.TEXT
        self._navigate(target)
        self.highlighted_chunk_id = intent.chunk_id
        self._flash(intent.chunk_id)
        self.viewport.scroll_to_chunk(intent.chunk_id)
        return True

    def search(self, query: str) -> Optional[Chunk]:
        if self.state is not SyncState.READY:
            return None
        hit = find_first_match(self.chunks, query)
        if hit is None:
            return None
        page = self.layout.page_of(hit.id)
        if page is not None:
            self._navigate(page)

        def _reveal() -> None:
            self._begin_programmatic_scroll()
            self.highlighted_chunk_id = hit.id
            self._flash(hit.id)
            self.viewport.scroll_to_chunk(hit.id)

        self.timers.schedule(_SEARCH_TIMER, self.settle_delay, _reveal)
        return hit

    def _flash(self, chunk_id: str) -> None:
        self.flash_chunk_id = chunk_id
        self.viewport.set_flash(chunk_id)
        self.timers.schedule(_FLASH_TIMER, self.highlight_duration, self._clear_flash)

    def _clear_flash(self) -> None:
        self.timers.cancel(_FLASH_TIMER)
        if self.flash_chunk_id is not None:
            self.flash_chunk_id = None
            self.viewport.set_flash(None)

    # Event channel -----------------------------------------------------------------
    def attach(self, channel: EventChannel) -> None:
        """Activate citations published on *channel*; requires a running event loop."""

        def _on_intent(intent: NavigationIntent) -> None:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self.activate_citation(intent))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        self.detach()
        self._unsubscribe = channel.subscribe(NavigationIntent, _on_intent)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "viewMode": self.view_mode.value,
            "documentId": self.document_id,
            "currentPage": self.current_page,
            "displayTotal": self.display_total,
            "highlightedChunkId": self.highlighted_chunk_id,
            "flashChunkId": self.flash_chunk_id,
            "suppressFeedback": self.suppress_feedback,
            "error": self.error,
        }


__all__ = [
    "EDGE_COOLDOWN",
    "HIGHLIGHT_DURATION",
    "NO_SOURCE_MESSAGE",
    "NullViewPort",
    "SCROLL_DEBOUNCE",
    "SETTLE_DELAY",
    "SyncState",
    "ViewMode",
    "ViewPort",
    "ViewSynchronizer",
    "find_first_match",
]
