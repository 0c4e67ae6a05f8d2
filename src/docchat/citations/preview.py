"""Hover previews for citation markers with debounced show and hide."""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..events import EventChannel, PreviewHide, PreviewShow
from ..timers import TimerRegistry
from .fields import content_of, keywords_of, title_of
from .markers import CitationMarker

LOGGER = logging.getLogger(__name__)

SHOW_DELAY = 0.15
HIDE_DELAY = 0.3
EXCERPT_LIMIT = 2000
ELLIPSIS = "…"

_SHOW_TIMER = "preview:show"
_HIDE_TIMER = "preview:hide"


@dataclass(frozen=True)
class PreviewContent:
    title: str
    html_content: str


def truncate_excerpt(content: str, limit: int = EXCERPT_LIMIT) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + ELLIPSIS


def highlight_keywords(text: str, keywords: Iterable[str]) -> str:
    """Escape *text* for HTML, wrapping case-insensitive keyword matches in ``<mark>``."""

    terms = sorted({keyword for keyword in keywords if keyword and keyword.strip()}, key=len, reverse=True)
    if not terms:
        return html.escape(text)
    pattern = re.compile("(" + "|".join(re.escape(term) for term in terms) + ")", re.IGNORECASE)
    pieces = pattern.split(text)
    # re.split with one capture group alternates plain text and matches.
    return "".join(
        f"<mark>{html.escape(piece)}</mark>" if index % 2 else html.escape(piece)
        for index, piece in enumerate(pieces)
    )


def build_preview(reference: Any, *, limit: int = EXCERPT_LIMIT) -> PreviewContent:
    title = html.escape(title_of(reference) or "Source")
    excerpt = truncate_excerpt(content_of(reference), limit)
    return PreviewContent(title=title, html_content=highlight_keywords(excerpt, keywords_of(reference)))


class PreviewController:
    """Single-owner preview state: at most one panel is pending or visible at a time."""

    def __init__(
        self,
        channel: EventChannel,
        timers: TimerRegistry,
        *,
        pointer_device: bool = True,
        show_delay: float = SHOW_DELAY,
        hide_delay: float = HIDE_DELAY,
    ) -> None:
        self.channel = channel
        self.timers = timers
        self.pointer_device = pointer_device
        self.show_delay = show_delay
        self.hide_delay = hide_delay
        self.visible_key: Optional[str] = None
        self.pending_key: Optional[str] = None

    def marker_enter(self, marker: CitationMarker, anchor: Optional[tuple[float, float]] = None) -> None:
        if not self.pointer_device:
            return
        self.timers.cancel(_HIDE_TIMER)
        if self.visible_key == marker.key:
            return
        self.pending_key = marker.key
        self.timers.schedule(_SHOW_TIMER, self.show_delay, lambda: self._show(marker, anchor))

    def marker_leave(self, marker: CitationMarker) -> None:
        if not self.pointer_device:
            return
        if self.pending_key == marker.key:
            self.timers.cancel(_SHOW_TIMER)
            self.pending_key = None
        if self.visible_key == marker.key:
            self._schedule_hide(marker.key)

    def panel_enter(self) -> None:
        self.timers.cancel(_HIDE_TIMER)

    def panel_leave(self) -> None:
        if self.visible_key is not None:
            self._schedule_hide(self.visible_key)

    def hide_now(self) -> None:
        self.timers.cancel(_SHOW_TIMER)
        self.timers.cancel(_HIDE_TIMER)
        self.pending_key = None
        if self.visible_key is not None:
            key, self.visible_key = self.visible_key, None
            self.channel.publish(PreviewHide(key=key))

    def is_visible(self, key: str) -> bool:
        return self.visible_key == key

    def _show(self, marker: CitationMarker, anchor: Optional[tuple[float, float]]) -> None:
        self.pending_key = None
        if self.visible_key is not None and self.visible_key != marker.key:
            self.channel.publish(PreviewHide(key=self.visible_key))
        content = build_preview(marker.reference)
        self.visible_key = marker.key
        self.channel.publish(
            PreviewShow(key=marker.key, title=content.title, html_content=content.html_content, anchor=anchor)
        )
        LOGGER.debug("Preview shown for %s", marker.key)

    def _schedule_hide(self, key: str) -> None:
        def _hide() -> None:
            if self.visible_key == key:
                self.visible_key = None
                self.channel.publish(PreviewHide(key=key))

        self.timers.schedule(_HIDE_TIMER, self.hide_delay, _hide)


__all__ = [
    "EXCERPT_LIMIT",
    "HIDE_DELAY",
    "PreviewContent",
    "PreviewController",
    "SHOW_DELAY",
    "build_preview",
    "highlight_keywords",
    "truncate_excerpt",
]
