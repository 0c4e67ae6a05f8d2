"""In-process publish/subscribe channel for navigation and preview events."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NavigationIntent:
    """Request to show a chunk, emitted when a citation marker is activated."""

    document_id: str
    chunk_id: str
    title: str = ""
    page: Optional[int] = None


@dataclass(frozen=True, slots=True)
class PreviewShow:
    key: str
    title: str
    html_content: str
    anchor: Optional[tuple[float, float]] = None


@dataclass(frozen=True, slots=True)
class PreviewHide:
    key: str


Handler = Callable[[Any], None]


class EventChannel:
    """Routes published events to the handlers subscribed to their type."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> Callable[[], None]:
        """Register *handler* and return a callable that unsubscribes it."""

        self._handlers[event_type].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: Any) -> int:
        """Deliver *event* to its subscribers; returns the number of handlers run."""

        delivered = 0
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                LOGGER.exception("Event handler failed for %s", type(event).__name__)
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, ()))


__all__ = ["EventChannel", "NavigationIntent", "PreviewHide", "PreviewShow"]
