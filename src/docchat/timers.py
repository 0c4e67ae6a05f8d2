"""Keyed one-shot timers on top of an event-loop style scheduler."""
from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Protocol

LOGGER = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Anything exposing ``call_later`` and ``time`` (an asyncio loop qualifies)."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...

    def time(self) -> float:
        ...


class TimerRegistry:
    """Map of key to pending timer; scheduling a key replaces its previous timer."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handles: dict[Hashable, TimerHandle] = {}

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def schedule(self, key: Hashable, delay: float, callback: Callable[[], Any]) -> None:
        self.cancel(key)

        def _fire() -> None:
            # Drop the entry before running so the callback may reschedule the same key.
            if self._handles.get(key) is handle:
                del self._handles[key]
            callback()

        handle = self._scheduler.call_later(max(0.0, delay), _fire)
        self._handles[key] = handle

    def cancel(self, key: Hashable) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        LOGGER.debug("Cancelled timer %s", key)
        return True

    def cancel_all(self) -> None:
        for key in list(self._handles):
            self.cancel(key)

    def pending(self, key: Hashable) -> bool:
        return key in self._handles

    def now(self) -> float:
        return self._scheduler.time()

    def __len__(self) -> int:
        return len(self._handles)


__all__ = ["Scheduler", "TimerHandle", "TimerRegistry"]
