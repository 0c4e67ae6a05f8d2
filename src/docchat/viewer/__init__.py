"""Document viewer synchronisation."""
from __future__ import annotations

from .sync import SyncState, ViewMode, ViewPort, ViewSynchronizer, find_first_match

__all__ = ["SyncState", "ViewMode", "ViewPort", "ViewSynchronizer", "find_first_match"]
