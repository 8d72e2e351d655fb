from __future__ import annotations

"""Stateful services built on the pure document model.

The editor service holds a document and its tree; the history service keeps
the undo/redo buffer the editor replays through the patch engine.
"""

from .history_service import HistoryItem, HistoryService, MAX_HISTORY_ITEMS  # noqa: F401
from .editor_service import EditorService, EditResult  # noqa: F401

__all__: list[str] = [
    "HistoryItem",
    "HistoryService",
    "MAX_HISTORY_ITEMS",
    "EditorService",
    "EditResult",
]
