from __future__ import annotations

"""Undo/redo history of applied patches.

This service is UI-agnostic and performs pure in-memory history tracking. It
does not apply patches itself: it stores, for every applied patch, the
operations to redo it and the revert operations to undo it, and hands them
back to the caller which re-applies them through the patch engine.

Design principles
-----------------
- No UI imports and no I/O (filesystem/console).
- History items are immutable once stored.
- Items are kept newest first; ``index`` points at the item the next undo
  will use. Items before ``index`` are the undone ones, available for redo.
- Pushing a new item drops every undone item (standard undo/redo behavior).
- Memory usage controlled by a max_history policy (trim oldest).
"""

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from eson_toolkit.core.models import PatchOperation, Selection

__all__ = ["HistoryItem", "HistoryService", "MAX_HISTORY_ITEMS"]

logger = logging.getLogger(__name__)

# maximum number of undo/redo items kept in memory
MAX_HISTORY_ITEMS = 1000


@dataclass(frozen=True)
class HistoryItem:
    """One applied patch and its revert.

    Attributes
    ----------
    redo :
        The operations which were applied.
    undo :
        The revert operations returned by the patch engine.
    selection_before, selection_after :
        Selection to restore after undo, respectively redo.
    """

    redo: List[PatchOperation] = field(default_factory=list)
    undo: List[PatchOperation] = field(default_factory=list)
    selection_before: Optional[Selection] = None
    selection_after: Optional[Selection] = None


class HistoryService:
    """Bounded undo/redo buffer of :class:`HistoryItem` objects.

    Parameters
    ----------
    max_history : int, default=MAX_HISTORY_ITEMS
        Maximum number of items to keep. Oldest entries are discarded when
        the capacity is exceeded. Must be >= 1; if passed lower, it will be
        coerced to 1.

    Examples
    --------
    >>> history = HistoryService(max_history=10)
    >>> _ = history.push(redo=[{"op": "remove", "path": "/a"}],
    ...                  undo=[{"op": "add", "path": "/a", "value": 1}])
    >>> history.can_undo(), history.can_redo()
    (True, False)
    >>> history.undo().undo
    [{'op': 'add', 'path': '/a', 'value': 1}]
    >>> history.can_undo(), history.can_redo()
    (False, True)
    """

    def __init__(self, max_history: int = MAX_HISTORY_ITEMS) -> None:
        self._max_history: int = max(1, int(max_history))
        self._items: List[HistoryItem] = []
        self._index: int = 0

    # --------------------------------------------------------------------- API

    @property
    def items(self) -> List[HistoryItem]:
        """Stored items, newest first (a copy)."""
        return list(self._items)

    @property
    def index(self) -> int:
        return self._index

    @property
    def max_history(self) -> int:
        return self._max_history

    def push(
        self,
        redo: List[PatchOperation],
        undo: List[PatchOperation],
        selection_before: Optional[Selection] = None,
        selection_after: Optional[Selection] = None,
    ) -> HistoryItem:
        """Store a newly applied patch.

        Undone items are dropped, the buffer is trimmed to ``max_history``
        and the pointer is reset so that the new item is undone first.
        """
        item = HistoryItem(
            redo=list(redo),
            undo=list(undo),
            selection_before=selection_before,
            selection_after=selection_after,
        )
        self._items = ([item] + self._items[self._index:])[: self._max_history]
        self._index = 0
        logger.debug("History push: %d item(s)", len(self._items))
        return item

    def can_undo(self) -> bool:
        """Return True if an undo operation is currently possible."""
        return self._index < len(self._items)

    def can_redo(self) -> bool:
        """Return True if a redo operation is currently possible."""
        return self._index > 0

    def undo(self) -> Optional[HistoryItem]:
        """Return the item to undo and move the pointer past it.

        Returns None when there is nothing to undo.
        """
        if not self.can_undo():
            return None
        item = self._items[self._index]
        self._index += 1
        return item

    def redo(self) -> Optional[HistoryItem]:
        """Move the pointer back and return the item to redo.

        Returns None when there is nothing to redo.
        """
        if not self.can_redo():
            return None
        self._index -= 1
        return self._items[self._index]

    def clear(self) -> None:
        """Clear the whole history."""
        self._items = []
        self._index = 0

    def __len__(self) -> int:
        return len(self._items)
