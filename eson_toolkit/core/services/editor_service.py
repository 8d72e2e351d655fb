from __future__ import annotations

"""Stateful editor facade over the pure document model.

This module provides a UI-agnostic, testable service holding one document
together with its annotated tree, search state, selection, schema errors and
undo/redo history. It is the contract a view layer talks to: every call
rebuilds the tree through the pure functions of :mod:`eson_toolkit.core`
and never mutates a previous tree in place.

Scope and guarantees:
- No UI imports and no disk I/O.
- Patches are applied to the JSON document and to the tree; a failing
  patch leaves the editor untouched and is reported in the returned
  :class:`EditResult`, never raised.
- Undo and redo re-apply the stored patches through the patch engine.

Examples
--------
Basic usage:

    editor = EditorService({"name": "John"})
    result = editor.patch([{"op": "replace", "path": "/name", "value": "Jane"}])
    if not result.success:
        print(result.error)
    editor.undo()
"""

from dataclasses import dataclass, field
import json as jsonlib
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from eson_toolkit.config import ConfigManager
from eson_toolkit.core import eson as eson_ops
from eson_toolkit.core.exceptions import PatchError, PathError
from eson_toolkit.core.ids import IdGenerator, create_id_generator
from eson_toolkit.core.immutability import exists_in, get_in
from eson_toolkit.core.json_pointer import parse_json_pointer
from eson_toolkit.core.models import EsonNode, PatchOperation, SearchResult, Selection
from eson_toolkit.core.patch import immutable_eson_patch, immutable_json_patch
from eson_toolkit.core.schema_errors import MAX_ERRORS, enrich_schema_error, limit_errors
from eson_toolkit.core.search import next_search_result, previous_search_result, search
from eson_toolkit.core.services.history_service import MAX_HISTORY_ITEMS, HistoryService

__all__ = ["EditResult", "EditorService"]

logger = logging.getLogger(__name__)

PathLike = Union[str, Sequence[Any]]
Validator = Callable[[Any], List[Dict[str, Any]]]


@dataclass(frozen=True)
class EditResult:
    """Result of :meth:`EditorService.patch`.

    Attributes
    ----------
    patch
        The operations which were requested.
    revert
        Operations undoing the patch; empty when it failed.
    error
        None on success, otherwise the error which cancelled the patch.
    json
        The document after the patch (unchanged on error).
    """

    patch: List[PatchOperation]
    revert: List[PatchOperation] = field(default_factory=list)
    error: Optional[PatchError] = None
    json: Any = None

    @property
    def success(self) -> bool:
        return self.error is None


def _to_path(path: PathLike) -> List[Any]:
    return parse_json_pointer(path) if isinstance(path, str) else list(path)


class EditorService:
    """Hold a JSON document and apply edits, search and selection to it.

    Parameters
    ----------
    json
        Initial document.
    history
        Record applied patches for undo/redo (default True).
    max_history
        History capacity; defaults to ``max_history_items`` of the editor
        configuration.
    id_generator
        Node id source; defaults to the generator named in the editor
        configuration.
    validator
        Optional callable returning schema errors
        (``[{"dataPath", "message", ...}]``) for a document. It is called
        after every change.
    """

    def __init__(
        self,
        json: Any = None,
        *,
        history: bool = True,
        max_history: Optional[int] = None,
        id_generator: Optional[IdGenerator] = None,
        validator: Optional[Validator] = None,
    ) -> None:
        config = ConfigManager().get_editor_config()

        if max_history is None:
            max_history = int(config.get("max_history_items", MAX_HISTORY_ITEMS))
        self._history_enabled = history
        self._history = HistoryService(max_history)
        self._id_generator = id_generator or create_id_generator(config.get("id_generator", "counter"))
        self._max_errors = int(config.get("max_errors", MAX_ERRORS))
        self._validator = validator

        self._json: Any = None
        self._tree: Optional[EsonNode] = None
        self._errors: List[Dict[str, Any]] = []
        self._search_result: Optional[SearchResult] = None
        self._selection: Optional[Selection] = None

        self.set(json)

    # -------------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------------

    @property
    def tree(self) -> Optional[EsonNode]:
        return self._tree

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    @property
    def search_result(self) -> Optional[SearchResult]:
        return self._search_result

    @property
    def errors(self) -> List[Union[Dict[str, Any], str]]:
        """Current schema errors, limited for display."""
        return limit_errors(self._errors, self._max_errors)

    @property
    def history(self) -> HistoryService:
        return self._history

    # -------------------------------------------------------------------------
    # Document
    # -------------------------------------------------------------------------

    def get(self) -> Any:
        """Return the current JSON document."""
        return self._json

    def set(self, json: Any) -> None:
        """Replace the document.

        The tree is resynchronized so that expanded state survives where the
        structure did not change; the history is cleared.
        """
        logger.info("Edit: set document (%s)", type(json).__name__)
        self._json = json
        self._selection = None
        self._errors = []
        self._history.clear()
        self._update(eson_ops.sync(json, self._tree, self._id_generator))

    def get_text(self, indent: Optional[int] = 2) -> str:
        """Return the document serialized as JSON text."""
        return jsonlib.dumps(self._json, indent=indent, ensure_ascii=False)

    def set_text(self, text: str) -> None:
        """Parse *text* and replace the document (raises ``ValueError`` on invalid JSON)."""
        self.set(jsonlib.loads(text))

    def patch(self, operations: List[PatchOperation],
              selection_after: Optional[Selection] = None) -> EditResult:
        """Apply a patch to the document and record it in the history."""
        if not isinstance(operations, list):
            raise TypeError("Array with patch actions expected")

        logger.info("Edit: patch %d operation(s)", len(operations))
        tree_result = immutable_eson_patch(self._tree, operations, self._id_generator)
        if tree_result.error is not None:
            logger.warning("Edit FAIL: patch %s", tree_result.error)
            return EditResult(list(operations), [], tree_result.error, self._json)

        json_result = immutable_json_patch(self._json, operations)
        if json_result.error is not None:
            logger.warning("Edit FAIL: patch %s", json_result.error)
            return EditResult(list(operations), [], json_result.error, self._json)

        if self._history_enabled:
            self._history.push(
                redo=operations,
                undo=tree_result.revert,
                selection_before=self._selection,
                selection_after=selection_after,
            )

        self._json = json_result.json
        self._selection = selection_after
        self._update(tree_result.data)
        return EditResult(list(operations), tree_result.revert, None, self._json)

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    def undo(self) -> bool:
        """Undo the latest patch; returns False when there is nothing to undo."""
        item = self._history.undo()
        if item is None:
            return False
        logger.info("Edit: undo %d operation(s)", len(item.undo))
        return self._replay(item.undo, item.selection_before)

    def redo(self) -> bool:
        """Redo the latest undone patch; returns False when there is nothing to redo."""
        item = self._history.redo()
        if item is None:
            return False
        logger.info("Edit: redo %d operation(s)", len(item.redo))
        return self._replay(item.redo, item.selection_after)

    def _replay(self, operations: List[PatchOperation], selection: Optional[Selection]) -> bool:
        # the fresh revert produced here is not needed: the history item has it
        tree_result = immutable_eson_patch(self._tree, operations, self._id_generator)
        json_result = immutable_json_patch(self._json, operations)
        error = tree_result.error or json_result.error
        if error is not None:
            logger.error("Edit FAIL: history replay %s", error)
            return False

        self._json = json_result.json
        self._selection = selection
        self._update(tree_result.data)
        return True

    # -------------------------------------------------------------------------
    # Expanded state
    # -------------------------------------------------------------------------

    def expand(self, path_or_predicate: Union[PathLike, Callable[[List[Any]], bool]]) -> None:
        """Expand the container at a path (and its ancestors), or every
        container for which the predicate returns True."""
        if callable(path_or_predicate):
            predicate = path_or_predicate
            self._tree = eson_ops.expand(self._tree, lambda path: True if predicate(path) else None)
        else:
            path = _to_path(path_or_predicate)
            if not self.exists(path):
                logger.debug("Expand skipped, path not found: %s", path)
                return
            self._tree = eson_ops.expand_path(self._tree, path, True)

    def collapse(self, path_or_predicate: Union[PathLike, Callable[[List[Any]], bool]]) -> None:
        """Collapse the container at a path, or every container for which the
        predicate returns True."""
        if callable(path_or_predicate):
            predicate = path_or_predicate
            self._tree = eson_ops.expand(self._tree, lambda path: False if predicate(path) else None)
        else:
            path = _to_path(path_or_predicate)
            if not self.exists(path):
                logger.debug("Collapse skipped, path not found: %s", path)
                return
            self._tree = eson_ops.expand_one(self._tree, path, False)

    def is_expanded(self, path: PathLike) -> bool:
        node = get_in(self._tree, _to_path(path))
        return isinstance(node, EsonNode) and node.expanded

    def exists(self, path: PathLike) -> bool:
        return self._tree is not None and exists_in(self._tree, _to_path(path))

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, text: str) -> SearchResult:
        """Search *text* and expand the tree up to the first match."""
        result = search(self._tree, text)
        self._set_search_result(result)
        logger.debug("Search %r: %d match(es)", text, len(result.matches))
        return self._search_result

    def next_result(self) -> Optional[SearchResult]:
        if self._search_result is None:
            return None
        self._set_search_result(next_search_result(self._tree, self._search_result))
        return self._search_result

    def previous_result(self) -> Optional[SearchResult]:
        if self._search_result is None:
            return None
        self._set_search_result(previous_search_result(self._tree, self._search_result))
        return self._search_result

    def _set_search_result(self, result: SearchResult) -> None:
        tree = result.tree
        if result.active is not None and tree is not None:
            tree = eson_ops.expand_path(tree, list(result.active.path[:-1]), True)
        self._tree = tree
        self._search_result = SearchResult(tree, result.text, result.matches, result.active)

    # -------------------------------------------------------------------------
    # Selection and errors
    # -------------------------------------------------------------------------

    def select(self, selection: Optional[Selection]) -> None:
        """Stamp *selection* onto the tree (None clears it)."""
        self._selection = selection
        self._tree = self._stamp_selection(self._tree)

    def set_errors(self, errors: List[Dict[str, Any]]) -> None:
        """Show externally computed schema errors."""
        self._tree = self._stamp_errors(self._tree, errors, diff=True)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _update(self, tree: Optional[EsonNode]) -> None:
        """Re-apply validation, search and selection to a rebuilt tree."""
        if tree is not None:
            errors = self._validator(self._json) if self._validator is not None else self._errors
            tree = self._stamp_errors(tree, errors)

        if self._search_result is not None and self._search_result.text:
            result = search(tree, self._search_result.text)
            self._search_result = result
            tree = result.tree

        self._tree = self._stamp_selection(tree)

    def _stamp_errors(self, tree: Optional[EsonNode], errors: List[Dict[str, Any]],
                      diff: bool = False) -> Optional[EsonNode]:
        enriched = [enrich_schema_error(error) for error in errors]
        previous = self._errors
        self._errors = enriched
        if tree is None:
            return None
        # diffing is only valid while the tree layout matches the previous stamping
        return eson_ops.apply_errors(tree, enriched, previous_errors=previous if diff else None)

    def _stamp_selection(self, tree: Optional[EsonNode]) -> Optional[EsonNode]:
        if tree is None:
            return None
        try:
            return eson_ops.apply_selection(tree, self._selection)
        except (PathError, ValueError, IndexError) as exc:
            logger.warning("Dropping invalid selection %s: %s", self._selection, exc)
            self._selection = None
            return eson_ops.apply_selection(tree, None)
