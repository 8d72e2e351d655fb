from __future__ import annotations

"""Immutable JSON patch engine.

Two variants share one driver:

- :func:`immutable_json_patch` patches a plain JSON value,
- :func:`immutable_eson_patch` patches an annotated tree; inserted values are
  converted into nodes, node ids are kept or minted following the tree's
  identity rules and reverts carry the ``meta`` needed to restore kind,
  property order and expanded state.

Both apply operations strictly in order and build a revert patch which
undoes the whole batch. A batch is all-or-nothing: on the first failure the
original input is returned together with an empty revert and the error.
Nothing is raised for document-level problems.

Examples
--------
>>> result = immutable_json_patch({"arr": [1, 2, 3]}, [{"op": "add", "path": "/arr/-", "value": 4}])
>>> result.json, result.revert
({'arr': [1, 2, 3, 4]}, [{'op': 'remove', 'path': '/arr/3'}])
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from eson_toolkit.core.eson import (
    apply_tree_state,
    eson_to_json,
    find_next_prop,
    get_tree_state,
    json_to_eson,
    resolve_path_index,
)
from eson_toolkit.core.exceptions import (
    MissingFromFieldError,
    PatchError,
    PathError,
    PathNotFoundError,
    TestFailedError,
    TestFailureReason,
    UnknownPatchOpError,
)
from eson_toolkit.core.ids import IdGenerator, default_id_generator
from eson_toolkit.core.immutability import (
    container_kind,
    delete_in,
    get_in,
    insert_at,
    set_in,
    update_in,
)
from eson_toolkit.core.json_pointer import compile_json_pointer, parse_json_pointer
from eson_toolkit.core.models import PATCH_OPS, EsonNode, PatchOperation, PatchResult
from eson_toolkit.core.utils import MISSING, json_equal, to_index

__all__ = [
    "JsonPatchApplier",
    "EsonPatchApplier",
    "immutable_json_patch",
    "immutable_eson_patch",
]

logger = logging.getLogger(__name__)

Revert = List[PatchOperation]


def _insert_property(parent: Any, name: str, value: Any, before: Optional[str]) -> Any:
    """Add a new property to *parent*, placed before *before* if it exists."""
    if isinstance(parent, EsonNode):
        return parent.with_prop_before(name, value, before)

    updated: Dict[str, Any] = {}
    inserted = False
    for key, child in parent.items():
        if key == before and not inserted:
            updated[name] = value
            inserted = True
        updated[key] = child
    if not inserted:
        updated[name] = value
    return updated


class JsonPatchApplier:
    """Apply patch operations to a plain JSON value.

    Subclasses override the conversion hooks (``_from_json``, ``_to_json``,
    ``_revert_meta`` ...) to patch other document representations.
    """

    label = "JSONPatch"

    def apply(self, document: Any, operations: Iterable[Mapping[str, Any]]) -> PatchResult:
        """Apply *operations* to *document* and return a :class:`PatchResult`."""
        updated = document
        revert: Revert = []
        count = 0

        for operation in operations:
            try:
                updated, operation_revert = self._apply_operation(updated, operation)
            except PatchError as exc:
                if exc.operation is None and isinstance(operation, Mapping):
                    exc.operation = dict(operation)
                return self._abort(document, exc)
            except PathError as exc:
                return self._abort(document, PathNotFoundError(str(exc), dict(operation)))
            revert = operation_revert + revert
            count += 1

        logger.debug("%s applied: %d operation(s), %d revert operation(s)",
                     self.label, count, len(revert))
        return PatchResult(updated, revert, None)

    def _abort(self, document: Any, error: PatchError) -> PatchResult:
        logger.warning("%s cancelled: %s (operation=%s)", self.label, error, error.operation)
        return PatchResult(document, [], error)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _apply_operation(self, document: Any, operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        if not isinstance(operation, Mapping):
            raise UnknownPatchOpError(f"{self.label} operation must be an object, got {operation!r}")

        op = operation.get("op")
        if op not in PATCH_OPS:
            raise UnknownPatchOpError(f"Unknown {self.label} op {op!r}", dict(operation))
        if "path" not in operation:
            raise PathNotFoundError(f'Property "path" expected in {op} operation', dict(operation))
        if op in ("copy", "move") and not operation.get("from"):
            raise MissingFromFieldError(
                f'Property "from" expected in {op} operation {operation!r}', dict(operation)
            )

        path = parse_json_pointer(operation["path"])
        handler: Callable[[Any, List[Any], Mapping[str, Any]], Tuple[Any, Revert]] = getattr(self, "_op_" + op)
        return handler(document, path, operation)

    def _op_add(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        if "value" not in operation:
            raise PatchError('Property "value" expected in add operation', dict(operation))
        meta = operation.get("meta")
        value = self._from_json(operation["value"], meta)
        return self._insert(document, path, value, meta, keep_identity=True)

    def _op_remove(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        updated, _old, revert = self._take(document, path, operation)
        return updated, revert

    def _op_replace(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        if "value" not in operation:
            raise PatchError('Property "value" expected in replace operation', dict(operation))
        old = self._lookup(document, path, operation)
        value = self._keep_identity(self._from_json(operation["value"], operation.get("meta")), old)
        revert: PatchOperation = {
            "op": "replace",
            "path": compile_json_pointer(path),
            "value": self._to_json(old),
        }
        meta = self._revert_meta(old)
        if meta:
            revert["meta"] = meta
        return set_in(document, path, value), [revert]

    def _op_copy(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        from_path = parse_json_pointer(operation["from"])
        value = self._copy_value(self._lookup(document, from_path, operation))
        return self._insert(document, path, value, operation.get("meta"), keep_identity=True)

    def _op_move(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        from_path = parse_json_pointer(operation["from"])
        source_parent = self._lookup(document, from_path[:-1], operation)
        from_pointer = compile_json_pointer(from_path)

        removed, value, _ = self._take(document, from_path, operation)
        updated, add_revert = self._insert(removed, path, value, operation.get("meta"), keep_identity=False)
        resolved_pointer = add_revert[0]["path"]
        resolved_path = parse_json_pointer(resolved_pointer)
        collision = add_revert[0]["op"] == "replace"

        # an overwritten sibling is restored only after the reverse move
        skip = resolved_path[-1] if collision and resolved_path[:-1] == from_path[:-1] else None
        reverse_move: PatchOperation = {"op": "move", "from": resolved_pointer, "path": from_pointer}
        move_meta = self._move_meta(source_parent, from_path[-1], skip)
        if move_meta:
            reverse_move["meta"] = move_meta

        if collision:
            restore: PatchOperation = {
                "op": "add",
                "path": resolved_pointer,
                "value": add_revert[0]["value"],
            }
            restore_meta = self._collision_meta(document, resolved_path, add_revert[0])
            if restore_meta:
                restore["meta"] = restore_meta
            return updated, [reverse_move, restore]

        return updated, [reverse_move]

    def _op_test(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Tuple[Any, Revert]:
        if "value" not in operation:
            raise TestFailedError(TestFailureReason.NO_VALUE_PROVIDED, dict(operation))
        actual = get_in(document, path, MISSING)
        if actual is MISSING:
            raise TestFailedError(TestFailureReason.PATH_NOT_FOUND, dict(operation))
        if not json_equal(self._to_json(actual), operation["value"]):
            raise TestFailedError(TestFailureReason.VALUE_MISMATCH, dict(operation))
        return document, []

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------
    def _lookup(self, document: Any, path: List[Any], operation: Mapping[str, Any]) -> Any:
        value = get_in(document, path, MISSING)
        if value is MISSING:
            raise PathNotFoundError(
                f"Path not found: {compile_json_pointer(path)!r}", dict(operation)
            )
        return value

    def _take(self, document: Any, path: List[Any],
              operation: Mapping[str, Any]) -> Tuple[Any, Any, Revert]:
        """Remove the value at *path*; return the new document, the value and the revert."""
        if not path:
            raise PathNotFoundError("Cannot remove the document root", dict(operation))
        parent = self._lookup(document, path[:-1], operation)
        old = self._lookup(document, path, operation)

        revert: PatchOperation = {
            "op": "add",
            "path": compile_json_pointer(path),
            "value": self._to_json(old),
        }
        meta = self._remove_meta(old, parent, path[-1])
        if meta:
            revert["meta"] = meta
        return delete_in(document, path), old, [revert]

    def _insert(self, document: Any, path: List[Any], value: Any,
                meta: Optional[Mapping[str, Any]], keep_identity: bool) -> Tuple[Any, Revert]:
        """Insert *value* at *path* (array insertion, new or existing property)."""
        if not path:
            raise PathNotFoundError("Cannot add at the document root")

        path = resolve_path_index(document, path)
        parent_path, key = path[:-1], path[-1]
        parent = get_in(document, parent_path, MISSING)
        kind = container_kind(parent)

        if kind == "array":
            index = to_index(key)
            length = len(parent.items) if isinstance(parent, EsonNode) else len(parent)
            if index is None or index > length:
                raise PathNotFoundError(f"Invalid array index in {compile_json_pointer(path)!r}")
            pointer = compile_json_pointer(parent_path + [index])
            return insert_at(document, parent_path + [index], value), [{"op": "remove", "path": pointer}]

        if kind == "object":
            name = str(key)
            pointer = compile_json_pointer(parent_path + [name])
            old = parent.get_child(name) if isinstance(parent, EsonNode) else parent.get(name, MISSING)
            if old is not MISSING:
                if keep_identity:
                    value = self._keep_identity(value, old)
                revert: PatchOperation = {"op": "replace", "path": pointer, "value": self._to_json(old)}
                revert_meta = self._revert_meta(old)
                if revert_meta:
                    revert["meta"] = revert_meta
                return set_in(document, parent_path + [name], value), [revert]

            before = meta.get("before") if meta else None
            updated = update_in(
                document, parent_path,
                lambda p: _insert_property(p, name, value, before if isinstance(before, str) else None),
            )
            return updated, [{"op": "remove", "path": pointer}]

        raise PathNotFoundError(f"Parent not found for {compile_json_pointer(path)!r}")

    # ------------------------------------------------------------------
    # Representation hooks
    # ------------------------------------------------------------------
    def _from_json(self, value: Any, meta: Optional[Mapping[str, Any]]) -> Any:
        return value

    def _to_json(self, value: Any) -> Any:
        return value

    def _copy_value(self, value: Any) -> Any:
        return value

    def _keep_identity(self, value: Any, old: Any) -> Any:
        return value

    def _revert_meta(self, old: Any) -> Optional[Dict[str, Any]]:
        return None

    def _remove_meta(self, old: Any, parent: Any, key: Any) -> Optional[Dict[str, Any]]:
        return None

    def _move_meta(self, source_parent: Any, key: Any, skip: Optional[str]) -> Optional[Dict[str, Any]]:
        return None

    def _collision_meta(self, document: Any, path: List[Any],
                        replace_revert: PatchOperation) -> Optional[Dict[str, Any]]:
        return None


class EsonPatchApplier(JsonPatchApplier):
    """Apply patch operations to an annotated tree.

    Parameters
    ----------
    id_generator
        Source of ids for inserted and copied nodes.
    expand
        Optional expand callback applied to inserted values (paths relative
        to the inserted value).
    """

    label = "ESONPatch"

    def __init__(self, id_generator: Optional[IdGenerator] = None,
                 expand: Optional[Callable[[List[Any]], Optional[bool]]] = None) -> None:
        self._id_generator = id_generator or default_id_generator
        self._expand = expand

    def _from_json(self, value: Any, meta: Optional[Mapping[str, Any]]) -> EsonNode:
        node = json_to_eson(value, self._id_generator, self._expand)
        if meta and meta.get("state"):
            node = apply_tree_state(node, meta["state"])
        return node

    def _to_json(self, value: Any) -> Any:
        return eson_to_json(value)

    def _copy_value(self, value: EsonNode) -> EsonNode:
        # fresh id for the copied root only, descendants keep theirs
        return value.evolve(id=self._id_generator())

    def _keep_identity(self, value: EsonNode, old: EsonNode) -> EsonNode:
        return value if value.id == old.id else value.evolve(id=old.id)

    def _revert_meta(self, old: EsonNode) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"kind": old.kind}
        state = get_tree_state(old)
        if state:
            meta["state"] = state
        return meta

    def _remove_meta(self, old: EsonNode, parent: EsonNode, key: Any) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"kind": old.kind}
        if parent.kind == "object":
            meta["before"] = find_next_prop(parent, str(key))
        state = get_tree_state(old)
        if state:
            meta["state"] = state
        return meta

    def _move_meta(self, source_parent: EsonNode, key: Any, skip: Optional[str]) -> Optional[Dict[str, Any]]:
        if source_parent.kind != "object":
            return None
        before = find_next_prop(source_parent, str(key))
        if before is not None and before == skip:
            before = find_next_prop(source_parent, before)
        return {"before": before} if before is not None else None

    def _collision_meta(self, document: EsonNode, path: List[Any],
                        replace_revert: PatchOperation) -> Dict[str, Any]:
        parent = get_in(document, path[:-1])
        meta: Dict[str, Any] = {
            "kind": replace_revert["meta"]["kind"],
            "before": find_next_prop(parent, str(path[-1])),
        }
        if "state" in replace_revert["meta"]:
            meta["state"] = replace_revert["meta"]["state"]
        return meta


def immutable_json_patch(json: Any, operations: Iterable[Mapping[str, Any]]) -> PatchResult:
    """Apply a patch to a plain JSON value."""
    return JsonPatchApplier().apply(json, operations)


def immutable_eson_patch(tree: EsonNode, operations: Iterable[Mapping[str, Any]],
                         id_generator: Optional[IdGenerator] = None,
                         expand: Optional[Callable[[List[Any]], Optional[bool]]] = None) -> PatchResult:
    """Apply a patch to an annotated tree, keeping node identity stable."""
    return EsonPatchApplier(id_generator, expand).apply(tree, operations)
