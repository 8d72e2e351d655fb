from __future__ import annotations

"""Functions acting on the annotated tree (ESON).

All functions are pure: they never mutate the tree they receive and return
the very same node objects for every subtree they leave untouched.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from eson_toolkit.core.exceptions import PathError
from eson_toolkit.core.ids import IdGenerator, default_id_generator
from eson_toolkit.core.immutability import exists_in, get_in, transform, update_in
from eson_toolkit.core.json_pointer import compile_json_pointer, parse_json_pointer
from eson_toolkit.core.models import EsonNode, Selection, SelectionFlag
from eson_toolkit.core.selection import (
    find_root_path,
    find_selection_indices,
    normalize_path,
)
from eson_toolkit.core.utils import MISSING, json_kind

__all__ = [
    "sync",
    "json_to_eson",
    "eson_to_json",
    "expand",
    "expand_all",
    "expand_one",
    "expand_path",
    "apply_errors",
    "cleanup_meta_data",
    "apply_selection",
    "traverse",
    "get_tree_state",
    "apply_tree_state",
    "find_next_prop",
    "resolve_path_index",
]

logger = logging.getLogger(__name__)

ExpandCallback = Callable[[List[Any]], Optional[bool]]

# Metadata fields which can be cleared, with their cleared value
_META_FIELDS: Dict[str, Any] = {
    "error": None,
    "search_property": None,
    "search_value": None,
    "selection": SelectionFlag.NONE,
}


# ---------------------------------------------------------------------------
# Synchronization
# ---------------------------------------------------------------------------

def sync(json: Any, previous: Optional[EsonNode] = None,
         id_generator: Optional[IdGenerator] = None) -> Optional[EsonNode]:
    """Build the tree for *json*, reusing *previous* wherever possible.

    Containers keep the id and expanded state of the previous node at the
    same position as long as their kind does not change; leaves keep their
    id while they stay values. Subtrees where nothing changed are returned
    as the exact same objects.

    Parameters
    ----------
    json
        The new JSON value. ``MISSING`` synchronizes to None.
    previous
        The tree previously displayed for this position, if any.
    id_generator
        Source of fresh node ids; defaults to the shared counter.
    """
    return _sync(json, previous, id_generator or default_id_generator)


def _sync(json: Any, previous: Optional[EsonNode], new_id: IdGenerator) -> Optional[EsonNode]:
    kind = json_kind(json)
    if kind is None:
        return None

    prev_kind = previous.kind if previous is not None else None
    same_kind = kind == prev_kind

    if kind == "array":
        prev_items = previous.items if same_kind else ()
        changed = not same_kind or len(json) != len(prev_items)
        items = []
        for index, value in enumerate(json):
            prev_child = prev_items[index] if index < len(prev_items) else None
            child = _sync(value, prev_child, new_id)
            changed = changed or child is not prev_child
            items.append(child)

        if not changed:
            return previous
        return EsonNode(
            id=previous.id if same_kind else new_id(),
            kind="array",
            items=tuple(items),
            expanded=previous.expanded if same_kind else False,
        )

    if kind == "object":
        prev_props = previous.props if same_kind else {}
        changed = not same_kind or list(json) != list(prev_props)
        props: Dict[str, EsonNode] = {}
        for name, value in json.items():
            prev_child = prev_props.get(name)
            child = _sync(value, prev_child, new_id)
            changed = changed or child is not prev_child
            props[name] = child

        if not changed:
            return previous
        return EsonNode(
            id=previous.id if same_kind else new_id(),
            kind="object",
            props=props,
            expanded=previous.expanded if same_kind else False,
        )

    if same_kind and type(previous.value) is type(json) and previous.value == json:
        return previous
    return EsonNode(id=previous.id if same_kind else new_id(), kind="value", value=json)


def json_to_eson(json: Any, id_generator: Optional[IdGenerator] = None,
                 expand: Optional[ExpandCallback] = None) -> Optional[EsonNode]:
    """Convert *json* into a fresh tree, optionally expanding nodes."""
    tree = sync(json, None, id_generator)
    if expand is not None and tree is not None:
        tree = _expand(tree, expand)
    return tree


def eson_to_json(node: Optional[EsonNode]) -> Any:
    """Convert a tree back into plain JSON (``MISSING`` for None)."""
    if node is None:
        return MISSING
    if node.kind == "array":
        return [eson_to_json(item) for item in node.items]
    if node.kind == "object":
        return {name: eson_to_json(child) for name, child in node.props.items()}
    return node.value


# ---------------------------------------------------------------------------
# Expanded state
# ---------------------------------------------------------------------------

def expand_all(path: Sequence[Any]) -> bool:
    """Expand callback expanding every node."""
    return True


def expand(tree: EsonNode, callback: ExpandCallback) -> EsonNode:
    """Expand or collapse every container for which *callback* decides.

    ``callback(path)`` returns True to expand, False to collapse, or None to
    leave the node as it is.
    """
    return _expand(tree, callback)


def _expand(tree: EsonNode, callback: ExpandCallback) -> EsonNode:
    def _apply(node: EsonNode, path: List[Any]) -> EsonNode:
        if not node.is_container:
            return node
        expanded = callback(path)
        if expanded is None or bool(expanded) == node.expanded:
            return node
        return node.evolve(expanded=bool(expanded))

    return transform(tree, _apply)


def _set_expanded(node: Any, expanded: bool) -> Any:
    if not isinstance(node, EsonNode) or not node.is_container or node.expanded == expanded:
        return node
    return node.evolve(expanded=expanded)


def expand_one(tree: EsonNode, path: Sequence[Any], expanded: bool = True) -> EsonNode:
    """Expand or collapse the single container at *path*."""
    return update_in(tree, path, lambda node: _set_expanded(node, expanded))


def expand_path(tree: EsonNode, path: Sequence[Any], expanded: bool = True) -> EsonNode:
    """Expand (or collapse) the root and every container along *path*."""
    updated = expand_one(tree, [], expanded)
    for i in range(len(path)):
        updated = expand_one(updated, path[: i + 1], expanded)
    return updated


def get_tree_state(tree: EsonNode) -> Dict[str, Dict[str, Any]]:
    """Return ``{pointer: {"expanded": True}}`` for every expanded container."""
    state: Dict[str, Dict[str, Any]] = {}

    def _collect(node: EsonNode, path: List[Any]) -> None:
        if node.is_container and node.expanded:
            state[compile_json_pointer(path)] = {"expanded": True}

    traverse(tree, _collect)
    return state


def apply_tree_state(tree: EsonNode, state: Mapping[str, Mapping[str, Any]]) -> EsonNode:
    """Restore the expanded state captured by :func:`get_tree_state`."""
    if not state:
        return tree

    def _apply(node: EsonNode, path: List[Any]) -> EsonNode:
        entry = state.get(compile_json_pointer(path))
        if entry is None or "expanded" not in entry:
            return node
        return _set_expanded(node, bool(entry["expanded"]))

    return transform(tree, _apply)


# ---------------------------------------------------------------------------
# Errors and selection
# ---------------------------------------------------------------------------

def _set_error(node: EsonNode, error: Optional[Dict[str, Any]]) -> EsonNode:
    return node if node.error is error else node.evolve(error=error)


def apply_errors(tree: EsonNode, errors: Iterable[Dict[str, Any]],
                 previous_errors: Optional[Iterable[Dict[str, Any]]] = None) -> EsonNode:
    """Stamp schema errors onto the tree and clear outdated ones.

    Each error is placed on the node at ``parse_json_pointer(error["dataPath"])``.
    When *previous_errors* is given only their paths are cleared; otherwise
    the whole tree is swept for stale error stamps.
    """
    updated = tree
    stamped = set()
    for error in errors:
        path = parse_json_pointer(error.get("dataPath", ""))
        if not exists_in(updated, path):
            logger.debug("Skipping error for missing path %s", error.get("dataPath"))
            continue
        updated = update_in(updated, path, lambda node, error=error: _set_error(node, error))
        stamped.add(compile_json_pointer(path))

    if previous_errors is None:
        return cleanup_meta_data(updated, "error", stamped)

    for error in previous_errors:
        path = parse_json_pointer(error.get("dataPath", ""))
        if compile_json_pointer(path) in stamped or not exists_in(updated, path):
            continue
        updated = update_in(updated, path, lambda node: _set_error(node, None))
    return updated


def cleanup_meta_data(tree: EsonNode, field: str,
                      keep_paths: Iterable[Union[str, Sequence[Any]]] = ()) -> EsonNode:
    """Clear the metadata *field* on every node except those at *keep_paths*.

    Paths may be given as lists or as JSON Pointers.
    """
    if field not in _META_FIELDS:
        raise ValueError(f"Unknown metadata field '{field}'")

    cleared = _META_FIELDS[field]
    keep = {p if isinstance(p, str) else compile_json_pointer(p) for p in keep_paths}

    def _cleanup(node: EsonNode, path: List[Any]) -> EsonNode:
        if getattr(node, field) and compile_json_pointer(path) not in keep:
            return node.evolve(**{field: cleared})
        return node

    return transform(tree, _cleanup)


def _selection_stamps(tree: EsonNode, selection: Selection) -> Dict[str, SelectionFlag]:
    if selection.after is not None:
        return {compile_json_pointer(selection.after): SelectionFlag.AFTER}
    if selection.before_childs is not None:
        return {compile_json_pointer(selection.before_childs): SelectionFlag.BEFORE_CHILDS}

    root_path = normalize_path(tree, find_root_path(selection))
    root = get_in(tree, root_path)
    if not isinstance(root, EsonNode) or not root.is_container:
        raise PathError("Selection root not found", root_path)
    span = find_selection_indices(root, root_path, selection)
    keys = root.child_keys()[span.min_index:span.max_index]

    depth = len(root_path)
    start_key = str(selection.start[depth])
    end_key = str(selection.end[depth])

    stamps = {compile_json_pointer(root_path): SelectionFlag.INSIDE}
    for position, key in enumerate(keys):
        flag = SelectionFlag.SELECTED
        if position == 0:
            flag |= SelectionFlag.FIRST
        if position == len(keys) - 1:
            flag |= SelectionFlag.LAST
        if str(key) == start_key:
            flag |= SelectionFlag.START
        if str(key) == end_key:
            flag |= SelectionFlag.END
        stamps[compile_json_pointer(root_path + [key])] = flag
    return stamps


def apply_selection(tree: EsonNode, selection: Optional[Selection]) -> EsonNode:
    """Stamp the selection flags onto the tree and clear all others.

    Range children get SELECTED, the endpoints START/END, the lowest and
    highest index FIRST/LAST, and the shared parent INSIDE. Point markers
    stamp AFTER or BEFORE_CHILDS. ``None`` clears the selection.
    """
    if selection is None:
        return cleanup_meta_data(tree, "selection")

    stamps = _selection_stamps(tree, selection)

    def _stamp(node: EsonNode, path: List[Any]) -> EsonNode:
        flag = stamps.get(compile_json_pointer(path), SelectionFlag.NONE)
        return node if node.selection == flag else node.evolve(selection=flag)

    return transform(tree, _stamp)


# ---------------------------------------------------------------------------
# Traversal and lookups
# ---------------------------------------------------------------------------

def traverse(tree: Optional[EsonNode], callback: Callable[[EsonNode, List[Any]], Any],
             path: Sequence[Any] = ()) -> None:
    """Visit every node depth-first, parents before children."""
    if tree is None:
        return
    path = list(path)
    callback(tree, path)
    if tree.kind == "array":
        for index, item in enumerate(tree.items):
            traverse(item, callback, path + [index])
    elif tree.kind == "object":
        for name, child in tree.props.items():
            traverse(child, callback, path + [name])


def find_next_prop(parent: Any, prop: str) -> Optional[str]:
    """Return the name of the property following *prop*, or None."""
    names = list(parent.props if isinstance(parent, EsonNode) else parent)
    try:
        index = names.index(prop)
    except ValueError:
        return None
    return names[index + 1] if index + 1 < len(names) else None


def resolve_path_index(root: Any, path: Sequence[Any]) -> List[Any]:
    """Replace a trailing ``-`` in *path* by the length of the parent array."""
    path = list(path)
    if path and path[-1] == "-":
        parent = get_in(root, path[:-1], MISSING)
        if isinstance(parent, list):
            return path[:-1] + [len(parent)]
        if isinstance(parent, EsonNode) and parent.kind == "array":
            return path[:-1] + [len(parent.items)]
    return path
