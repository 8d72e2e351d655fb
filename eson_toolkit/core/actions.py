from __future__ import annotations

"""Turn user intents into patch operations.

Every function here is pure: it reads the current tree only to disambiguate
(unique property names, sibling order, array indices) and returns a list of
patch operations to be applied by the patch engine. Both annotated trees and
plain JSON values are accepted.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from eson_toolkit.core.eson import eson_to_json, find_next_prop
from eson_toolkit.core.immutability import child_keys, container_kind, get_in
from eson_toolkit.core.json_pointer import compile_json_pointer
from eson_toolkit.core.models import EsonNode, PatchOperation, Selection
from eson_toolkit.core.selection import find_root_path, normalize_path, paths_from_selection
from eson_toolkit.core.utils import (
    compare_asc,
    compare_desc,
    find_unique_name,
    string_convert,
    to_display_string,
)

__all__ = [
    "change_value",
    "change_property",
    "change_type",
    "convert_type",
    "duplicate",
    "insert_before",
    "insert_after",
    "insert_inside",
    "replace",
    "append",
    "create_entry",
    "remove",
    "remove_all",
    "sort",
    "contents_from_paths",
]

Entry = Mapping[str, Any]

_KINDS = ("value", "string", "object", "array")


def _to_json(value: Any) -> Any:
    return eson_to_json(value) if isinstance(value, EsonNode) else value


def _names(parent: Any) -> List[str]:
    return [str(name) for name in child_keys(parent)]


# ---------------------------------------------------------------------------
# Values and properties
# ---------------------------------------------------------------------------

def change_value(tree: Any, path: Sequence[Any], value: Any) -> List[PatchOperation]:
    return [{"op": "replace", "path": compile_json_pointer(path), "value": value}]


def change_property(tree: Any, parent_path: Sequence[Any], old_name: str,
                    new_name: str) -> List[PatchOperation]:
    """Rename a property, keeping it at the same position.

    The new name is made unique against the sibling names; renaming to the
    current name produces no operations.
    """
    parent = get_in(tree, parent_path)
    siblings = [name for name in _names(parent) if name != old_name]
    unique_name = find_unique_name(new_name, siblings)
    if unique_name == old_name:
        return []

    parent_path = list(parent_path)
    return [{
        "op": "move",
        "from": compile_json_pointer(parent_path + [old_name]),
        "path": compile_json_pointer(parent_path + [unique_name]),
        "meta": {"before": find_next_prop(parent, old_name)},
    }]


def convert_type(value: Any, kind: str) -> Any:
    """Convert *value* to *kind*, keeping its contents where possible.

    Parameters
    ----------
    value
        A plain JSON value.
    kind
        ``"value"``, ``"string"``, ``"object"`` or ``"array"``.

    >>> convert_type("2.5", "value"), convert_type(False, "string")
    (2.5, 'false')
    >>> convert_type(["a", "b"], "object")
    {'0': 'a', '1': 'b'}
    """
    if kind not in _KINDS:
        raise ValueError(f"Unknown type '{kind}'")

    is_container = isinstance(value, (list, dict))

    if kind == "value":
        if isinstance(value, str):
            return string_convert(value)
        return "" if is_container else value

    if kind == "string":
        return "" if is_container else to_display_string(value)

    if kind == "object":
        if isinstance(value, dict):
            return value
        if isinstance(value, list):
            return {str(index): item for index, item in enumerate(value)}
        return {}

    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return list(value.values())
    return []


def change_type(tree: Any, path: Sequence[Any], new_kind: str) -> List[PatchOperation]:
    old_value = _to_json(get_in(tree, path))
    return [{
        "op": "replace",
        "path": compile_json_pointer(path),
        "value": convert_type(old_value, new_kind),
    }]


def create_entry(kind: str) -> Any:
    """Blank value for a new entry of the given kind."""
    if kind == "array":
        return []
    if kind == "object":
        return {}
    return ""


# ---------------------------------------------------------------------------
# Inserting
# ---------------------------------------------------------------------------

def _add_to_array(parent_path: List[Any], start: int, entries: Iterable[Entry]) -> List[PatchOperation]:
    return [
        {"op": "add", "path": compile_json_pointer(parent_path + [start + offset]), "value": entry["value"]}
        for offset, entry in enumerate(entries)
    ]


def _add_to_object(parent: Any, parent_path: List[Any], entries: Iterable[Entry],
                   before: Optional[str], exclude: Sequence[str] = ()) -> List[PatchOperation]:
    existing = set(_names(parent)) - set(exclude)
    operations: List[PatchOperation] = []
    for entry in entries:
        name = find_unique_name(str(entry.get("name", "")), existing)
        existing.add(name)
        operations.append({
            "op": "add",
            "path": compile_json_pointer(parent_path + [name]),
            "value": entry["value"],
            "meta": {"before": before},
        })
    return operations


def insert_before(tree: Any, path: Sequence[Any], entries: Iterable[Entry]) -> List[PatchOperation]:
    """Insert *entries* in front of the node at *path*.

    Entries are ``{"name": str, "value": json}`` mappings; names are only used
    in objects, where they are made unique.
    """
    path = normalize_path(tree, path)
    parent_path = path[:-1]
    parent = get_in(tree, parent_path)

    if container_kind(parent) == "array":
        return _add_to_array(parent_path, path[-1], entries)
    return _add_to_object(parent, parent_path, entries, before=path[-1])


def insert_after(tree: Any, path: Sequence[Any], entries: Iterable[Entry]) -> List[PatchOperation]:
    """Insert *entries* right after the node at *path*."""
    path = normalize_path(tree, path)
    parent_path = path[:-1]
    parent = get_in(tree, parent_path)

    if container_kind(parent) == "array":
        return _add_to_array(parent_path, path[-1] + 1, entries)
    return _add_to_object(parent, parent_path, entries, before=find_next_prop(parent, path[-1]))


def insert_inside(tree: Any, parent_path: Sequence[Any], entries: Iterable[Entry]) -> List[PatchOperation]:
    """Insert *entries* as the first children of the container at *parent_path*."""
    parent_path = normalize_path(tree, parent_path)
    parent = get_in(tree, parent_path)
    kind = container_kind(parent)

    if kind == "array":
        return _add_to_array(parent_path, 0, entries)
    if kind == "object":
        names = _names(parent)
        return _add_to_object(parent, parent_path, entries, before=names[0] if names else None)
    raise TypeError("Cannot insert in a value, only in an object or array")


def replace(tree: Any, selection: Selection, entries: Iterable[Entry]) -> List[PatchOperation]:
    """Replace the selected nodes by *entries* (paste).

    With a point marker the entries are inserted at the marked position.
    """
    if selection.after is not None:
        return insert_after(tree, selection.after, entries)
    if selection.before_childs is not None:
        return insert_inside(tree, selection.before_childs, entries)

    root_path = normalize_path(tree, find_root_path(selection))
    root = get_in(tree, root_path)
    paths = paths_from_selection(tree, selection)
    removals = remove_all(paths)

    if container_kind(root) == "array":
        offset = paths[0][-1] if paths else 0
        return removals + _add_to_array(root_path, offset, entries)

    removed = [path[-1] for path in paths]
    before = find_next_prop(root, removed[-1]) if removed else None
    return removals + _add_to_object(root, root_path, entries, before, exclude=removed)


def duplicate(tree: Any, selection: Optional[Selection]) -> List[PatchOperation]:
    """Copy the selected nodes and place the copies right after the selection."""
    if selection is None or not selection.is_range:
        return []

    root_path = normalize_path(tree, find_root_path(selection))
    root = get_in(tree, root_path)
    paths = paths_from_selection(tree, selection)
    if not paths:
        return []

    if container_kind(root) == "array":
        offset = paths[-1][-1] + 1
        return [
            {
                "op": "copy",
                "from": compile_json_pointer(path),
                "path": compile_json_pointer(root_path + [offset + index]),
            }
            for index, path in enumerate(paths)
        ]

    existing = set(_names(root))
    before = find_next_prop(root, paths[-1][-1])
    operations: List[PatchOperation] = []
    for path in paths:
        name = find_unique_name(path[-1], existing)
        existing.add(name)
        operations.append({
            "op": "copy",
            "from": compile_json_pointer(path),
            "path": compile_json_pointer(root_path + [name]),
            "meta": {"before": before},
        })
    return operations


def append(tree: Any, parent_path: Sequence[Any], kind: str) -> List[PatchOperation]:
    """Add a blank entry at the end of the container at *parent_path*."""
    parent_path = list(parent_path)
    parent = get_in(tree, parent_path)
    value = create_entry(kind)
    parent_kind = container_kind(parent)

    if parent_kind == "array":
        return [{"op": "add", "path": compile_json_pointer(parent_path + ["-"]), "value": value}]
    if parent_kind == "object":
        name = find_unique_name("", _names(parent))
        return [{"op": "add", "path": compile_json_pointer(parent_path + [name]), "value": value}]
    raise TypeError("Cannot append to a value, only to an object or array")


# ---------------------------------------------------------------------------
# Removing
# ---------------------------------------------------------------------------

def remove(path: Sequence[Any]) -> List[PatchOperation]:
    return [{"op": "remove", "path": compile_json_pointer(path)}]


def remove_all(paths: Sequence[Sequence[Any]]) -> List[PatchOperation]:
    """Remove several nodes; the last path is removed first so that array
    indices of the remaining paths stay valid."""
    return [{"op": "remove", "path": compile_json_pointer(path)} for path in reversed(paths)]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def _selection_sort(items: List[Any], compare: Callable[[Any, Any], int]) -> List[Tuple[int, int]]:
    """Return the ``(from_index, to_index)`` moves sorting *items*.

    Each move removes the item at ``from_index`` and inserts it at
    ``to_index``, exactly like a patch ``move`` on an array.
    """
    ordered = list(items)
    moves: List[Tuple[int, int]] = []
    for i in range(len(ordered)):
        first = i
        for j in range(i, len(ordered)):
            if compare(ordered[first], ordered[j]) > 0:
                first = j
        if first != i:
            ordered.insert(i, ordered.pop(first))
            moves.append((first, i))
    return moves


def _sort_moves(tree: Any, path: List[Any], compare: Callable[[Any, Any], int]) -> List[PatchOperation]:
    target = get_in(tree, path)
    kind = container_kind(target)

    if kind == "array":
        values = [_to_json(child) for child in (target.items if isinstance(target, EsonNode) else target)]
        return [
            {
                "op": "move",
                "from": compile_json_pointer(path + [from_index]),
                "path": compile_json_pointer(path + [target_index]),
            }
            for from_index, target_index in _selection_sort(values, compare)
        ]

    if kind == "object":
        names = _names(target)
        operations: List[PatchOperation] = []
        for from_index, target_index in _selection_sort(names, compare):
            name = names.pop(from_index)
            before = names[target_index]
            names.insert(target_index, name)
            pointer = compile_json_pointer(path + [name])
            operations.append({"op": "move", "from": pointer, "path": pointer, "meta": {"before": before}})
        return operations

    return []


def sort(tree: Any, path: Sequence[Any], order: Optional[str] = None) -> List[PatchOperation]:
    """Sort an array by value or an object by property name.

    The result is a list of ``move`` operations so that node identity and
    expanded state of the children survive. Without an explicit *order* the
    contents are sorted ascending, or descending when they already were in
    ascending order.
    """
    if order not in (None, "asc", "desc"):
        raise ValueError(f"Unknown sort order '{order}'")

    path = normalize_path(tree, path)
    operations = _sort_moves(tree, path, compare_desc if order == "desc" else compare_asc)
    if order is None and not operations:
        operations = _sort_moves(tree, path, compare_desc)
    return operations


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------

def contents_from_paths(tree: Any, paths: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Return ``[{"name", "value"}]`` for the given paths (copy and cut)."""
    return [{"name": str(path[-1]), "value": _to_json(get_in(tree, path))} for path in paths]
