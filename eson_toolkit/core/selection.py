from __future__ import annotations

"""Selection range resolution.

A multi-selection is given by two endpoint paths which may lie at different
depths. The helpers below find the parent node shared by both endpoints and
turn the selection into a concrete index span over that parent's children.
"""

from typing import Any, List, Optional, Sequence

from eson_toolkit.core.exceptions import PathError
from eson_toolkit.core.immutability import child_keys, get_child, get_in
from eson_toolkit.core.models import EsonNode, Selection, SelectionRange
from eson_toolkit.core.utils import MISSING, to_index

__all__ = [
    "find_shared_path",
    "find_root_path",
    "find_selection_indices",
    "paths_from_selection",
    "normalize_path",
]


def _same_key(a: Any, b: Any) -> bool:
    return str(a) == str(b)


def find_shared_path(path1: Sequence[Any], path2: Sequence[Any]) -> List[Any]:
    """Return the longest common prefix of two paths.

    >>> find_shared_path(["arr", 1, "name"], ["arr", 1, "address", "contact"])
    ['arr', 1]
    """
    i = 0
    while i < len(path1) and i < len(path2) and _same_key(path1[i], path2[i]):
        i += 1
    return list(path1[:i])


def find_root_path(selection: Selection) -> List[Any]:
    """Return the path of the parent shared by the selected nodes.

    For an ``after`` marker this is the parent of the marked node, for a
    ``before_childs`` marker the marked container itself.
    """
    if selection.before_childs is not None:
        return list(selection.before_childs)
    if selection.after is not None:
        return list(selection.after[:-1])
    if not selection.is_range:
        raise ValueError("Selection needs either a marker or both start and end")

    shared_path = find_shared_path(selection.start, selection.end)
    if len(shared_path) == len(selection.start) or len(shared_path) == len(selection.end):
        # one endpoint contains the other, select among the parent's children
        return shared_path[:-1]
    return shared_path


def _is_object(value: Any) -> bool:
    if isinstance(value, EsonNode):
        return value.kind == "object"
    return isinstance(value, dict)


def _child_index(root: Any, key: Any) -> int:
    if _is_object(root):
        names = [str(name) for name in child_keys(root)]
        try:
            return names.index(str(key))
        except ValueError:
            raise PathError(f"Property '{key}' not found", [key]) from None
    index = to_index(key)
    if index is None:
        raise PathError(f"Invalid array index {key!r}", [key])
    return index


def find_selection_indices(root: Any, root_path: Sequence[Any], selection: Selection) -> SelectionRange:
    """Resolve *selection* into an index span over the children of *root*.

    For a range, ``max_index`` is exclusive and the order in which start and
    end were given does not matter. For point markers both indices are equal
    and denote the insert position.
    """
    depth = len(root_path)

    if selection.before_childs is not None:
        return SelectionRange(0, 0)

    if selection.after is not None:
        index = _child_index(root, selection.after[depth]) + 1
        return SelectionRange(index, index)

    start_index = _child_index(root, selection.start[depth])
    end_index = _child_index(root, selection.end[depth])
    return SelectionRange(min(start_index, end_index), max(start_index, end_index) + 1)


def normalize_path(tree: Any, path: Sequence[Any]) -> List[Any]:
    """Return *path* with array indices as ``int`` and property names as ``str``."""
    normalized: List[Any] = []
    node = tree
    for key in path:
        if _is_object(node):
            key = str(key)
        else:
            index = to_index(key)
            key = index if index is not None else key
        normalized.append(key)
        node = get_child(node, key)
    return normalized


def paths_from_selection(tree: Any, selection: Optional[Selection]) -> List[List[Any]]:
    """Return the paths of the selected nodes, ordered first to last.

    Point markers select nothing and yield an empty list.
    """
    if selection is None or not selection.is_range:
        return []

    root_path = normalize_path(tree, find_root_path(selection))
    root = get_in(tree, root_path, MISSING)
    if root is MISSING:
        raise PathError("Selection root not found", root_path)

    span = find_selection_indices(root, root_path, selection)
    keys = child_keys(root)[span.min_index:span.max_index]
    return [root_path + [key] for key in keys]
