from __future__ import annotations

"""Immutable get/set/update/delete helpers over nested JSON-like graphs.

The helpers work on plain ``dict``/``list`` values and on composite
:class:`~eson_toolkit.core.models.EsonNode` instances alike. Updates never
mutate their input: every ancestor of a change is shallow-copied, untouched
siblings are shared by reference, and when nothing changes the very same
object is returned.

Paths are sequences of keys. Array indices may be given as ``int`` or as
numeric strings (pointers parse to strings).
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from eson_toolkit.core.exceptions import PathError
from eson_toolkit.core.models import EsonNode
from eson_toolkit.core.utils import MISSING, to_index

__all__ = [
    "get_in",
    "set_in",
    "update_in",
    "delete_in",
    "insert_at",
    "exists_in",
    "transform",
    "is_container",
    "container_kind",
    "child_keys",
    "get_child",
]

Path = Sequence[Any]


# ---------------------------------------------------------------------------
# Container primitives
# ---------------------------------------------------------------------------

def is_container(value: Any) -> bool:
    if isinstance(value, (dict, list)):
        return True
    return isinstance(value, EsonNode) and value.is_container


def child_keys(value: Any) -> List[Any]:
    if isinstance(value, dict):
        return list(value)
    if isinstance(value, list):
        return list(range(len(value)))
    if isinstance(value, EsonNode):
        return value.child_keys()
    return []


def container_kind(value: Any) -> Optional[str]:
    """Return ``"array"`` or ``"object"`` for containers, None otherwise."""
    if isinstance(value, EsonNode):
        return value.kind if value.is_container else None
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return None


def get_child(container: Any, key: Any, default: Any = MISSING) -> Any:
    if isinstance(container, dict):
        return container.get(key if isinstance(key, str) else str(key), default)
    if isinstance(container, list):
        index = to_index(key)
        if index is None or index >= len(container):
            return default
        return container[index]
    if isinstance(container, EsonNode):
        return container.get_child(key, default)
    return default


def _with_children(container: Any, changes: Dict[Any, Any], path: Path) -> Any:
    """Return a shallow copy of *container* with *changes* applied."""
    if isinstance(container, EsonNode):
        updated = container
        for key, child in changes.items():
            try:
                updated = updated.with_child(key, child)
            except PathError as exc:
                raise PathError(str(exc), list(path) + [key]) from exc
        return updated

    if isinstance(container, dict):
        copy = dict(container)
        for key, child in changes.items():
            copy[key if isinstance(key, str) else str(key)] = child
        return copy

    if isinstance(container, list):
        copy = list(container)
        for key, child in changes.items():
            index = to_index(key)
            if index is None or index > len(copy):
                raise PathError(f"Index {key!r} out of range", list(path) + [key])
            if index == len(copy):
                copy.append(child)
            else:
                copy[index] = child
        return copy

    raise PathError("Path does not exist", list(path))


def _without_child(container: Any, key: Any) -> Any:
    if isinstance(container, EsonNode):
        return container.without_child(key)
    if isinstance(container, dict):
        copy = dict(container)
        del copy[key if isinstance(key, str) else str(key)]
        return copy
    index = to_index(key)
    return container[:index] + container[index + 1:]


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def get_in(obj: Any, path: Path, default: Any = None) -> Any:
    """Return the value at *path*, or *default* when it cannot be reached."""
    value = obj
    for key in path:
        value = get_child(value, key)
        if value is MISSING:
            return default
    return value


def set_in(obj: Any, path: Path, value: Any) -> Any:
    """Return a copy of *obj* with *value* placed at *path*.

    Raises
    ------
    PathError
        If a step of *path* goes through a non-container, or a list index is
        beyond the end of the list (the index equal to the length appends).
    """
    return update_in(obj, path, lambda _old: value)


def update_in(obj: Any, path: Path, callback: Callable[[Any], Any]) -> Any:
    """Return a copy of *obj* with the value at *path* replaced by ``callback(old)``.

    A missing leaf is passed to *callback* as ``MISSING``.
    """
    return _update_in(obj, list(path), callback, 0)


def _update_in(obj: Any, path: List[Any], callback: Callable[[Any], Any], depth: int) -> Any:
    if depth == len(path):
        return callback(obj)

    if not is_container(obj):
        raise PathError("Path does not exist", path[: depth + 1])

    key = path[depth]
    current = get_child(obj, key)
    updated = _update_in(current, path, callback, depth + 1)
    if updated is current:
        return obj
    return _with_children(obj, {key: updated}, path[:depth])


def delete_in(obj: Any, path: Path) -> Any:
    """Return a copy of *obj* without the key/index at *path*.

    Nothing happens, and *obj* itself is returned, when the path does not
    exist.
    """
    path = list(path)
    if not path or not is_container(obj):
        return obj

    key = path[0]
    child = get_child(obj, key)
    if child is MISSING:
        return obj
    if len(path) == 1:
        return _without_child(obj, key)

    updated = delete_in(child, path[1:])
    if updated is child:
        return obj
    return _with_children(obj, {key: updated}, [])


def insert_at(obj: Any, path: Path, value: Any) -> Any:
    """Insert *value* into the array at ``path[:-1]`` at index ``path[-1]``."""
    path = list(path)
    index = to_index(path[-1]) if path else None
    if index is None:
        raise TypeError(f"Array index expected at end of path {path!r}")

    def _insert(items: Any) -> Any:
        if isinstance(items, EsonNode) and items.kind == "array":
            return items.with_inserted(index, value)
        if isinstance(items, list):
            return items[:index] + [value] + items[index:]
        raise TypeError("Array expected at path " + repr(path[:-1]))

    return update_in(obj, path[:-1], _insert)


def exists_in(obj: Any, path: Path) -> bool:
    """Return True when *path* can be reached in *obj*."""
    value = obj
    for key in path:
        value = get_child(value, key)
        if value is MISSING:
            return False
    return True


def transform(obj: Any, callback: Callable[[Any, List[Any]], Any], path: Path = ()) -> Any:
    """Recursively map every value of *obj* through ``callback(value, path)``.

    The callback is applied top-down: a container is transformed first and
    the children of the *result* are visited next. Ancestors are copied only
    when one of their descendants actually changed.
    """
    path = list(path)
    updated = callback(obj, path)
    if not is_container(updated):
        return updated

    changes: Dict[Any, Any] = {}
    for key in child_keys(updated):
        before = get_child(updated, key)
        after = transform(before, callback, path + [key])
        if after is not before:
            changes[key] = after

    if not changes:
        return updated
    return _with_children(updated, changes, path)
