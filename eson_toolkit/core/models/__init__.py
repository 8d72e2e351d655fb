from __future__ import annotations

"""Shared data structures used across the eson_toolkit core.

This package exposes the annotated tree node and the value objects used by
the engines and services. It is intentionally free of UI / I/O code so that
the contained objects can be reused in any context (unit-tests, CLI, GUI...).
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Literal, Optional, Tuple, Union

from eson_toolkit.core.exceptions import PathError
from eson_toolkit.core.utils import MISSING, to_index

from .patch import PATCH_OPS, PatchMeta, PatchOperation, PatchResult
from .search import SearchMatch, SearchResult
from .selection import Selection, SelectionFlag, SelectionRange

__all__ = [
    "EsonNode",
    "NodeKind",
    "SearchState",
    "PathKey",
    "PATCH_OPS",
    "PatchMeta",
    "PatchOperation",
    "PatchResult",
    "SearchMatch",
    "SearchResult",
    "Selection",
    "SelectionFlag",
    "SelectionRange",
]

NodeKind = Literal["array", "object", "value"]
SearchState = Literal["normal", "active"]
PathKey = Union[str, int]


@dataclass(frozen=True)
class EsonNode:
    """Annotated node mirroring one JSON value.

    Nodes are immutable; every edit produces new nodes for the changed path
    and shares all untouched subtrees by reference.

    Attributes
    ----------
    id
        Opaque identity, stable across edits (see ``eson.sync``).
    kind
        ``"array"``, ``"object"`` or ``"value"``.
    value
        The primitive JSON value, leaves only.
    items
        Child nodes of an array.
    props
        Child nodes of an object, in property order.
    expanded
        Whether a container is expanded in the view.
    error
        Schema error stamped on this node, if any.
    search_property, search_value
        Search hit status of the property name / the value.
    selection
        Selection bitmask.
    """

    id: Hashable
    kind: NodeKind
    value: Any = None
    items: Tuple["EsonNode", ...] = ()
    props: Dict[str, "EsonNode"] = field(default_factory=dict)
    expanded: bool = False
    error: Optional[Dict[str, Any]] = None
    search_property: Optional[SearchState] = None
    search_value: Optional[SearchState] = None
    selection: SelectionFlag = SelectionFlag.NONE

    # ------------------------------------------------------------------
    # Child access, used by the immutability helpers
    # ------------------------------------------------------------------
    @property
    def is_container(self) -> bool:
        return self.kind != "value"

    def child_keys(self) -> List[PathKey]:
        if self.kind == "array":
            return list(range(len(self.items)))
        if self.kind == "object":
            return list(self.props)
        return []

    def get_child(self, key: PathKey, default: Any = MISSING) -> Any:
        if self.kind == "array":
            index = to_index(key)
            if index is None or index >= len(self.items):
                return default
            return self.items[index]
        if self.kind == "object":
            return self.props.get(str(key), default)
        return default

    def has_child(self, key: PathKey) -> bool:
        return self.get_child(key) is not MISSING

    def with_child(self, key: PathKey, child: "EsonNode") -> "EsonNode":
        """Return a copy with the child at *key* replaced (or added)."""
        if self.kind == "array":
            index = to_index(key)
            if index is None or index > len(self.items):
                raise PathError(f"Index {key!r} out of range", [key])
            items = list(self.items)
            if index == len(items):
                items.append(child)
            else:
                items[index] = child
            return dataclasses.replace(self, items=tuple(items))
        if self.kind == "object":
            props = dict(self.props)
            props[str(key)] = child
            return dataclasses.replace(self, props=props)
        raise PathError("Cannot set a child on a value node", [key])

    def without_child(self, key: PathKey) -> "EsonNode":
        if not self.has_child(key):
            return self
        if self.kind == "array":
            index = to_index(key)
            return dataclasses.replace(self, items=self.items[:index] + self.items[index + 1:])
        props = dict(self.props)
        del props[str(key)]
        return dataclasses.replace(self, props=props)

    def with_inserted(self, index: int, child: "EsonNode") -> "EsonNode":
        if self.kind != "array":
            raise TypeError("Array expected")
        return dataclasses.replace(self, items=self.items[:index] + (child,) + self.items[index:])

    def with_prop_before(self, name: str, child: "EsonNode", before: Optional[str]) -> "EsonNode":
        """Insert a new property, placed before *before* when that sibling exists."""
        props: Dict[str, EsonNode] = {}
        inserted = False
        for key, value in self.props.items():
            if key == before and not inserted:
                props[name] = child
                inserted = True
            if key != name:
                props[key] = value
        if not inserted:
            props[name] = child
        return dataclasses.replace(self, props=props)

    def evolve(self, **changes: Any) -> "EsonNode":
        """Shorthand for :func:`dataclasses.replace`."""
        return dataclasses.replace(self, **changes)
