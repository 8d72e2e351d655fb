from __future__ import annotations

"""Patch operation and patch result types.

Patch operations are plain dictionaries so that they can be exchanged as JSON
documents; the TypedDicts below only serve as type hints.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TypedDict

from eson_toolkit.core.exceptions import PatchError

__all__ = ["PatchMeta", "PatchOperation", "PatchResult", "PATCH_OPS"]

PATCH_OPS = ("add", "remove", "replace", "copy", "move", "test")


class PatchMeta(TypedDict, total=False):
    kind: str
    before: Optional[str]
    state: Dict[str, Dict[str, Any]]


# "from" is a keyword, hence the functional syntax
PatchOperation = TypedDict(
    "PatchOperation",
    {"op": str, "path": str, "from": str, "value": Any, "meta": PatchMeta},
    total=False,
)


@dataclass(frozen=True)
class PatchResult:
    """Result of applying a patch batch.

    Attributes
    ----------
    data
        The patched document, or the untouched input when ``error`` is set.
    revert
        Operations undoing the batch, in application order. Empty on error.
    error
        None on success, otherwise the error that cancelled the batch.
    """

    data: Any
    revert: List[PatchOperation] = field(default_factory=list)
    error: Optional[PatchError] = None

    @property
    def json(self) -> Any:
        return self.data

    @property
    def success(self) -> bool:
        return self.error is None
