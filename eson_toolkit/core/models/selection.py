from __future__ import annotations

"""Selection value objects."""

from dataclasses import dataclass
from enum import IntFlag
from typing import List, Optional, Union

__all__ = ["SelectionFlag", "Selection", "SelectionRange"]

PathKey = Union[str, int]


class SelectionFlag(IntFlag):
    """Selection status stamped on a node (bitmask)."""

    NONE = 0
    SELECTED = 1
    START = 2
    END = 4
    FIRST = 8
    LAST = 16
    INSIDE = 32
    AFTER = 64
    BEFORE_CHILDS = 128


@dataclass(frozen=True)
class Selection:
    """A selection in the tree.

    Exactly one form is used:

    - a multi-range, given by ``start`` and ``end`` (in any order),
    - a point marker ``after`` a node,
    - a point marker ``before_childs`` of a container (insert position at the
      start of its children).
    """

    start: Optional[List[PathKey]] = None
    end: Optional[List[PathKey]] = None
    after: Optional[List[PathKey]] = None
    before_childs: Optional[List[PathKey]] = None

    @property
    def is_range(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_point(self) -> bool:
        return self.after is not None or self.before_childs is not None


@dataclass(frozen=True)
class SelectionRange:
    """Resolved child index span under the selection's shared parent.

    ``max_index`` is exclusive for ranges; for point markers ``min_index ==
    max_index`` and denotes the insert position.
    """

    min_index: int
    max_index: int
