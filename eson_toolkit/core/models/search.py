from __future__ import annotations

"""Search value objects."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Literal, Optional, Tuple, Union

if TYPE_CHECKING:
    from eson_toolkit.core.models import EsonNode

__all__ = ["SearchMatch", "SearchResult"]

SearchArea = Literal["property", "value"]


@dataclass(frozen=True)
class SearchMatch:
    """A single hit: either the property name or the value at ``path``."""

    path: Tuple[Union[str, int], ...]
    area: SearchArea

    def sort_key(self) -> tuple:
        # property before value at equal paths
        return (self.path, 0 if self.area == "property" else 1)


@dataclass(frozen=True)
class SearchResult:
    """Outcome of a search: the stamped tree, ordered matches and the active one."""

    tree: Optional["EsonNode"]
    text: str
    matches: List[SearchMatch] = field(default_factory=list)
    active: Optional[SearchMatch] = None
