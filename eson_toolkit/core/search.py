from __future__ import annotations

"""Full-tree text search.

Property names and leaf values are matched case-insensitively; array indices
never match. The matches are stamped onto the tree (``search_property`` /
``search_value``) with the first one marked as active.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from eson_toolkit.core.eson import traverse
from eson_toolkit.core.immutability import exists_in, transform, update_in
from eson_toolkit.core.models import EsonNode, SearchMatch, SearchResult
from eson_toolkit.core.utils import contains_case_insensitive

__all__ = ["search", "next_search_result", "previous_search_result"]

logger = logging.getLogger(__name__)

_FIELDS = {"property": "search_property", "value": "search_value"}


def _find_matches(tree: EsonNode, text: str) -> List[SearchMatch]:
    matches: List[SearchMatch] = []

    def _check(node: EsonNode, path: List[Any]) -> None:
        # array indices are ints, so only object properties are compared
        if path and isinstance(path[-1], str) and contains_case_insensitive(path[-1], text):
            matches.append(SearchMatch(tuple(path), "property"))
        if node.kind == "value" and contains_case_insensitive(node.value, text):
            matches.append(SearchMatch(tuple(path), "value"))

    traverse(tree, _check)
    return sorted(matches, key=SearchMatch.sort_key)


def search(tree: Optional[EsonNode], text: str) -> SearchResult:
    """Search *text* in all property names and values of *tree*.

    Matches are ordered by path, and at equal paths the property comes
    before the value. Stale search stamps from a previous search are cleared.
    """
    matches = _find_matches(tree, text) if tree is not None and text else []
    active = matches[0] if matches else None

    states: Dict[Tuple[Any, ...], Dict[str, str]] = {}
    for match in matches:
        state = "active" if match == active else "normal"
        states.setdefault(match.path, {})[_FIELDS[match.area]] = state

    def _stamp(node: EsonNode, path: List[Any]) -> EsonNode:
        wanted = states.get(tuple(path), {})
        search_property = wanted.get("search_property")
        search_value = wanted.get("search_value")
        if node.search_property == search_property and node.search_value == search_value:
            return node
        return node.evolve(search_property=search_property, search_value=search_value)

    updated = transform(tree, _stamp) if tree is not None else None
    logger.debug("Search %r: %d match(es)", text, len(matches))
    return SearchResult(tree=updated, text=text, matches=matches, active=active)


def _set_search_status(tree: EsonNode, match: Optional[SearchMatch], status: str) -> EsonNode:
    if match is None or not exists_in(tree, match.path):
        return tree
    field = _FIELDS[match.area]
    return update_in(
        tree, match.path,
        lambda node: node if getattr(node, field) == status else node.evolve(**{field: status}),
    )


def _move_active(tree: EsonNode, result: SearchResult, step: int) -> SearchResult:
    if not result.matches:
        return SearchResult(tree=tree, text=result.text, matches=result.matches, active=result.active)

    try:
        index = result.matches.index(result.active)
    except ValueError:
        new_active = result.matches[0]
    else:
        new_active = result.matches[(index + step) % len(result.matches)]

    updated = _set_search_status(tree, result.active, "normal")
    updated = _set_search_status(updated, new_active, "active")
    return SearchResult(tree=updated, text=result.text, matches=result.matches, active=new_active)


def next_search_result(tree: EsonNode, result: SearchResult) -> SearchResult:
    """Activate the match after the current one, wrapping around at the end."""
    return _move_active(tree, result, 1)


def previous_search_result(tree: EsonNode, result: SearchResult) -> SearchResult:
    """Activate the match before the current one, wrapping around at the start."""
    return _move_active(tree, result, -1)
