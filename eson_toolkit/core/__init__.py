from __future__ import annotations

"""Pure document model: tree, patch engine, actions, search and selection."""

from .eson import eson_to_json, json_to_eson, sync  # noqa: F401
from .patch import immutable_eson_patch, immutable_json_patch  # noqa: F401
from .search import next_search_result, previous_search_result, search  # noqa: F401

__all__: list[str] = [
    "sync",
    "json_to_eson",
    "eson_to_json",
    "immutable_json_patch",
    "immutable_eson_patch",
    "search",
    "next_search_result",
    "previous_search_result",
]
