from __future__ import annotations

"""Simple reusable helper functions.

These helpers are side-effect-free and operate on plain JSON values; they are
shared by the tree model, the patch engine, the action builder and search.
"""

import json
import re
from typing import Any, Collection, Optional

__all__ = [
    "MISSING",
    "json_kind",
    "json_equal",
    "to_display_string",
    "contains_case_insensitive",
    "find_unique_name",
    "string_convert",
    "compare_asc",
    "compare_desc",
    "to_index",
]


class _Missing:
    """Marker for an absent key or index, distinct from JSON ``null``."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_NUMBER_PATTERN = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$")
_INTEGER_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")

_TYPE_RANK = {type(None): 0, bool: 1, int: 2, float: 2, str: 3, list: 4, dict: 5}


def json_kind(value: Any) -> Optional[str]:
    """Return ``"array"``, ``"object"`` or ``"value"``; None for MISSING."""
    if value is MISSING:
        return None
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "value"


def json_equal(a: Any, b: Any) -> bool:
    """Deep equality with JSON semantics.

    Unlike ``==``, booleans never equal numbers (``True != 1``).
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, list):
        return (
            isinstance(b, list)
            and len(a) == len(b)
            and all(json_equal(x, y) for x, y in zip(a, b))
        )
    if isinstance(a, dict):
        return (
            isinstance(b, dict)
            and a.keys() == b.keys()
            and all(json_equal(a[key], b[key]) for key in a)
        )
    return type(a) is type(b) and a == b


def to_display_string(value: Any) -> str:
    """Stringify a JSON value the way the editor displays it.

    >>> to_display_string(None), to_display_string(False), to_display_string(2.0)
    ('null', 'false', '2')
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def contains_case_insensitive(text: Any, search: str) -> bool:
    """Return True if *search* occurs in the display string of *text*."""
    return search.lower() in to_display_string(text).lower()


def find_unique_name(name: str, existing: Collection[str]) -> str:
    """Find a name not contained in *existing*.

    The name is suffixed with ``(copy)``, ``(copy 2)``, ... until unique.

    >>> find_unique_name("a", {"a", "a (copy)"})
    'a (copy 2)'
    """
    valid_name = name
    i = 1
    while valid_name in existing:
        copy = "copy" + (f" {i}" if i > 1 else "")
        valid_name = f"{name} ({copy})"
        i += 1
    return valid_name


def string_convert(text: str) -> Any:
    """Convert the contents of a string to the matching JSON value.

    ``"null"`` becomes None, ``"true"``/``"false"`` become booleans and
    numeric-looking strings become numbers; anything else is returned as is.
    """
    if text == "":
        return ""
    if text == "null":
        return None
    if text == "true":
        return True
    if text == "false":
        return False
    if _INTEGER_PATTERN.match(text):
        return int(text)
    if _NUMBER_PATTERN.match(text):
        return float(text)
    return text


def compare_asc(a: Any, b: Any) -> int:
    """Total-order comparator over JSON values, ascending.

    Values of different types are ordered null < boolean < number < string
    < array < object. Arrays compare item by item; objects compare equal.
    """
    rank_a = _TYPE_RANK.get(type(a), 6)
    rank_b = _TYPE_RANK.get(type(b), 6)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    if isinstance(a, list):
        for x, y in zip(a, b):
            result = compare_asc(x, y)
            if result:
                return result
        return (len(a) > len(b)) - (len(a) < len(b))
    if rank_a in (0, 5, 6):
        return 0
    return (a > b) - (a < b)


def compare_desc(a: Any, b: Any) -> int:
    """Comparator sorting in descending order."""
    return -compare_asc(a, b)


def to_index(key: Any) -> Optional[int]:
    """Return *key* as a non-negative array index, or None if it is not one."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, str) and key.isascii() and key.isdigit():
        return int(key)
    return None
