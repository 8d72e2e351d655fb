from __future__ import annotations

"""JSON Pointer codec.

WARNING: this is not a complete RFC 6901 implementation. Malformed pointers
(for example a pointer not starting with ``/``) are not validated.
"""

from typing import List, Sequence, Union

__all__ = ["parse_json_pointer", "compile_json_pointer"]

PathKey = Union[str, int]


def parse_json_pointer(pointer: str) -> List[str]:
    """Parse a JSON Pointer into a path.

    >>> parse_json_pointer("/obj/a~1b/0")
    ['obj', 'a/b', '0']
    >>> parse_json_pointer("")
    []
    """
    path = pointer.split("/")
    path.pop(0)  # leading empty entry
    return [p.replace("~1", "/").replace("~0", "~") for p in path]


def compile_json_pointer(path: Sequence[PathKey]) -> str:
    """Compile a path into a JSON Pointer.

    >>> compile_json_pointer(["obj", "a/b", 0])
    '/obj/a~1b/0'
    """
    return "".join(
        "/" + str(key).replace("~", "~0").replace("/", "~1") for key in path
    )
