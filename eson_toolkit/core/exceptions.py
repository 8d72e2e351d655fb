from __future__ import annotations

"""Exception classes for the document model and patch engine.

Two families live here. :class:`PathError` signals a programmer error in the
low-level immutability helpers (stepping into a primitive, for instance) and
is raised. :class:`PatchError` and its subclasses describe document-level
problems; the patch engine never raises them but returns them inside a
``PatchResult`` so that callers decide how to surface them.
"""

from enum import Enum
from typing import Any, Optional, Sequence

__all__ = [
    "EsonError",
    "PathError",
    "PatchError",
    "UnknownPatchOpError",
    "MissingFromFieldError",
    "PathNotFoundError",
    "TestFailureReason",
    "TestFailedError",
]


class EsonError(Exception):
    """Base exception for all eson_toolkit errors."""


class PathError(EsonError, LookupError):
    """Raised when a path addresses into a value that is not a container."""

    def __init__(self, message: str, path: Optional[Sequence[Any]] = None) -> None:
        super().__init__(message)
        self.path = list(path) if path is not None else None


class PatchError(EsonError):
    """Base class of the errors reported by a failed patch batch.

    Attributes
    ----------
    operation
        The offending patch operation, when known.
    """

    def __init__(self, message: str, operation: Optional[dict] = None) -> None:
        super().__init__(message)
        self.operation = operation


class UnknownPatchOpError(PatchError):
    """The ``op`` field holds an unsupported operation name."""


class MissingFromFieldError(PatchError):
    """A ``copy`` or ``move`` operation lacks its ``from`` field."""


class PathNotFoundError(PatchError):
    """A path named by a patch operation does not exist in the document."""


class TestFailureReason(str, Enum):
    __test__ = False

    NO_VALUE_PROVIDED = "no value provided"
    PATH_NOT_FOUND = "path not found"
    VALUE_MISMATCH = "value differs"


class TestFailedError(PatchError):
    """A ``test`` operation did not hold; the whole batch is cancelled."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, reason: TestFailureReason, operation: Optional[dict] = None) -> None:
        super().__init__(f"Test failed, {reason.value}", operation)
        self.reason = reason
