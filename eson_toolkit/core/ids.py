from __future__ import annotations

"""Node id generators.

Every annotated node carries an opaque id. Ids are produced by an injectable
generator so that tests can rely on deterministic values and applications can
pick globally unique ones.
"""

import itertools
import threading
import uuid
from typing import Hashable, Protocol

__all__ = [
    "IdGenerator",
    "CounterIdGenerator",
    "UuidIdGenerator",
    "create_id_generator",
    "default_id_generator",
]


class IdGenerator(Protocol):
    def __call__(self) -> Hashable: ...


class CounterIdGenerator:
    """Monotonic integer ids, starting at ``start``."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return next(self._counter)


class UuidIdGenerator:
    """Random ids of the form ``node-<uuid4>``."""

    def __call__(self) -> str:
        return f"node-{uuid.uuid4()}"


def create_id_generator(kind: str = "counter") -> IdGenerator:
    """Build a generator by name: ``"counter"`` or ``"uuid"``."""
    if kind == "counter":
        return CounterIdGenerator()
    if kind == "uuid":
        return UuidIdGenerator()
    raise ValueError(f"Unknown id generator '{kind}'")


# Shared fallback used when callers do not inject a generator.
default_id_generator: IdGenerator = CounterIdGenerator()
