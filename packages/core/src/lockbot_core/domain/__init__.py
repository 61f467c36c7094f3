"""Domain primitives: value objects and the lock queue model."""

from __future__ import annotations

from .queue import LockQueue, OwnerEntry, VersionedQueue
from .value_object import ValueObject

__all__: list[str] = [
    "LockQueue",
    "OwnerEntry",
    "ValueObject",
    "VersionedQueue",
]
