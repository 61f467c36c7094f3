"""Primitives: exceptions, composite keys."""

from __future__ import annotations

from .exceptions import (
    AlreadyQueuedError,
    ConcurrencyError,
    DomainError,
    InfrastructureError,
    InvalidRequestError,
    LockAcquisitionError,
    LockBotError,
    PersistenceError,
    QueueConflictError,
    StoreConflictExhaustedError,
    StoreUnavailableError,
)
from .keys import LockKey, LockScope

__all__ = [
    "AlreadyQueuedError",
    "ConcurrencyError",
    "DomainError",
    "InfrastructureError",
    "InvalidRequestError",
    "LockAcquisitionError",
    "LockBotError",
    "LockKey",
    "LockScope",
    "PersistenceError",
    "QueueConflictError",
    "StoreConflictExhaustedError",
    "StoreUnavailableError",
]
