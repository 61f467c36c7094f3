"""lockbot-core — exclusive, queued access to named chat resources.

Zero infrastructure dependencies. Pydantic for the domain model and config.
"""

from __future__ import annotations

# ── Adapters ────────────────────────────────────────────────────
from .adapters.memory import (
    InMemoryLockQueueStore,
    InMemoryLockStrategy,
    InMemoryTokenAuthorizer,
)

# ── Chat ─────────────────────────────────────────────────────────
from .chat import (
    Destination,
    ForceReleasePolicy,
    LockBot,
    LockBotConfig,
    Response,
)

# ── Domain ───────────────────────────────────────────────────────
from .domain import LockQueue, OwnerEntry, ValueObject, VersionedQueue

# ── Ports ────────────────────────────────────────────────────────
from .ports import ILockQueueStore, ILockStrategy, ITokenAuthorizer

# ── Primitives ──────────────────────────────────────────────────
from .primitives import (
    AlreadyQueuedError,
    ConcurrencyError,
    DomainError,
    InfrastructureError,
    InvalidRequestError,
    LockAcquisitionError,
    LockBotError,
    LockKey,
    LockScope,
    PersistenceError,
    QueueConflictError,
    StoreConflictExhaustedError,
    StoreUnavailableError,
)

# ── Waitlist ────────────────────────────────────────────────────
from .waitlist import (
    ExponentialBackoffPolicy,
    FixedRetryPolicy,
    JoinOutcome,
    LeaveOutcome,
    RetryPolicy,
    WaitlistConfig,
    WaitlistEngine,
)

__all__: list[str] = [
    # Domain
    "LockQueue",
    "OwnerEntry",
    "ValueObject",
    "VersionedQueue",
    # Waitlist
    "ExponentialBackoffPolicy",
    "FixedRetryPolicy",
    "JoinOutcome",
    "LeaveOutcome",
    "RetryPolicy",
    "WaitlistConfig",
    "WaitlistEngine",
    # Chat
    "Destination",
    "ForceReleasePolicy",
    "LockBot",
    "LockBotConfig",
    "Response",
    # Ports
    "ILockQueueStore",
    "ILockStrategy",
    "ITokenAuthorizer",
    # Primitives
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
    # Adapters
    "InMemoryLockQueueStore",
    "InMemoryLockStrategy",
    "InMemoryTokenAuthorizer",
]
