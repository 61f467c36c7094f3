"""Domain and infrastructure exceptions for lockbot-core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .keys import LockKey


class LockBotError(Exception):
    """Root exception for the entire lockbot toolkit."""


class InvalidRequestError(LockBotError):
    """Raised when a request carries an empty or malformed identity.

    Carries structured errors: ``{field: [messages]}``.
    """

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


class DomainError(LockBotError):
    """Base class for all domain-related errors."""


class AlreadyQueuedError(DomainError):
    """Raised when a name would appear twice in the same queue."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name!r} is already in the queue")


class InfrastructureError(LockBotError):
    """Base class for all infrastructure-related errors."""


class PersistenceError(InfrastructureError):
    """Base class for all persistence-related errors."""


class StoreUnavailableError(PersistenceError):
    """Raised when a store read or write could not complete.

    No partial queue mutation is ever applied when this is raised.
    """


class ConcurrencyError(LockBotError):
    """Base class for all concurrency-related conflicts."""


class QueueConflictError(ConcurrencyError, PersistenceError):
    """Raised by a conditional write when the stored version moved on.

    The engine catches this and retries the whole read-modify-write cycle.
    """

    def __init__(self, key: LockKey, expected: int, actual: int | None = None) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        msg = f"Queue {key} changed concurrently (expected version {expected}"
        if actual is not None:
            msg += f", found {actual}"
        super().__init__(msg + ")")


class StoreConflictExhaustedError(ConcurrencyError):
    """Raised when the bounded retry loop never managed to commit."""

    def __init__(self, key: LockKey, attempts: int) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(
            f"Gave up updating {key} after {attempts} conflicting attempts"
        )


class LockAcquisitionError(ConcurrencyError):
    """Failed to enter the per-key mutual-exclusion region."""

    def __init__(
        self,
        key: LockKey,
        timeout: float,
        reason: str | None = None,
    ) -> None:
        self.key = key
        self.timeout = timeout
        self.reason = reason

        msg = f"Failed to acquire lock on {key} within {timeout}s"
        if reason:
            msg += f" - {reason}"

        super().__init__(msg)
