"""ILockStrategy — protocol for per-key mutual exclusion.

Stores that cannot offer conditional writes serialize each read-modify-write
cycle by holding one of these locks for the cycle's duration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..primitives.keys import LockKey


@runtime_checkable
class ILockStrategy(Protocol):
    """
    Lock strategy protocol for pessimistic concurrency control.

    Implementations can use in-process FIFO locks, Redis, or database
    row locks (SELECT FOR UPDATE).

    Example:
        ```python
        token = await strategy.acquire(key, timeout=5.0)
        try:
            ...
        finally:
            await strategy.release(key, token)
        ```
    """

    async def acquire(self, key: LockKey, *, timeout: float = 10.0) -> str:
        """
        Acquire the lock for the given queue key.

        Args:
            key: The queue to lock.
            timeout: Maximum time to wait for the lock.

        Returns:
            A unique lock token required for release.

        Raises:
            LockAcquisitionError: If the lock cannot be acquired within the timeout.
        """
        ...

    async def release(self, key: LockKey, token: str) -> None:
        """
        Release a previously acquired lock.

        Args:
            key: The queue that was locked.
            token: The token returned by :meth:`acquire`.
        """
        ...

    async def health_check(self) -> bool:
        """Verify that the lock service is responsive and healthy."""
        ...
