"""ILockQueueStore — durable home of every resource queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from ..domain.queue import LockQueue, VersionedQueue
    from ..primitives.keys import LockKey, LockScope


@runtime_checkable
class ILockQueueStore(Protocol):
    """
    Storage contract the waitlist engine is written against.

    Two concurrent read-modify-write cycles on the same key must never both
    commit on top of the same read. A store satisfies this in one of two ways:

    - **Serialization**: ``guard(key)`` returns a real per-key mutual-exclusion
      region that the engine holds from ``read`` through ``write``.
    - **Conditional write**: ``guard(key)`` is a no-op and ``write`` only
      succeeds if the stored version still equals ``expected_version``;
      otherwise it raises ``QueueConflictError`` and the engine retries.

    Stores are free to do both. Every technical failure must surface as
    ``StoreUnavailableError``.

    Usage::

        async with store.guard(key):
            current = await store.read(key)
            new_queue = current.queue.enqueue("alice", now)
            await store.write(key, new_queue, expected_version=current.version)
    """

    def guard(self, key: LockKey) -> AbstractAsyncContextManager[object]:
        """Region held for one read-modify-write cycle on ``key``."""
        ...

    async def read(self, key: LockKey) -> VersionedQueue:
        """Return the queue for ``key``; version 0 when it was never written."""
        ...

    async def write(
        self, key: LockKey, queue: LockQueue, *, expected_version: int
    ) -> VersionedQueue:
        """
        Persist ``queue`` if the record is still at ``expected_version``.

        An empty queue is kept with its version like any other, so versions
        for a key only ever grow and a read taken before the queue emptied
        can never commit afterwards.

        Returns:
            The stored queue together with its new version.

        Raises:
            QueueConflictError: If another writer committed in between.
            StoreUnavailableError: On any technical failure.
        """
        ...

    async def list_by_scope(self, scope: LockScope) -> dict[str, LockQueue]:
        """Every non-empty queue in ``scope``, keyed by resource name."""
        ...

    async def delete(self, key: LockKey) -> None:
        """Empty the queue for ``key`` unconditionally, advancing its version."""
        ...

    async def health_check(self) -> bool:
        """Verify the backing service is reachable."""
        ...
