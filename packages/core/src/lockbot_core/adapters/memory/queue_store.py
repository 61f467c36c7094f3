"""InMemoryLockQueueStore — dict-backed store for tests and single-node use."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from ...domain.queue import LockQueue, VersionedQueue
from ...ports.store import ILockQueueStore
from ...primitives.exceptions import QueueConflictError
from .locking import InMemoryLockStrategy

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ...ports.locking import ILockStrategy
    from ...primitives.keys import LockKey, LockScope

logger = logging.getLogger("lockbot.store.memory")


class InMemoryLockQueueStore(ILockQueueStore):
    """In-memory implementation of ``ILockQueueStore``.

    Serializes every read-modify-write cycle per key through an
    ``ILockStrategy`` and additionally checks versions on write, so it is
    safe under both concurrency models. State lives for the lifetime of the
    process. Emptied queues are kept as versioned tombstones so versions
    only ever grow.
    """

    def __init__(
        self,
        lock_strategy: ILockStrategy | None = None,
        *,
        guard_timeout: float = 10.0,
    ) -> None:
        self._records: dict[LockKey, VersionedQueue] = {}
        self._lock_strategy = lock_strategy or InMemoryLockStrategy()
        self._guard_timeout = guard_timeout

    @asynccontextmanager
    async def guard(self, key: LockKey) -> AsyncIterator[None]:
        token = await self._lock_strategy.acquire(key, timeout=self._guard_timeout)
        try:
            yield
        finally:
            await self._lock_strategy.release(key, token)

    async def read(self, key: LockKey) -> VersionedQueue:
        return self._records.get(key) or VersionedQueue.absent()

    async def write(
        self, key: LockKey, queue: LockQueue, *, expected_version: int
    ) -> VersionedQueue:
        current = self._records.get(key)
        current_version = current.version if current else 0
        if current_version != expected_version:
            raise QueueConflictError(key, expected_version, current_version)

        stored = VersionedQueue(queue=queue, version=current_version + 1)
        self._records[key] = stored
        logger.debug("Stored %s at version %d", key, stored.version)
        return stored

    async def list_by_scope(self, scope: LockScope) -> dict[str, LockQueue]:
        return {
            key.resource: record.queue
            for key, record in self._records.items()
            if key.scope == scope and not record.queue.is_empty
        }

    async def delete(self, key: LockKey) -> None:
        current = self._records.get(key)
        if current is not None:
            self._records[key] = VersionedQueue(
                queue=LockQueue(), version=current.version + 1
            )

    async def health_check(self) -> bool:
        return await self._lock_strategy.health_check()

    # ── Test helpers ─────────────────────────────────────────────

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return sum(
            1 for record in self._records.values() if not record.queue.is_empty
        )
