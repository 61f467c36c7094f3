"""WaitlistEngine — join/leave transitions over per-resource FIFO queues."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypeVar

from ..domain.queue import LockQueue
from ..primitives.exceptions import (
    InvalidRequestError,
    LockAcquisitionError,
    QueueConflictError,
    StoreConflictExhaustedError,
    StoreUnavailableError,
)
from .config import WaitlistConfig
from .outcomes import JoinOutcome, LeaveOutcome

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..ports.store import ILockQueueStore
    from ..primitives.keys import LockKey, LockScope

    # Returns the queue to persist, or None when the transition is a no-op.
    Transition = Callable[[LockQueue], LockQueue | None]

T = TypeVar("T")

logger = logging.getLogger("lockbot.waitlist")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_requester(requester: str) -> None:
    if not isinstance(requester, str) or not requester:
        raise InvalidRequestError({"requester": ["must be a non-empty string"]})


class WaitlistEngine:
    """
    Applies queue transitions through an ``ILockQueueStore``.

    Every mutation is one read-modify-write cycle held inside
    ``store.guard(key)``. A conditional write that loses a race raises
    ``QueueConflictError``; the whole cycle is then re-run after a delay from
    the configured retry policy, until ``StoreConflictExhaustedError``.
    No-op transitions (joining twice, leaving a queue you are not in) issue no
    write at all.

    The engine keeps no state between calls; the store is the only authority
    on queue contents.

    Usage::

        engine = WaitlistEngine(InMemoryLockQueueStore())
        key = LockKey("T", "C", "dev")

        await engine.join(key, "alice")   # alice holds dev
        await engine.join(key, "bob")     # bob waits
        await engine.leave(key, "alice")  # bob now holds dev
    """

    def __init__(
        self,
        store: ILockQueueStore,
        config: WaitlistConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._config = config or WaitlistConfig()
        self._clock = clock or _utcnow

    # ── Operations ───────────────────────────────────────────────

    async def join(self, key: LockKey, requester: str) -> JoinOutcome:
        """Append ``requester`` to the queue unless already in it."""
        _check_requester(requester)

        def transition(queue: LockQueue) -> LockQueue | None:
            if requester in queue:
                return None
            return queue.enqueue(requester, self._clock())

        _, queue, committed = await self._mutate(key, transition)
        if committed:
            logger.info(
                "%s joined %s at position %d", requester, key, len(queue.owners) - 1
            )
        else:
            logger.debug("%s already queued for %s", requester, key)
        return JoinOutcome(
            key=key, requester=requester, queue=queue, already_member=not committed
        )

    async def leave(
        self, key: LockKey, requester: str, *, holder_only: bool = False
    ) -> LeaveOutcome:
        """Remove ``requester``'s entry; the next waiter inherits the lock.

        With ``holder_only`` the entry is removed only while ``requester`` is
        still at position 0, so a forced release never strikes someone who
        has meanwhile dropped back into the line.
        """
        _check_requester(requester)

        def transition(queue: LockQueue) -> LockQueue | None:
            if requester not in queue:
                return None
            if holder_only and queue.holder != requester:
                return None
            return queue.remove(requester)

        previous, queue, committed = await self._mutate(key, transition)
        if committed:
            logger.info(
                "%s left %s (holder now %s)", requester, key, queue.holder or "none"
            )
        else:
            logger.debug("%s not queued for %s", requester, key)
        return LeaveOutcome(
            key=key,
            requester=requester,
            queue=queue,
            previous=previous,
            was_member=committed,
        )

    async def clear(self, key: LockKey, requester: str) -> LeaveOutcome:
        """Drop every entry for ``key`` on behalf of ``requester``."""
        _check_requester(requester)

        def transition(queue: LockQueue) -> LockQueue | None:
            return None if queue.is_empty else LockQueue()

        previous, queue, committed = await self._mutate(key, transition)
        if committed:
            logger.info(
                "%s cleared %s (%d entries dropped)",
                requester,
                key,
                len(previous.owners),
            )
        return LeaveOutcome(
            key=key,
            requester=requester,
            queue=queue,
            previous=previous,
            was_member=committed,
        )

    async def list_all(self, scope: LockScope) -> dict[str, LockQueue]:
        """Every non-empty queue in ``scope``, keyed by resource."""
        queues = await self._call(self._store.list_by_scope(scope))
        return {
            resource: queue
            for resource, queue in queues.items()
            if not queue.is_empty
        }

    async def current_holder(self, key: LockKey) -> str | None:
        """Name at position 0, or None when nobody holds ``key``."""
        current = await self._call(self._store.read(key))
        return current.queue.holder

    # ── Read-modify-write cycle ──────────────────────────────────

    async def _mutate(
        self, key: LockKey, transition: Transition
    ) -> tuple[LockQueue, LockQueue, bool]:
        """Run ``transition`` against the stored queue until it commits.

        Returns:
            ``(previous, current, committed)``
        """
        policy = self._config.retry_policy
        attempts = self._config.max_attempts

        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(policy.delay_seconds(attempt - 1))
            try:
                async with self._store.guard(key):
                    current = await self._call(self._store.read(key))
                    proposed = transition(current.queue)
                    if proposed is None:
                        return current.queue, current.queue, False
                    stored = await self._call(
                        self._store.write(
                            key, proposed, expected_version=current.version
                        )
                    )
                    return current.queue, stored.queue, True
            except QueueConflictError as exc:
                logger.warning(
                    "Conflicting write on %s (attempt %d/%d): %s",
                    key,
                    attempt + 1,
                    attempts,
                    exc,
                )
            except LockAcquisitionError as exc:
                raise StoreUnavailableError(str(exc)) from exc

        raise StoreConflictExhaustedError(key, attempts)

    async def _call(self, operation: Awaitable[T]) -> T:
        """Await one store call, bounded by ``store_timeout``."""
        timeout = self._config.store_timeout
        try:
            return await asyncio.wait_for(operation, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Store call timed out after %.1fs", timeout)
            raise StoreUnavailableError(
                f"Store did not answer within {timeout}s"
            ) from exc
