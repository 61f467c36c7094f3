"""InMemoryLockStrategy — single-process implementation of ILockStrategy."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import uuid4

from ...ports.locking import ILockStrategy
from ...primitives.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from ...primitives.keys import LockKey

logger = logging.getLogger("lockbot.locking")


class _FIFOLock:
    """
    FIFO lock that ensures waiters are served in order.

    Ownership is handed directly to the next waiter on release, so a late
    arrival can never overtake someone already in line. Queue size is bounded
    to prevent unbounded memory growth.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._locked = False
        self._waiters: deque[asyncio.Future[None]] = deque()
        self.max_queue_size = max_queue_size

    @property
    def idle(self) -> bool:
        return not self._locked and not self._waiters

    async def acquire(self, timeout: float) -> None:
        """Acquire lock - waits in FIFO order if already locked."""
        if self.idle:
            self._locked = True
            logger.debug("Lock acquired immediately (no queue)")
            return

        if len(self._waiters) >= self.max_queue_size:
            raise asyncio.QueueFull(
                f"Lock queue full ({len(self._waiters)}/{self.max_queue_size})"
            )

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug(
            "Waiting in queue at position %d/%d",
            len(self._waiters),
            self.max_queue_size,
        )
        try:
            await asyncio.wait_for(asyncio.shield(waiter), timeout=timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError):
            self._abandon(waiter)
            raise

    def _abandon(self, waiter: asyncio.Future[None]) -> None:
        if waiter.done() and not waiter.cancelled():
            # Ownership was handed over just as we gave up; pass it on.
            self.release()
            return
        waiter.cancel()
        with contextlib.suppress(ValueError):
            self._waiters.remove(waiter)

    def release(self) -> None:
        """Release lock and hand it to the next live waiter in FIFO order."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                logger.debug(
                    "Handed lock to next waiter (queue size: %d)", len(self._waiters)
                )
                return
        self._locked = False
        logger.debug("Lock released (no waiters)")


@dataclass
class _LockState:
    """State for a single queue lock."""

    fifo_lock: _FIFOLock
    token: str | None = None
    users: int = 0


class InMemoryLockStrategy(ILockStrategy):
    """
    In-memory implementation of ILockStrategy with FIFO queuing.

    Features:
    - FIFO lock ordering (prevents starvation)
    - Per-key state is dropped as soon as nobody holds or waits for it
    - Useful for testing and single-process deployments
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._max_queue_size = max_queue_size
        self._locks: dict[LockKey, _LockState] = {}

    async def acquire(self, key: LockKey, *, timeout: float = 10.0) -> str:
        state = self._locks.get(key)
        if state is None:
            state = _LockState(fifo_lock=_FIFOLock(self._max_queue_size))
            self._locks[key] = state
        state.users += 1

        try:
            await state.fifo_lock.acquire(timeout=timeout)
        except asyncio.TimeoutError as err:
            self._forget(key, state)
            logger.warning(
                "Lock acquisition on %s timed out after %.1fs", key, timeout
            )
            raise LockAcquisitionError(key, timeout, reason="timed out") from err
        except asyncio.QueueFull as err:
            self._forget(key, state)
            raise LockAcquisitionError(
                key, timeout, reason=f"{err}. Too many concurrent requests"
            ) from err
        except asyncio.CancelledError:
            self._forget(key, state)
            raise

        state.token = str(uuid4())
        logger.debug("Lock acquired: %s", key)
        return state.token

    async def release(self, key: LockKey, token: str) -> None:
        state = self._locks.get(key)
        if state is None or state.token != token:
            logger.warning("Attempted to release invalid or expired lock: %s", key)
            return

        state.token = None
        state.fifo_lock.release()
        self._forget(key, state)
        logger.debug("Lock released: %s", key)

    def _forget(self, key: LockKey, state: _LockState) -> None:
        state.users -= 1
        if state.users <= 0 and state.fifo_lock.idle:
            # Clean up to prevent memory leaks
            self._locks.pop(key, None)

    async def health_check(self) -> bool:
        """Always healthy: there is no external dependency that could fail."""
        return True

    def __len__(self) -> int:
        return len(self._locks)
