"""Tests for WaitlistEngine."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from lockbot_core.adapters.memory import InMemoryLockQueueStore
from lockbot_core.domain import LockQueue, VersionedQueue
from lockbot_core.primitives import (
    InvalidRequestError,
    LockKey,
    LockScope,
    QueueConflictError,
    StoreConflictExhaustedError,
    StoreUnavailableError,
)
from lockbot_core.waitlist import FixedRetryPolicy, WaitlistConfig, WaitlistEngine

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from contextlib import AbstractAsyncContextManager

KEY = LockKey("T", "C", "dev")
T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

FAST_RETRIES = WaitlistConfig(
    retry_policy=FixedRetryPolicy(max_retries=3, delay_ms=0, jitter=False)
)


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


class RecordingStore(InMemoryLockQueueStore):
    """Counts writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    async def write(
        self, key: LockKey, queue: LockQueue, *, expected_version: int
    ) -> VersionedQueue:
        self.writes += 1
        return await super().write(key, queue, expected_version=expected_version)


class OptimisticStore(InMemoryLockQueueStore):
    """No mutual exclusion: relies only on conditional writes.

    Reads yield to the event loop so concurrent cycles interleave.
    """

    def guard(self, key: LockKey) -> AbstractAsyncContextManager[object]:
        return contextlib.nullcontext()

    async def read(self, key: LockKey) -> VersionedQueue:
        current = await super().read(key)
        await asyncio.sleep(0)
        return current


class InterleavingStore(OptimisticStore):
    """Runs ``rival`` once, right after the next read returns."""

    def __init__(self) -> None:
        super().__init__()
        self.rival: Callable[[], Awaitable[None]] | None = None

    async def read(self, key: LockKey) -> VersionedQueue:
        current = await super().read(key)
        rival, self.rival = self.rival, None
        if rival is not None:
            await rival()
        return current


class ConflictingStore(InMemoryLockQueueStore):
    """Loses the first ``conflicts`` writes to an imaginary rival."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.attempts = 0

    async def write(
        self, key: LockKey, queue: LockQueue, *, expected_version: int
    ) -> VersionedQueue:
        self.attempts += 1
        if self.attempts <= self.conflicts:
            raise QueueConflictError(key, expected_version, expected_version + 1)
        return await super().write(key, queue, expected_version=expected_version)


class BrokenStore(InMemoryLockQueueStore):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    async def read(self, key: LockKey) -> VersionedQueue:
        raise self.error


class SlowStore(InMemoryLockQueueStore):
    async def read(self, key: LockKey) -> VersionedQueue:
        await asyncio.sleep(1)
        return await super().read(key)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def engine(store: RecordingStore) -> WaitlistEngine:
    return WaitlistEngine(store, FAST_RETRIES, clock=TickingClock())


class TestJoin:
    """join appends once and is idempotent for members."""

    async def test_first_join_takes_the_lock(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        outcome = await engine.join(KEY, "alice")

        assert outcome.already_member is False
        assert outcome.changed is True
        assert outcome.queue.names == ("alice",)
        assert outcome.queue.owners[0].joined_at == T0
        assert store.writes == 1

    async def test_later_joins_wait_in_order(self, engine: WaitlistEngine) -> None:
        await engine.join(KEY, "alice")
        await engine.join(KEY, "bob")
        outcome = await engine.join(KEY, "carol")

        assert outcome.queue.names == ("alice", "bob", "carol")
        assert outcome.queue.holder == "alice"

    async def test_repeated_join_is_idempotent(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        await engine.join(KEY, "alice")
        await engine.join(KEY, "bob")
        before = await store.read(KEY)
        writes = store.writes

        for _ in range(3):
            outcome = await engine.join(KEY, "bob")
            assert outcome.already_member is True
            assert outcome.queue == before.queue

        after = await store.read(KEY)
        assert after == before
        assert store.writes == writes

    async def test_no_duplicate_membership(self, engine: WaitlistEngine) -> None:
        for name in ["alice", "bob", "alice", "carol", "bob", "alice"]:
            outcome = await engine.join(KEY, name)
            assert len(outcome.queue.names) == len(set(outcome.queue.names))

        assert outcome.queue.names == ("alice", "bob", "carol")

    async def test_joined_at_never_goes_backwards(self, store: RecordingStore) -> None:
        clock = TickingClock(step=timedelta(seconds=-1))
        engine = WaitlistEngine(store, FAST_RETRIES, clock=clock)

        await engine.join(KEY, "alice")
        outcome = await engine.join(KEY, "bob")

        first, second = outcome.queue.owners
        assert second.joined_at >= first.joined_at

    async def test_empty_requester_rejected(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        with pytest.raises(InvalidRequestError):
            await engine.join(KEY, "")
        assert store.writes == 0


class TestLeave:
    """leave removes by identity and promotes the next waiter."""

    async def _queue(self, engine: WaitlistEngine, *names: str) -> None:
        for name in names:
            await engine.join(KEY, name)

    async def test_holder_leaves_promotes_next(self, engine: WaitlistEngine) -> None:
        await self._queue(engine, "A", "B", "C")

        outcome = await engine.leave(KEY, "A")

        assert outcome.was_member is True
        assert outcome.was_holder is True
        assert outcome.new_holder == "B"
        assert outcome.queue.names == ("B", "C")
        assert await engine.current_holder(KEY) == "B"

    async def test_waiter_leaves_preserves_order(self, engine: WaitlistEngine) -> None:
        await self._queue(engine, "A", "B", "C")

        outcome = await engine.leave(KEY, "B")

        assert outcome.was_holder is False
        assert outcome.new_holder is None
        assert outcome.queue.names == ("A", "C")
        assert await engine.current_holder(KEY) == "A"

    async def test_non_member_is_noop(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        await self._queue(engine, "A")
        writes = store.writes

        outcome = await engine.leave(KEY, "Z")

        assert outcome.was_member is False
        assert outcome.changed is False
        assert outcome.queue.names == ("A",)
        assert store.writes == writes

    async def test_last_leave_empties_queue(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        await self._queue(engine, "A")

        outcome = await engine.leave(KEY, "A")

        assert outcome.queue.is_empty
        assert outcome.new_holder is None
        assert len(store) == 0
        assert await engine.current_holder(KEY) is None

    async def test_holder_only_skips_waiters(self, engine: WaitlistEngine) -> None:
        await self._queue(engine, "A", "B")

        outcome = await engine.leave(KEY, "B", holder_only=True)

        assert outcome.was_member is False
        assert outcome.queue.names == ("A", "B")

    async def test_leave_on_unknown_key(self, engine: WaitlistEngine) -> None:
        outcome = await engine.leave(LockKey("T", "C", "nothing"), "A")

        assert outcome.was_member is False
        assert outcome.queue.is_empty


class TestClear:
    async def test_clear_drops_everyone(self, engine: WaitlistEngine) -> None:
        for name in ("A", "B", "C"):
            await engine.join(KEY, name)

        outcome = await engine.clear(KEY, "A")

        assert outcome.was_member is True
        assert outcome.previous.names == ("A", "B", "C")
        assert outcome.queue.is_empty
        assert await engine.list_all(KEY.scope) == {}

    async def test_clear_empty_is_noop(
        self, engine: WaitlistEngine, store: RecordingStore
    ) -> None:
        outcome = await engine.clear(KEY, "A")

        assert outcome.was_member is False
        assert store.writes == 0


class TestListAll:
    async def test_scoped_isolation(self, engine: WaitlistEngine) -> None:
        await engine.join(LockKey("T1", "C1", "dev"), "alice")
        await engine.join(LockKey("T1", "C1", "dev"), "bob")
        await engine.join(LockKey("T1", "C1", "qa"), "carol")
        await engine.join(LockKey("T1", "C2", "dev"), "eve")
        await engine.join(LockKey("T2", "C1", "dev"), "mallory")

        listing = await engine.list_all(LockScope("T1", "C1"))

        assert set(listing) == {"dev", "qa"}
        assert listing["dev"].names == ("alice", "bob")
        assert listing["qa"].names == ("carol",)

    async def test_released_resources_disappear(self, engine: WaitlistEngine) -> None:
        await engine.join(KEY, "alice")
        await engine.leave(KEY, "alice")

        assert await engine.list_all(KEY.scope) == {}


class TestConcurrency:
    """Concurrent cycles on one key never lose an update."""

    async def test_concurrent_joins_with_guarded_store(self) -> None:
        engine = WaitlistEngine(InMemoryLockQueueStore(), FAST_RETRIES)

        await asyncio.gather(engine.join(KEY, "U1"), engine.join(KEY, "U2"))

        listing = await engine.list_all(KEY.scope)
        assert sorted(listing["dev"].names) == ["U1", "U2"]

    async def test_concurrent_joins_with_conditional_writes(self) -> None:
        store = OptimisticStore()
        engine = WaitlistEngine(store, FAST_RETRIES)

        await asyncio.gather(engine.join(KEY, "U1"), engine.join(KEY, "U2"))

        current = await store.read(KEY)
        assert sorted(current.queue.names) == ["U1", "U2"]
        assert current.version == 2

    async def test_many_concurrent_joins(self) -> None:
        store = OptimisticStore()
        config = WaitlistConfig(
            retry_policy=FixedRetryPolicy(max_retries=50, delay_ms=0, jitter=False)
        )
        engine = WaitlistEngine(store, config)
        names = [f"user{i}" for i in range(10)]

        await asyncio.gather(*(engine.join(KEY, name) for name in names))

        current = await store.read(KEY)
        assert sorted(current.queue.names) == sorted(names)

    async def test_concurrent_join_and_leave(self) -> None:
        store = OptimisticStore()
        engine = WaitlistEngine(store, FAST_RETRIES)
        await engine.join(KEY, "A")

        await asyncio.gather(engine.join(KEY, "B"), engine.leave(KEY, "A"))

        assert (await store.read(KEY)).queue.names == ("B",)

    async def test_conflict_is_retried(self) -> None:
        store = ConflictingStore(conflicts=2)
        engine = WaitlistEngine(store, FAST_RETRIES)

        outcome = await engine.join(KEY, "alice")

        assert outcome.queue.names == ("alice",)
        assert store.attempts == 3

    async def test_stale_read_across_emptied_queue_is_retried(self) -> None:
        store = InterleavingStore()
        engine = WaitlistEngine(store, FAST_RETRIES)
        await engine.join(KEY, "X")

        async def rival() -> None:
            await engine.leave(KEY, "X")
            await engine.join(KEY, "Z")

        store.rival = rival
        outcome = await engine.join(KEY, "Y")

        assert outcome.queue.names == ("Z", "Y")
        assert (await store.read(KEY)).queue.names == ("Z", "Y")

    async def test_conflict_retries_are_bounded(self) -> None:
        store = ConflictingStore(conflicts=100)
        engine = WaitlistEngine(store, FAST_RETRIES)

        with pytest.raises(StoreConflictExhaustedError) as exc:
            await engine.join(KEY, "alice")

        assert exc.value.attempts == 4
        assert exc.value.key == KEY
        assert store.attempts == 4
        assert (await store.read(KEY)).queue.is_empty


class TestStoreFailures:
    """Store failures surface unchanged and never half-apply."""

    async def test_unavailable_store_propagates_unchanged(self) -> None:
        error = StoreUnavailableError("connection refused")
        engine = WaitlistEngine(BrokenStore(error), FAST_RETRIES)

        for call in (
            engine.join(KEY, "alice"),
            engine.leave(KEY, "alice"),
            engine.current_holder(KEY),
        ):
            with pytest.raises(StoreUnavailableError) as exc:
                await call
            assert exc.value is error

    async def test_store_timeout_is_unavailable(self) -> None:
        config = WaitlistConfig(store_timeout=0.01)
        engine = WaitlistEngine(SlowStore(), config)

        with pytest.raises(StoreUnavailableError, match="within"):
            await engine.join(KEY, "alice")

    async def test_guard_timeout_is_unavailable(self) -> None:
        store = InMemoryLockQueueStore(guard_timeout=0.01)
        engine = WaitlistEngine(store, FAST_RETRIES)

        async with store.guard(KEY):
            with pytest.raises(StoreUnavailableError):
                await engine.join(KEY, "alice")

        assert (await store.read(KEY)).queue.is_empty
