"""Redis-backed ILockQueueStore with conditional (compare-and-set) writes."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from lockbot_core.domain.queue import LockQueue, OwnerEntry, VersionedQueue
from lockbot_core.ports.store import ILockQueueStore
from lockbot_core.primitives.exceptions import QueueConflictError

from .exceptions import RedisRecordError, RedisStoreError

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from lockbot_core.primitives.keys import LockKey, LockScope

logger = logging.getLogger("lockbot.redis.store")

# KEYS: [scope_key]
# ARGV: [resource, expected_version, payload]
# Returns {committed (0/1), version}
COMPARE_AND_SET_SCRIPT = """
local raw = redis.call('HGET', KEYS[1], ARGV[1])
local current = 0
if raw then
    current = tonumber(cjson.decode(raw)['version']) or 0
end
if current ~= tonumber(ARGV[2]) then
    return {0, current}
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[3])
return {1, current + 1}
"""

# KEYS: [scope_key]
# ARGV: [resource]
# Returns the tombstone version
CLEAR_SCRIPT = """
local raw = redis.call('HGET', KEYS[1], ARGV[1])
if not raw then
    return 0
end
local version = (tonumber(cjson.decode(raw)['version']) or 0) + 1
redis.call('HSET', KEYS[1], ARGV[1], '{"version":' .. version .. ',"owners":[]}')
return version
"""


class StoredQueue(BaseModel):
    """Wire shape of one hash field."""

    version: int
    owners: list[OwnerEntry]

    def to_versioned(self) -> VersionedQueue:
        return VersionedQueue(
            queue=LockQueue(owners=tuple(self.owners)), version=self.version
        )


def _text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisLockQueueStore(ILockQueueStore):
    """
    Durable queue store on a single Redis instance.

    Layout: one hash per (team, channel) scope, keyed
    ``<prefix>:<team>#<channel>`` with both components percent-encoded so a
    ``#`` or ``:`` inside a name can never make two scopes collide. Each
    hash field is a resource name holding the JSON record
    ``{"version": n, "owners": [{"name": ..., "joined_at": ISO-8601}]}``.

    ``guard`` is a no-op; consistency comes from a Lua compare-and-set on
    ``version`` executed atomically on the server. Emptied or deleted queues
    stay behind as ``{"version": n, "owners": []}`` so a version is never
    handed out twice for the same resource.
    """

    def __init__(
        self,
        redis: Redis,  # type: ignore[type-arg]
        prefix: str = "lockbot:locks",
    ) -> None:
        """
        Initialize RedisLockQueueStore.

        Args:
            redis: An initialized redis.asyncio.Redis client.
            prefix: Key prefix for the per-scope hashes.
        """
        self._redis = redis
        self._prefix = prefix

    @classmethod
    def from_url(
        cls, url: str, prefix: str = "lockbot:locks", **kwargs: Any
    ) -> RedisLockQueueStore:
        """Build a store with its own client, e.g. ``redis://localhost:6379/0``."""
        return cls(Redis.from_url(url, **kwargs), prefix=prefix)

    def _scope_key(self, team: str, channel: str) -> str:
        return f"{self._prefix}:{quote(team, safe='')}#{quote(channel, safe='')}"

    def guard(
        self,
        key: LockKey,  # noqa: ARG002
    ) -> AbstractAsyncContextManager[object]:
        return contextlib.nullcontext()

    async def read(self, key: LockKey) -> VersionedQueue:
        scope_key = self._scope_key(key.team, key.channel)
        try:
            raw = await self._redis.hget(scope_key, key.resource)
        except RedisError as exc:
            logger.error("Redis read failed for %s: %s", key, exc)
            raise RedisStoreError(f"Could not read {key}: {exc}") from exc
        if raw is None:
            return VersionedQueue.absent()
        return self._decode(key.resource, raw).to_versioned()

    async def write(
        self, key: LockKey, queue: LockQueue, *, expected_version: int
    ) -> VersionedQueue:
        scope_key = self._scope_key(key.team, key.channel)
        payload = StoredQueue(
            version=expected_version + 1, owners=list(queue.owners)
        ).model_dump_json()

        try:
            result = await self._redis.eval(  # type: ignore[misc]
                COMPARE_AND_SET_SCRIPT,
                1,
                scope_key,
                key.resource,
                str(expected_version),
                payload,
            )
        except RedisError as exc:
            logger.error("Redis write failed for %s: %s", key, exc)
            raise RedisStoreError(f"Could not write {key}: {exc}") from exc

        committed, version = (int(part) for part in result)
        if not committed:
            raise QueueConflictError(key, expected_version, version)
        logger.debug("Stored %s at version %d", key, version)
        return VersionedQueue(queue=queue, version=version)

    async def list_by_scope(self, scope: LockScope) -> dict[str, LockQueue]:
        scope_key = self._scope_key(scope.team, scope.channel)
        try:
            fields = await self._redis.hgetall(scope_key)
        except RedisError as exc:
            logger.error("Redis scan failed for %s: %s", scope, exc)
            raise RedisStoreError(f"Could not list {scope}: {exc}") from exc

        queues: dict[str, LockQueue] = {}
        for raw_resource, raw in fields.items():
            resource = _text(raw_resource)
            queue = self._decode(resource, raw).to_versioned().queue
            if not queue.is_empty:
                queues[resource] = queue
        return queues

    async def delete(self, key: LockKey) -> None:
        scope_key = self._scope_key(key.team, key.channel)
        try:
            version = await self._redis.eval(  # type: ignore[misc]
                CLEAR_SCRIPT, 1, scope_key, key.resource
            )
        except RedisError as exc:
            logger.error("Redis clear failed for %s: %s", key, exc)
            raise RedisStoreError(f"Could not delete {key}: {exc}") from exc
        if int(version):
            logger.debug("Cleared %s at version %d", key, int(version))

    async def health_check(self) -> bool:
        """Verify Redis health."""
        try:
            await self._redis.ping()
            return True
        except RedisError:
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        await self._redis.aclose()

    @staticmethod
    def _decode(resource: str, raw: bytes | str) -> StoredQueue:
        try:
            return StoredQueue.model_validate_json(raw)
        except ValidationError as exc:
            logger.exception("Corrupt queue record for resource %s", resource)
            raise RedisRecordError(
                f"Stored queue for {resource!r} is not a valid record"
            ) from exc
