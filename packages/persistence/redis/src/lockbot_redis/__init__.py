"""Redis integration for lockbot."""

from __future__ import annotations

from .exceptions import RedisRecordError, RedisStoreError
from .queue_store import RedisLockQueueStore

__all__ = [
    "RedisLockQueueStore",
    "RedisRecordError",
    "RedisStoreError",
]
