"""Redis-specific exceptions for lockbot-redis."""

from __future__ import annotations

from lockbot_core.primitives.exceptions import StoreUnavailableError


class RedisStoreError(StoreUnavailableError):
    """Raised when Redis could not serve a queue read or write.

    Subclasses ``StoreUnavailableError`` so callers of the engine never need
    to know which store is configured.
    """


class RedisRecordError(RedisStoreError):
    """Raised when a stored queue record cannot be decoded."""
