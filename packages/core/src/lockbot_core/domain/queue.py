"""Owner entries and the per-resource FIFO queue built from them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import Field, field_validator

from ..primitives.exceptions import AlreadyQueuedError
from .value_object import ValueObject


class OwnerEntry(ValueObject):
    """One requester's place in a queue."""

    name: str = Field(min_length=1)
    joined_at: datetime

    @field_validator("joined_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class LockQueue(ValueObject):
    """Ordered owners of one resource.

    Position 0 is the holder, everyone after it is waiting. The queue is
    immutable: ``enqueue`` and ``remove`` return new instances.

    Usage::

        queue = LockQueue().enqueue("alice", now).enqueue("bob", now)
        queue.holder          # "alice"
        queue.remove("alice") # LockQueue with bob holding
    """

    owners: tuple[OwnerEntry, ...] = ()

    @property
    def holder(self) -> str | None:
        return self.owners[0].name if self.owners else None

    @property
    def holder_entry(self) -> OwnerEntry | None:
        return self.owners[0] if self.owners else None

    @property
    def waiters(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.owners[1:])

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.owners)

    @property
    def is_empty(self) -> bool:
        return not self.owners

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self.owners)

    def enqueue(self, name: str, at: datetime) -> LockQueue:
        """Append ``name`` to the end of the queue.

        ``joined_at`` never goes backwards within a queue: a clock that lags
        the last entry is clamped to that entry's timestamp, and insertion
        order breaks the tie.

        Raises:
            AlreadyQueuedError: If ``name`` is already present.
        """
        if name in self:
            raise AlreadyQueuedError(name)
        if self.owners and at < self.owners[-1].joined_at:
            at = self.owners[-1].joined_at
        entry = OwnerEntry(name=name, joined_at=at)
        return LockQueue(owners=(*self.owners, entry))

    def remove(self, name: str) -> LockQueue:
        """Drop the entry for ``name``, keeping everyone else in order."""
        return LockQueue(
            owners=tuple(entry for entry in self.owners if entry.name != name)
        )


@dataclass(frozen=True)
class VersionedQueue:
    """A queue as read from a store, together with its write version.

    ``version == 0`` means the key was never written. An emptied queue keeps
    its last version; otherwise it reads the same as an absent record.
    """

    queue: LockQueue
    version: int = 0

    @classmethod
    def absent(cls) -> VersionedQueue:
        return cls(queue=LockQueue(), version=0)
