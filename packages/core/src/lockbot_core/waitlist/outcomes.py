"""Results returned by the waitlist engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.queue import LockQueue
    from ..primitives.keys import LockKey


@dataclass(frozen=True)
class JoinOutcome:
    """Result of ``WaitlistEngine.join``.

    ``already_member`` is True when the requester was queued before the call;
    in that case nothing was written and ``queue`` is the unchanged queue.
    """

    key: LockKey
    requester: str
    queue: LockQueue
    already_member: bool

    @property
    def changed(self) -> bool:
        return not self.already_member


@dataclass(frozen=True)
class LeaveOutcome:
    """Result of ``WaitlistEngine.leave`` and ``WaitlistEngine.clear``.

    ``previous`` is the queue as it was read before the removal, which lets
    callers tell whether the holder changed hands.
    """

    key: LockKey
    requester: str
    queue: LockQueue
    previous: LockQueue
    was_member: bool

    @property
    def changed(self) -> bool:
        return self.was_member

    @property
    def was_holder(self) -> bool:
        return self.was_member and self.previous.holder == self.requester

    @property
    def new_holder(self) -> str | None:
        """The holder after the removal, if the removal promoted someone."""
        if self.queue.holder != self.previous.holder:
            return self.queue.holder
        return None
