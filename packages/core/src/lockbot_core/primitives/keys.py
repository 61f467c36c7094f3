"""Composite identities for lock queues."""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidRequestError


def _require(**components: str) -> None:
    errors = {
        name: ["must be a non-empty string"]
        for name, value in components.items()
        if not isinstance(value, str) or not value
    }
    if errors:
        raise InvalidRequestError(errors)


@dataclass(frozen=True)
class LockScope:
    """
    The (team, channel) pair that partitions queues from one another.

    Examples:
        >>> LockScope("T01", "C42")
    """

    team: str
    channel: str

    def __post_init__(self) -> None:
        _require(team=self.team, channel=self.channel)

    def key(self, resource: str) -> LockKey:
        return LockKey(self.team, self.channel, resource)

    def __str__(self) -> str:
        return f"{self.team}/{self.channel}"


@dataclass(frozen=True)
class LockKey:
    """
    Identifies a single resource queue.

    Equality is structural and case-sensitive over all three components;
    nothing is normalised.

    Examples:
        >>> LockKey("T01", "C42", "dev")
        >>> LockScope("T01", "C42").key("staging")
    """

    team: str
    channel: str
    resource: str

    def __post_init__(self) -> None:
        _require(team=self.team, channel=self.channel, resource=self.resource)

    @property
    def scope(self) -> LockScope:
        return LockScope(self.team, self.channel)

    def __str__(self) -> str:
        return f"{self.team}/{self.channel}/{self.resource}"
