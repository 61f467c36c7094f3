"""ITokenAuthorizer — issues API access tokens for a chat scope."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ITokenAuthorizer(Protocol):
    """
    Creates API access tokens scoped to (user, channel, team).

    Issuing a new token for a (channel, team) pair must invalidate any token
    previously issued for that pair.
    """

    async def create_access_token(self, user: str, channel: str, team: str) -> str:
        """Return a freshly generated token string."""
        ...
