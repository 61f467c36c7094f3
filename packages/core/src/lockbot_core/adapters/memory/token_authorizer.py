"""InMemoryTokenAuthorizer — process-local API token issuing."""

from __future__ import annotations

import hashlib
import logging
import secrets

from ...ports.token_authorizer import ITokenAuthorizer

logger = logging.getLogger("lockbot.tokens")


def _digest(user: str, token: str) -> str:
    return hashlib.sha256(f"{user}:{token}".encode()).hexdigest()


class InMemoryTokenAuthorizer(ITokenAuthorizer):
    """
    Issues one token per (channel, team) and remembers only its digest.

    A freshly created token replaces the stored digest, which invalidates the
    token previously issued for the same channel, whoever requested it.
    """

    def __init__(self, token_bytes: int = 32) -> None:
        self._token_bytes = token_bytes
        self._digests: dict[tuple[str, str], str] = {}

    async def create_access_token(self, user: str, channel: str, team: str) -> str:
        token = secrets.token_urlsafe(self._token_bytes)
        replaced = (channel, team) in self._digests
        self._digests[(channel, team)] = _digest(user, token)
        logger.info(
            "Issued access token for user=%s channel=%s team=%s (replaced=%s)",
            user,
            channel,
            team,
            replaced,
        )
        return token

    async def verify(self, user: str, channel: str, team: str, token: str) -> bool:
        expected = self._digests.get((channel, team))
        if expected is None:
            return False
        return secrets.compare_digest(expected, _digest(user, token))
