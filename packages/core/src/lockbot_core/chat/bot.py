"""LockBot — the chat-facing policy layer over the waitlist engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..primitives.keys import LockKey, LockScope
from . import response
from .config import ForceReleasePolicy, LockBotConfig

if TYPE_CHECKING:
    from ..ports.token_authorizer import ITokenAuthorizer
    from ..waitlist.engine import WaitlistEngine
    from .response import Response

logger = logging.getLogger("lockbot.bot")

HELP_KEYWORD = "help"
NEW_TOKEN_KEYWORD = "new"


def _wants_help(resource: str) -> bool:
    return not resource or resource == HELP_KEYWORD


class LockBot:
    """
    Turns parsed chat commands into waitlist operations and responses.

    Store failures (``StoreUnavailableError``, ``StoreConflictExhaustedError``)
    propagate unchanged; translating them into user text is the transport's
    job.

    Example:
        ```python
        bot = LockBot(WaitlistEngine(InMemoryLockQueueStore()), authorizer)

        reply = await bot.join("T1", "C1", "dev", "alice")
        reply.destination  # Destination.CHANNEL
        ```
    """

    def __init__(
        self,
        engine: WaitlistEngine,
        token_authorizer: ITokenAuthorizer,
        config: LockBotConfig | None = None,
    ) -> None:
        self._engine = engine
        self._token_authorizer = token_authorizer
        self._config = config or LockBotConfig()

    async def join(
        self, team: str, channel: str, resource: str | None, user: str
    ) -> Response:
        """``/lock <resource>``: take the lock or join the line for it."""
        if resource is None or _wants_help(resource):
            return response.render_lock_usage(user)
        outcome = await self._engine.join(LockKey(team, channel, resource), user)
        return response.render_join(outcome)

    async def leave(
        self,
        team: str,
        channel: str,
        resource: str | None,
        user: str,
        *,
        force: bool = False,
    ) -> Response:
        """``/unlock <resource> [force]``: release the lock or leave the line."""
        if resource is None or _wants_help(resource):
            return response.render_unlock_usage(user)
        key = LockKey(team, channel, resource)
        if force:
            holder = await self._engine.current_holder(key)
            if holder is None:
                return response.render_already_unlocked(resource)
            if holder != user:
                return await self._force_release(key, holder, user)
        outcome = await self._engine.leave(key, user)
        return response.render_leave(outcome)

    async def force_release(
        self, team: str, channel: str, resource: str | None, user: str
    ) -> Response:
        """Remove whoever holds ``resource`` on behalf of ``user``."""
        return await self.leave(team, channel, resource, user, force=True)

    async def list(self, team: str, channel: str) -> Response:
        """``/locks``: every held resource in this channel."""
        queues = await self._engine.list_all(LockScope(team, channel))
        return response.render_list(queues)

    async def generate_token(
        self, param: str | None, user: str, channel: str, team: str
    ) -> Response:
        """``/lbtoken [new]``: usage text, or a fresh API token."""
        url = self._config.api_url
        if param != NEW_TOKEN_KEYWORD:
            return response.render_token_usage(user, channel, team, url)
        token = await self._token_authorizer.create_access_token(user, channel, team)
        return response.render_token(token, user, channel, team, url)

    async def _force_release(self, key: LockKey, holder: str, user: str) -> Response:
        policy = self._config.force_release_policy
        logger.info(
            "%s force-releasing %s held by %s (policy=%s)",
            user,
            key,
            holder,
            policy.value,
        )
        if policy is ForceReleasePolicy.CLEAR_WAITLIST:
            outcome = await self._engine.clear(key, holder)
        else:
            outcome = await self._engine.leave(key, holder, holder_only=True)
        return response.render_force_release(user, outcome)
