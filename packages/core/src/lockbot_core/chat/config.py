"""Policy configuration for the chat command layer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ForceReleasePolicy(str, Enum):
    """What ``/unlock <resource> force`` by a non-holder does."""

    # Remove the holder only; the next waiter inherits the lock.
    HOLDER_ONLY = "holder_only"
    # Remove the holder and everyone waiting behind them.
    CLEAR_WAITLIST = "clear_waitlist"


class LockBotConfig(BaseModel):
    """Configuration for ``LockBot``."""

    force_release_policy: ForceReleasePolicy = ForceReleasePolicy.HOLDER_ONLY
    # Public base URL of the HTTP API, used in token help text
    api_url: str = "http://localhost:3000"
