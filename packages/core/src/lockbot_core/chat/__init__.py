"""Chat command layer: policy facade and response assembly."""

from __future__ import annotations

from .bot import LockBot
from .config import ForceReleasePolicy, LockBotConfig
from .response import Destination, Response

__all__ = [
    "Destination",
    "ForceReleasePolicy",
    "LockBot",
    "LockBotConfig",
    "Response",
]
