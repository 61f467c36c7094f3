"""Waitlist engine: queue transitions, retry configuration and outcomes."""

from __future__ import annotations

from .config import (
    ExponentialBackoffPolicy,
    FixedRetryPolicy,
    RetryPolicy,
    WaitlistConfig,
)
from .engine import WaitlistEngine
from .outcomes import JoinOutcome, LeaveOutcome

__all__ = [
    "ExponentialBackoffPolicy",
    "FixedRetryPolicy",
    "JoinOutcome",
    "LeaveOutcome",
    "RetryPolicy",
    "WaitlistConfig",
    "WaitlistEngine",
]
