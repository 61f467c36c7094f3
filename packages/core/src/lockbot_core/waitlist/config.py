"""Retry and timeout configuration for the waitlist engine."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class RetryPolicy(BaseModel, ABC):
    """Base class for conflict retry policies."""

    max_retries: int = Field(default=5, ge=0)
    jitter: bool = True

    @abstractmethod
    def calculate_delay(self, attempt: int) -> int:
        """Return delay in milliseconds before retry number ``attempt``."""
        ...

    def delay_seconds(self, attempt: int) -> float:
        delay_ms = self.calculate_delay(attempt)
        if self.jitter and delay_ms:
            delay_ms = random.randint(delay_ms // 2, delay_ms)  # noqa: S311
        return delay_ms / 1000


class FixedRetryPolicy(RetryPolicy):
    """Retries with a fixed delay between attempts."""

    delay_ms: int = Field(default=20, ge=0)

    def calculate_delay(self, _attempt: int) -> int:
        return self.delay_ms


class ExponentialBackoffPolicy(RetryPolicy):
    """Retries with increasing delay (exponential backoff)."""

    initial_delay_ms: int = Field(default=10, ge=0)
    multiplier: float = 2.0
    max_delay_ms: int = 500

    def calculate_delay(self, attempt: int) -> int:
        delay = self.initial_delay_ms * (self.multiplier**attempt)
        return min(int(delay), self.max_delay_ms)


class WaitlistConfig(BaseModel):
    """Configuration for ``WaitlistEngine``.

    Attributes:
        retry_policy: How often, and how far apart, a conflicting
            read-modify-write cycle is retried.
        store_timeout: Seconds a single store call may take before the
            operation fails with ``StoreUnavailableError``.
    """

    retry_policy: RetryPolicy = Field(default_factory=ExponentialBackoffPolicy)
    store_timeout: float = Field(default=5.0, gt=0)

    @property
    def max_attempts(self) -> int:
        return self.retry_policy.max_retries + 1
