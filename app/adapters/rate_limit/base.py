"""Rate limiter interfaces.

Routes depend on this abstraction rather than the in-memory implementation,
so a shared backend can be dropped in later without touching the API layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Limits for one logical endpoint class.

    Attributes:
        window_ms: Window duration in milliseconds.
        max_requests: Maximum accepted requests per identifier per window.
    """

    window_ms: int
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window for the consulted config.
        remaining: Requests left in the current window (0 when rejected).
        reset_time: Epoch milliseconds at which the current window ends.
        retry_after_seconds: Seconds until reset, only set when rejected.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitDecision:
        """Record a request for ``identifier`` and decide whether it is allowed.

        Args:
            identifier: Opaque client key (e.g. namespaced client IP).
            config: Window and limit for the caller's endpoint class.

        Returns:
            RateLimitDecision describing the outcome.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        """Number of identifiers currently tracked."""
        raise NotImplementedError
