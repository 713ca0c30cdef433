"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: state resets on restart and is not shared between workers.
- Thread-safe: sync routes run on a thread pool, so every check holds a lock.
- Expired entries are reclaimed lazily and by an occasional full sweep.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitDecision,
)

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_PROBABILITY = 0.01


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _WindowState:
    count: int
    reset_time: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Fixed-window counter with an independent window per identifier.

    A window opens on the first request seen for an identifier (or the first
    one after the previous window expired) and lasts ``config.window_ms``.
    Windows are not aligned to wall-clock boundaries, so different clients
    reset at different moments. A client timing requests around its own
    reset can get up to ``2 * max_requests - 1`` through in roughly two
    windows; that is inherent to fixed-window counting.

    Important:
        This limiter is per-process only. With several Uvicorn/Gunicorn
        workers each worker enforces its own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] = _now_ms,
        sweep_probability: float = DEFAULT_SWEEP_PROBABILITY,
        rng: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning epoch milliseconds.
            sweep_probability: Chance per check of sweeping expired entries.
            rng: Source of floats in [0, 1) used to decide when to sweep.

        Raises:
            ValueError: If sweep_probability is outside [0, 1].
        """
        if not 0.0 <= sweep_probability <= 1.0:
            raise ValueError("sweep_probability must be between 0 and 1")

        self._clock = clock
        self._sweep_probability = sweep_probability
        self._rng = rng
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def check(self, identifier: str, config: RateLimitConfig) -> RateLimitDecision:
        """Count a request against ``identifier`` and return the decision.

        Rejected requests leave the stored window untouched. A request that
        lands exactly on ``reset_time`` still belongs to the old window.

        Args:
            identifier: Client key; empty strings are a valid shared bucket.
            config: Window and limit for the endpoint class.

        Returns:
            RateLimitDecision with remaining budget and reset time.
        """
        now = self._clock()

        with self._lock:
            if self._rng() < self._sweep_probability:
                self._sweep_locked(now)

            state = self._state_by_key.get(identifier)

            if state is None or now > state.reset_time:
                state = _WindowState(count=1, reset_time=now + config.window_ms)
                self._state_by_key[identifier] = state
                return RateLimitDecision(
                    allowed=True,
                    limit=config.max_requests,
                    remaining=config.max_requests - 1,
                    reset_time=state.reset_time,
                )

            if state.count >= config.max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=config.max_requests,
                    remaining=0,
                    reset_time=state.reset_time,
                    retry_after_seconds=max(0, math.ceil((state.reset_time - now) / 1000)),
                )

            state.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=config.max_requests,
                remaining=config.max_requests - state.count,
                reset_time=state.reset_time,
            )

    def sweep(self, now: int | None = None) -> int:
        """Drop every entry whose window ended before ``now``.

        Args:
            now: Epoch milliseconds to compare against; defaults to the clock.

        Returns:
            Number of removed entries.
        """
        if now is None:
            now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def reset(self) -> None:
        """Forget all windows."""
        with self._lock:
            self._state_by_key.clear()

    def _sweep_locked(self, now: int) -> int:
        expired = [key for key, state in self._state_by_key.items() if now > state.reset_time]
        for key in expired:
            del self._state_by_key[key]
        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": len(expired), "remaining_keys": len(self._state_by_key)},
            )
        return len(expired)
