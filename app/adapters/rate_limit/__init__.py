"""Rate limiting adapters.

The service starts with a per-process in-memory limiter; the abstraction lets
a shared store replace it without changing the API layer.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig, RateLimitDecision
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitDecision",
]
