"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- One limiter instance per application, created by the app factory and held
  on ``app.state.rate_limiter``.
- Each endpoint class (registration, confirmation, unsubscription) has its
  own named config and its own key namespace, so a client's confirmation
  clicks never consume its registration budget.
- Clients are identified by their forwarded/real IP address.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig
from app.core.config import AppSettings, settings
from app.core.errors import RateLimitedAppError

logger = logging.getLogger(__name__)

WAITLIST = "waitlist"
CONFIRM = "confirm"
UNSUBSCRIBE = "unsubscribe"

UNKNOWN_CLIENT = "unknown"


def build_rate_limit_configs(app_settings: AppSettings | None = None) -> dict[str, RateLimitConfig]:
    """Build the named limits for each endpoint class from settings.

    Defaults: registration 3 per 15 minutes, confirmation 10 per 5 minutes,
    unsubscription 5 per 5 minutes.
    """

    cfg = app_settings or settings.app
    return {
        WAITLIST: RateLimitConfig(
            window_ms=cfg.rate_limit_waitlist_window_seconds * 1000,
            max_requests=cfg.rate_limit_waitlist_requests,
        ),
        CONFIRM: RateLimitConfig(
            window_ms=cfg.rate_limit_confirm_window_seconds * 1000,
            max_requests=cfg.rate_limit_confirm_requests,
        ),
        UNSUBSCRIBE: RateLimitConfig(
            window_ms=cfg.rate_limit_unsubscribe_window_seconds * 1000,
            max_requests=cfg.rate_limit_unsubscribe_requests,
        ),
    }


def get_client_ip(request: Request) -> str:
    """Resolve the client address from proxy headers.

    Priority: first entry of ``X-Forwarded-For``, then ``X-Real-IP``, then
    ``CF-Connecting-IP``. Falls back to ``"unknown"``, which means every
    unidentified client shares one bucket.

    Examples:
        ``X-Forwarded-For: 203.0.113.7, 10.0.0.1`` resolves to ``203.0.113.7``.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    cf_connecting_ip = request.headers.get("cf-connecting-ip")
    if cf_connecting_ip:
        return cf_connecting_ip

    return UNKNOWN_CLIENT


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def _hash_identifier(identifier: str) -> str:
    """Hash the limiter key for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def rate_limit(endpoint: str) -> Callable[[Request], Awaitable[None]]:
    """Create a dependency enforcing the named endpoint class's limit.

    Usage:
        @router.post("/waitlist", dependencies=[Depends(rate_limit(WAITLIST))])

    Args:
        endpoint: One of ``WAITLIST``, ``CONFIRM`` or ``UNSUBSCRIBE``.

    Raises:
        KeyError: If ``endpoint`` is not a known endpoint class.
    """

    if endpoint not in build_rate_limit_configs():
        raise KeyError(f"Unknown rate limit endpoint class: {endpoint!r}")

    async def enforce_rate_limit(request: Request) -> None:
        """Consume one request from the client's budget or raise 429."""

        if not settings.app.rate_limit_enabled:
            return

        config = request.app.state.rate_limit_configs[endpoint]
        identifier = f"{endpoint}:{get_client_ip(request)}"
        decision = get_rate_limiter(request).check(identifier, config)

        if decision.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "endpoint": endpoint,
                    "key_hash": _hash_identifier(identifier),
                    "remaining": decision.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "endpoint": endpoint,
                "key_hash": _hash_identifier(identifier),
                "limit": decision.limit,
                "window_ms": config.window_ms,
                "retry_after_s": decision.retry_after_seconds,
            },
        )
        raise RateLimitedAppError(
            code="rate_limited",
            message="Too many requests. Please try again later.",
            details={
                "endpoint": endpoint,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "reset_time": decision.reset_time,
                "retry_after": decision.retry_after_seconds or 0,
            },
        )

    return enforce_rate_limit
