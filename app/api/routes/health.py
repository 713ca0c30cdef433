from __future__ import annotations

from fastapi import APIRouter, Request

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Reports liveness plus the number of client windows the rate limiter is
    currently tracking, which helps spot unbounded growth between sweeps.

    Returns:
        dict: ``status``, ``environment`` and ``rate_limit_keys``.
    """

    limiter = request.app.state.rate_limiter
    return {
        "status": "ok",
        "environment": settings.app_env,
        "rate_limit_keys": len(limiter),
    }
