"""Application factory for the FastAPI app.

Builds the app together with the state it owns: the rate limiter, the
waitlist store and the email sender live on ``app.state`` for the lifetime
of the serving process. Tests pass their own instances in.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.factory import create_email_sender
from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.store.base import AbstractWaitlistStore
from app.adapters.store.factory import create_waitlist_store
from app.api.routes import health_router, waitlist_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, security_headers_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limit_configs
from app.services.waitlist_service import WaitlistService


def get_allowed_origins() -> list[str]:
    """CORS origins from settings, plus localhost origins outside production."""
    origins = [o.strip() for o in settings.app.allowed_origins.split(",") if o.strip()]
    if not settings.is_production:
        origins.extend(o.strip() for o in settings.app.dev_origins.split(",") if o.strip())
    return origins


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    store: AbstractWaitlistStore | None = None,
    email_sender: AbstractEmailSender | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; defaults to a fresh in-memory limiter.
        store: Waitlist store; defaults to the configured backend.
        email_sender: Email sender; defaults to SES or the logging fallback.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Waitlist API",
        description=(
            "Backend for the marketing site's waitlist: sign up with an email, "
            "confirm through the emailed link (double opt-in) and unsubscribe. "
            "Every endpoint is rate limited per client IP."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    if rate_limiter is None:
        rate_limiter = InMemoryFixedWindowRateLimiter(
            sweep_probability=settings.app.rate_limit_sweep_probability,
        )
    if store is None:
        store = create_waitlist_store()
    if email_sender is None:
        email_sender = create_email_sender()

    app.state.rate_limiter = rate_limiter
    app.state.rate_limit_configs = build_rate_limit_configs()
    app.state.waitlist_service = WaitlistService(
        store=store,
        email_sender=email_sender,
        site_url=settings.app.site_url,
    )

    # Middleware (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        max_age=settings.app.cors_max_age_seconds,
    )
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(waitlist_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
