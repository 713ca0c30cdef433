"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the global
settings object picks them up.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_SITE_URL", "https://waitlist.test")
os.environ.setdefault("APP_ALLOWED_ORIGINS", "https://pymcu.com")
os.environ.setdefault("APP_RATE_LIMIT_SWEEP_PROBABILITY", "0")
for _var in ("SES_REGION", "SES_FROM_EMAIL", "SES_ACCESS_KEY_ID", "SES_SECRET_ACCESS_KEY"):
    os.environ.pop(_var, None)

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.email.base import AbstractEmailSender, EmailMessage
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.adapters.store.in_memory import InMemoryWaitlistStore
from app.core.app_factory import create_app
from app.services.waitlist_service import WaitlistService

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class RecordingEmailSender(AbstractEmailSender):
    """Keeps sent messages in memory; optionally fails every send."""

    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[EmailMessage] = []
        self.error = error

    def send(self, message: EmailMessage) -> str | None:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def clock() -> Mock:
    """Millisecond clock for the rate limiter, starting at 1_000_000."""
    return Mock(return_value=1_000_000)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock, sweep_probability=0.0)


@pytest.fixture
def store() -> InMemoryWaitlistStore:
    return InMemoryWaitlistStore()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def service(store: InMemoryWaitlistStore, email_sender: RecordingEmailSender) -> WaitlistService:
    return WaitlistService(
        store=store,
        email_sender=email_sender,
        site_url="https://waitlist.test",
        clock=lambda: FIXED_NOW,
        token_factory=lambda: "a" * 64,
    )


@pytest.fixture
def app(
    limiter: InMemoryFixedWindowRateLimiter,
    store: InMemoryWaitlistStore,
    email_sender: RecordingEmailSender,
) -> FastAPI:
    return create_app(rate_limiter=limiter, store=store, email_sender=email_sender)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create FastAPI test client."""
    return TestClient(app)
