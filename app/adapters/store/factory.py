"""Factory for creating the configured waitlist store."""

from app.adapters.store.base import AbstractWaitlistStore
from app.adapters.store.in_memory import InMemoryWaitlistStore
from app.adapters.store.sql import SqlWaitlistStore, build_engine
from app.core.config import StoreSettings, settings
from app.core.errors import ValidationAppError


def create_waitlist_store(store_settings: StoreSettings | None = None) -> AbstractWaitlistStore:
    """Instantiate the store selected by ``STORE_BACKEND``.

    Returns:
        AbstractWaitlistStore: In-memory or SQLAlchemy-backed store.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryWaitlistStore()

    if backend == "sql":
        return SqlWaitlistStore(build_engine(cfg.database_url, echo=cfg.echo))

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, sql",
    )
