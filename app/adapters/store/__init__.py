"""Waitlist store adapters - abstracts over in-memory and SQL persistence."""

from app.adapters.store.base import AbstractWaitlistStore, WaitlistEntry, WaitlistStatus
from app.adapters.store.factory import create_waitlist_store
from app.adapters.store.in_memory import InMemoryWaitlistStore
from app.adapters.store.sql import SqlWaitlistStore

__all__ = [
    "AbstractWaitlistStore",
    "InMemoryWaitlistStore",
    "SqlWaitlistStore",
    "WaitlistEntry",
    "WaitlistStatus",
    "create_waitlist_store",
]
