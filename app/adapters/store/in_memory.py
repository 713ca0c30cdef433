"""In-memory waitlist store for local development and tests.

Data lives only as long as the process. Thread-safe: sync routes run on a
thread pool.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from app.adapters.store.base import AbstractWaitlistStore, WaitlistEntry, WaitlistStatus
from app.core.errors import DuplicateEmailError, StoreAppError


class InMemoryWaitlistStore(AbstractWaitlistStore):
    """Dict-backed store keyed by entry id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, WaitlistEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        with self._lock:
            if any(e.email == entry.email for e in self._entries.values()):
                raise DuplicateEmailError(
                    code="duplicate_email",
                    message="Email is already on the waitlist",
                )
            self._entries[entry.id] = replace(entry)
            return replace(entry)

    def find_by_email(self, email: str) -> WaitlistEntry | None:
        with self._lock:
            for entry in self._entries.values():
                if entry.email == email:
                    return replace(entry)
        return None

    def find_by_token(self, token: str) -> WaitlistEntry | None:
        with self._lock:
            for entry in self._entries.values():
                if entry.confirmation_token is not None and entry.confirmation_token == token:
                    return replace(entry)
        return None

    def mark_confirmed(self, entry_id: str, confirmed_at: datetime) -> WaitlistEntry:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise StoreAppError(
                    code="entry_missing",
                    message="Failed to confirm registration. Please try again.",
                )
            entry.status = WaitlistStatus.CONFIRMED
            entry.confirmed_at = confirmed_at
            entry.confirmation_token = None
            return replace(entry)

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            return self._entries.pop(entry_id, None) is not None
