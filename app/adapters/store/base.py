"""Waitlist store interface and record type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class WaitlistStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    UNSUBSCRIBED = "unsubscribed"


@dataclass
class WaitlistEntry:
    """A single waitlist signup.

    Attributes:
        id: Opaque identifier assigned at creation.
        email: Lowercased, trimmed address (unique across the store).
        role: Optional self-reported role.
        experience: Optional self-reported experience level.
        updates: Whether the visitor opted into product updates.
        status: Lifecycle state of the signup.
        confirmation_token: Token from the confirmation link; cleared once used.
        created_at: UTC creation time.
        confirmed_at: UTC confirmation time, if confirmed.
    """

    id: str
    email: str
    status: WaitlistStatus
    created_at: datetime
    role: str | None = None
    experience: str | None = None
    updates: bool = False
    confirmation_token: str | None = None
    confirmed_at: datetime | None = None


class AbstractWaitlistStore(ABC):
    """Persistence operations used by the waitlist service.

    Implementations raise ``DuplicateEmailError`` on email collisions and
    ``StoreAppError`` for any other backend failure.
    """

    @abstractmethod
    def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        """Insert a new entry and return the stored copy."""
        raise NotImplementedError

    @abstractmethod
    def find_by_email(self, email: str) -> WaitlistEntry | None:
        raise NotImplementedError

    @abstractmethod
    def find_by_token(self, token: str) -> WaitlistEntry | None:
        raise NotImplementedError

    @abstractmethod
    def mark_confirmed(self, entry_id: str, confirmed_at: datetime) -> WaitlistEntry:
        """Set status to confirmed, stamp ``confirmed_at`` and clear the token.

        Raises:
            StoreAppError: If the entry no longer exists.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, entry_id: str) -> bool:
        """Remove an entry. Returns False when nothing was deleted."""
        raise NotImplementedError
