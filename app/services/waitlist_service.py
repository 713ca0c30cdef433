"""Waitlist business logic: registration, confirmation and unsubscription.

The service owns input validation and sanitization, the double opt-in
lifecycle (pending -> confirmed) and hard deletion on unsubscribe. Storage
and email delivery are injected adapters; their failures surface as
``StoreAppError`` except email delivery during registration, which is logged
and swallowed so the signup still succeeds.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Callable

from app.adapters.email.base import AbstractEmailSender
from app.adapters.store.base import AbstractWaitlistStore, WaitlistEntry, WaitlistStatus
from app.core.errors import (
    DuplicateEmailError,
    EmailDeliveryAppError,
    GoneAppError,
    NotFoundAppError,
    StoreAppError,
    ValidationAppError,
)
from app.schemas.waitlist import (
    ConfirmationData,
    ConfirmationResponse,
    RegistrationData,
    RegistrationResponse,
    UnsubscribeData,
    UnsubscribeResponse,
)
from app.services.email_templates import build_confirmation_email

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ALLOWED_ROLES = ("developer", "student", "maker", "researcher", "educator", "hobbyist", "other")
ALLOWED_EXPERIENCE = ("beginner", "intermediate", "advanced")

TOKEN_BYTES = 32

MSG_REGISTERED = (
    "Almost there! We've sent a confirmation email to your inbox. Please click the "
    "link to complete your registration for the PyMCU Alpha waitlist!"
)
MSG_ALREADY_CONFIRMED = (
    "Great news! This email is already confirmed on the waitlist. "
    "You're all set for the PyMCU Alpha release!"
)
MSG_ALREADY_PENDING = (
    "We've already sent a confirmation email to this address. "
    "Please check your inbox and spam folder!"
)
MSG_CONFIRMED = "Email confirmed successfully! Welcome to the PyMCU Alpha waitlist!"
MSG_CONFIRMED_BEFORE = "Email already confirmed! You're all set for the PyMCU Alpha release!"
MSG_UNSUBSCRIBED = (
    "You have been successfully removed from the PyMCU waitlist. "
    "Your email has been completely deleted from our system."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address."""
    return email.strip().lower()


def _normalize_choice(
    value: str | None,
    allowed: tuple[str, ...],
    *,
    field: str,
    error_code: str,
    error_message: str,
) -> str | None:
    if value is None or not value.strip():
        return None
    normalized = value.strip().lower()
    if normalized not in allowed:
        raise ValidationAppError(
            code=error_code,
            message=error_message,
            details={"field": field, "allowed_values": list(allowed)},
        )
    return normalized


def validate_registration(
    email: str | None,
    role: str | None,
    experience: str | None,
) -> tuple[str, str | None, str | None]:
    """Validate and sanitize registration input.

    Returns:
        Tuple of (email, role, experience), normalized to lowercase.

    Raises:
        ValidationAppError: For a missing/invalid email or unknown choices.
    """
    if not email or not email.strip():
        raise ValidationAppError(
            code="email_required",
            message="Email is required",
            details={"field": "email"},
        )

    sanitized_email = normalize_email(email)
    if not EMAIL_PATTERN.match(sanitized_email):
        raise ValidationAppError(
            code="email_invalid",
            message="Please enter a valid email address",
            details={"field": "email"},
        )

    sanitized_role = _normalize_choice(
        role,
        ALLOWED_ROLES,
        field="role",
        error_code="role_invalid",
        error_message="Invalid role selection",
    )
    sanitized_experience = _normalize_choice(
        experience,
        ALLOWED_EXPERIENCE,
        field="experience",
        error_code="experience_invalid",
        error_message="Invalid experience level",
    )
    return sanitized_email, sanitized_role, sanitized_experience


class WaitlistService:
    """Orchestrates the waitlist lifecycle over a store and an email sender."""

    def __init__(
        self,
        *,
        store: AbstractWaitlistStore,
        email_sender: AbstractEmailSender,
        site_url: str,
        clock: Callable[[], datetime] = _utcnow,
        token_factory: Callable[[], str] = _generate_token,
    ) -> None:
        self.store = store
        self.email_sender = email_sender
        self.site_url = site_url
        self._clock = clock
        self._token_factory = token_factory

    def register(
        self,
        email: str | None,
        *,
        role: str | None = None,
        experience: str | None = None,
        updates: bool = False,
    ) -> tuple[RegistrationResponse, bool]:
        """Add a visitor to the waitlist and send the confirmation email.

        Args:
            email: Submitted email address.
            role: Optional role (see ``ALLOWED_ROLES``).
            experience: Optional experience level (see ``ALLOWED_EXPERIENCE``).
            updates: Whether the visitor wants product updates.

        Returns:
            Tuple of (response, created). ``created`` is False when the email
            was already registered and a friendly message is returned instead.

        Raises:
            ValidationAppError: Invalid input.
            StoreAppError: Store failure, or a duplicate in an unexpected state.
        """
        sanitized_email, sanitized_role, sanitized_experience = validate_registration(
            email, role, experience
        )

        token = self._token_factory()
        entry = WaitlistEntry(
            id=str(uuid.uuid4()),
            email=sanitized_email,
            role=sanitized_role,
            experience=sanitized_experience,
            updates=updates,
            status=WaitlistStatus.PENDING,
            confirmation_token=token,
            created_at=self._clock(),
        )

        try:
            created = self.store.create(entry)
        except DuplicateEmailError:
            return self._handle_duplicate(sanitized_email), False

        logger.info(
            "waitlist.registered",
            extra={
                "entry_id": created.id,
                "email": created.email,
                "role": created.role,
                "experience": created.experience,
                "updates": created.updates,
            },
        )

        self._send_confirmation(created.email, token)

        return (
            RegistrationResponse(
                message=MSG_REGISTERED,
                data=RegistrationData(
                    id=created.id,
                    email=created.email,
                    status=WaitlistStatus.PENDING.value,
                    created_at=created.created_at,
                ),
            ),
            True,
        )

    def confirm(self, token: str | None) -> ConfirmationResponse:
        """Confirm a pending signup from its emailed token.

        Raises:
            ValidationAppError: Missing token.
            NotFoundAppError: Unknown or already-consumed token.
            GoneAppError: The entry was unsubscribed.
            StoreAppError: Store failure.
        """
        if not token or not token.strip():
            raise ValidationAppError(
                code="token_required",
                message="Confirmation token is required",
                details={"field": "token"},
            )

        entry = self.store.find_by_token(token.strip())
        if entry is None:
            raise NotFoundAppError(
                code="token_not_found",
                message="Invalid or expired confirmation token",
            )

        if entry.status == WaitlistStatus.CONFIRMED:
            return ConfirmationResponse(
                message=MSG_CONFIRMED_BEFORE,
                data=ConfirmationData(email=entry.email, status=entry.status.value),
            )

        if entry.status == WaitlistStatus.UNSUBSCRIBED:
            raise GoneAppError(
                code="entry_unsubscribed",
                message="This email has been unsubscribed from the waitlist",
            )

        updated = self.store.mark_confirmed(entry.id, self._clock())
        logger.info("waitlist.confirmed", extra={"entry_id": updated.id, "email": updated.email})

        return ConfirmationResponse(
            message=MSG_CONFIRMED,
            data=ConfirmationData(
                email=updated.email,
                status=WaitlistStatus.CONFIRMED.value,
                confirmed_at=updated.confirmed_at,
            ),
        )

    def unsubscribe(self, email: str | None) -> UnsubscribeResponse:
        """Delete a signup entirely so the visitor can re-register later.

        Raises:
            ValidationAppError: Missing email.
            NotFoundAppError: Email unknown, or the delete removed nothing.
            StoreAppError: Store failure.
        """
        if not email or not email.strip():
            raise ValidationAppError(
                code="email_required",
                message="Email is required",
                details={"field": "email"},
            )

        entry = self.store.find_by_email(normalize_email(email))
        if entry is None:
            raise NotFoundAppError(
                code="email_not_found",
                message="Email not found in waitlist",
            )

        if not self.store.delete(entry.id):
            raise NotFoundAppError(
                code="entry_not_deleted",
                message="User not found or could not be deleted.",
            )

        logger.info("waitlist.unsubscribed", extra={"entry_id": entry.id, "email": entry.email})

        return UnsubscribeResponse(
            message=MSG_UNSUBSCRIBED,
            data=UnsubscribeData(email=entry.email, removed_at=self._clock()),
        )

    def _handle_duplicate(self, email: str) -> RegistrationResponse:
        existing = self.store.find_by_email(email)
        status = existing.status if existing else None

        logger.info(
            "waitlist.duplicate_registration",
            extra={"email": email, "existing_status": status.value if status else None},
        )

        if status == WaitlistStatus.CONFIRMED:
            return RegistrationResponse(message=MSG_ALREADY_CONFIRMED)
        if status == WaitlistStatus.PENDING:
            return RegistrationResponse(message=MSG_ALREADY_PENDING)

        raise StoreAppError(
            code="duplicate_unresolved",
            message="Database error occurred. Please try again.",
        )

    def _send_confirmation(self, email: str, token: str) -> None:
        message = build_confirmation_email(email, token=token, site_url=self.site_url)
        try:
            self.email_sender.send(message)
        except EmailDeliveryAppError as exc:
            # The entry stays pending and can be confirmed manually
            logger.warning(
                "waitlist.confirmation_email_failed",
                extra={"email": email, "error_code": exc.code},
            )
