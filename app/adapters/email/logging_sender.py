"""Fallback sender used when SES is not configured."""

from __future__ import annotations

import logging

from app.adapters.email.base import AbstractEmailSender, EmailMessage

logger = logging.getLogger(__name__)


class LoggingEmailSender(AbstractEmailSender):
    """Skip delivery and record that a message would have been sent."""

    def send(self, message: EmailMessage) -> str | None:
        logger.warning(
            "email.delivery_skipped",
            extra={"to": message.to, "subject": message.subject, "reason": "ses_not_configured"},
        )
        return None
