"""Factory for creating the configured email sender."""

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.logging_sender import LoggingEmailSender
from app.adapters.email.ses_sender import SesEmailSender
from app.core.config import EmailSettings, settings


def create_email_sender(email_settings: EmailSettings | None = None) -> AbstractEmailSender:
    """Return an SES sender when configured, otherwise a logging no-op.

    SES needs ``SES_REGION`` and ``SES_FROM_EMAIL``; credentials are optional.
    """
    cfg = email_settings or settings.email

    if not cfg.configured:
        return LoggingEmailSender()

    return SesEmailSender(
        region=cfg.region,
        from_email=cfg.from_email,
        from_name=cfg.from_name,
        access_key_id=cfg.access_key_id,
        secret_access_key=cfg.secret_access_key,
    )
