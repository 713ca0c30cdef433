"""Email adapter layer - abstracts over transactional email providers."""

from app.adapters.email.base import AbstractEmailSender, EmailMessage
from app.adapters.email.factory import create_email_sender
from app.adapters.email.logging_sender import LoggingEmailSender
from app.adapters.email.ses_sender import SesEmailSender

__all__ = [
    "AbstractEmailSender",
    "EmailMessage",
    "LoggingEmailSender",
    "SesEmailSender",
    "create_email_sender",
]
