"""Amazon SES email sender adapter."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.adapters.email.base import AbstractEmailSender, EmailMessage
from app.core.errors import EmailDeliveryAppError

logger = logging.getLogger(__name__)

CHARSET = "UTF-8"


class SesEmailSender(AbstractEmailSender):
    """Send email through the SES v1 ``send_email`` API.

    Credentials are optional; without them boto3 uses its default chain
    (environment, shared config, instance role).
    """

    def __init__(
        self,
        *,
        region: str,
        from_email: str,
        from_name: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the SES client.

        Args:
            region: AWS region hosting SES.
            from_email: Verified sender address, also used as reply-to.
            from_name: Display name shown to recipients.
            access_key_id: Optional explicit AWS access key id.
            secret_access_key: Optional explicit AWS secret key.
            client: Pre-built boto3 SES client (used by tests).
        """
        self.client = client or boto3.client(
            "ses",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )
        self.from_email = from_email
        self.source = f"{from_name} <{from_email}>"

    def send(self, message: EmailMessage) -> str | None:
        params = {
            "Destination": {"ToAddresses": [message.to]},
            "Message": {
                "Body": {
                    "Html": {"Charset": CHARSET, "Data": message.html_body},
                    "Text": {"Charset": CHARSET, "Data": message.text_body},
                },
                "Subject": {"Charset": CHARSET, "Data": message.subject},
            },
            "Source": self.source,
            "ReplyToAddresses": [self.from_email],
        }

        try:
            response = self.client.send_email(**params)
        except (BotoCoreError, ClientError) as exc:
            logger.error(
                "email.ses_send_failed",
                extra={"to": message.to, "error_type": type(exc).__name__},
            )
            raise EmailDeliveryAppError(
                code="email_send_failed",
                message="Failed to send email",
            ) from exc

        message_id = response.get("MessageId")
        logger.info("email.sent", extra={"to": message.to, "message_id": message_id})
        return message_id
