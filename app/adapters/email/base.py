from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    """A rendered transactional email."""

    to: str
    subject: str
    html_body: str
    text_body: str


class AbstractEmailSender(ABC):
    """Interface for outbound transactional email delivery."""

    @abstractmethod
    def send(self, message: EmailMessage) -> str | None:
        """Deliver a message.

        Args:
            message: Rendered message to send.

        Returns:
            Provider message id when available, otherwise None.

        Raises:
            EmailDeliveryAppError: If the provider rejects or fails the send.
        """
        ...
