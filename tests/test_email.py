"""Tests for confirmation email rendering and the email sender adapters."""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app.adapters.email.base import EmailMessage
from app.adapters.email.factory import create_email_sender
from app.adapters.email.logging_sender import LoggingEmailSender
from app.adapters.email.ses_sender import SesEmailSender
from app.core.config import EmailSettings
from app.core.errors import EmailDeliveryAppError
from app.services.email_templates import (
    CONFIRMATION_SUBJECT,
    build_confirmation_email,
    build_confirmation_url,
    build_unsubscribe_url,
)

MESSAGE = EmailMessage(
    to="jane@example.com",
    subject="Hello",
    html_body="<p>Hi</p>",
    text_body="Hi",
)


class TestTemplates:
    def test_confirmation_url(self):
        assert build_confirmation_url("https://pymcu.com/", "abc123") == "https://pymcu.com/confirm?token=abc123"

    def test_unsubscribe_url_encodes_email(self):
        assert (
            build_unsubscribe_url("https://pymcu.com", "jane+tag@example.com")
            == "https://pymcu.com/unsubscribe?email=jane%2Btag%40example.com"
        )

    def test_confirmation_email_contains_links(self):
        message = build_confirmation_email("jane@example.com", token="f" * 64, site_url="https://pymcu.com")

        assert message.to == "jane@example.com"
        assert message.subject == CONFIRMATION_SUBJECT
        assert "https://pymcu.com/confirm?token=" + "f" * 64 in message.text_body
        assert 'href="https://pymcu.com/confirm?token=' + "f" * 64 + '"' in message.html_body
        assert "unsubscribe?email=jane%40example.com" in message.text_body

    def test_html_links_are_escaped(self):
        message = build_confirmation_email(
            "jane@example.com", token="x", site_url='https://evil.test/"><script>'
        )

        assert "<script>" not in message.html_body
        assert "&lt;script&gt;" in message.html_body

    def test_text_body_is_not_escaped(self):
        message = build_confirmation_email("jane+a@example.com", token="x&y", site_url="https://pymcu.com")

        assert "https://pymcu.com/confirm?token=x%26y" in message.text_body
        assert "&amp;" not in message.text_body
        assert "&#34;" not in message.text_body


class TestSesEmailSender:
    @pytest.fixture
    def ses_client(self) -> Mock:
        client = Mock()
        client.send_email.return_value = {"MessageId": "ses-123"}
        return client

    def test_send_builds_ses_request(self, ses_client: Mock):
        sender = SesEmailSender(
            region="us-east-1",
            from_email="noreply@pymcu.com",
            from_name="PyMCU Team",
            client=ses_client,
        )

        assert sender.send(MESSAGE) == "ses-123"

        kwargs = ses_client.send_email.call_args.kwargs
        assert kwargs["Source"] == "PyMCU Team <noreply@pymcu.com>"
        assert kwargs["Destination"] == {"ToAddresses": ["jane@example.com"]}
        assert kwargs["ReplyToAddresses"] == ["noreply@pymcu.com"]
        assert kwargs["Message"]["Subject"] == {"Charset": "UTF-8", "Data": "Hello"}
        assert kwargs["Message"]["Body"]["Html"]["Data"] == "<p>Hi</p>"
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Hi"

    @pytest.mark.parametrize(
        "error",
        [
            ClientError({"Error": {"Code": "MessageRejected", "Message": "Email address is not verified"}}, "SendEmail"),
            EndpointConnectionError(endpoint_url="https://email.us-east-1.amazonaws.com"),
        ],
    )
    def test_failures_become_delivery_errors(self, ses_client: Mock, error: Exception):
        ses_client.send_email.side_effect = error
        sender = SesEmailSender(
            region="us-east-1",
            from_email="noreply@pymcu.com",
            from_name="PyMCU Team",
            client=ses_client,
        )

        with pytest.raises(EmailDeliveryAppError) as exc_info:
            sender.send(MESSAGE)
        assert exc_info.value.code == "email_send_failed"


def test_logging_sender_skips_delivery(caplog: pytest.LogCaptureFixture):
    with caplog.at_level("WARNING"):
        assert LoggingEmailSender().send(MESSAGE) is None

    assert any(r.message == "email.delivery_skipped" for r in caplog.records)


class TestEmailSenderFactory:
    def test_unconfigured_uses_logging_sender(self):
        assert isinstance(create_email_sender(EmailSettings()), LoggingEmailSender)

    def test_region_without_sender_address_is_unconfigured(self):
        assert isinstance(create_email_sender(EmailSettings(region="us-east-1")), LoggingEmailSender)

    def test_configured_uses_ses(self):
        sender = create_email_sender(
            EmailSettings(region="us-east-1", from_email="noreply@pymcu.com", from_name="PyMCU")
        )

        assert isinstance(sender, SesEmailSender)
        assert sender.source == "PyMCU <noreply@pymcu.com>"
