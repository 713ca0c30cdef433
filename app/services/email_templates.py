"""Confirmation email rendering.

Produces matching HTML and plain-text bodies from inline Jinja2 templates.
The HTML environment autoescapes every interpolated value; links are built
from the configured site URL.
"""

from __future__ import annotations

from urllib.parse import quote, urlencode

from jinja2 import Environment, Template, select_autoescape

from app.adapters.email.base import EmailMessage

CONFIRMATION_SUBJECT = "Confirm your PyMCU Alpha Waitlist Registration"

_HTML_TMPL = r"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
</head>
<body style="margin:0;padding:0;font-family:'Inter',Arial,sans-serif;color:#101010;background:#ffffff;">
    <div style="max-width:600px;margin:0 auto;">
        <div style="background:#0161ef;color:#ffffff;padding:40px 30px;text-align:center;">
            <div style="font-size:32px;font-weight:700;">PyMCU</div>
            <div style="font-size:16px;opacity:0.9;">You're almost in the Alpha waitlist</div>
        </div>
        <div style="padding:40px 30px;">
            <p style="font-size:24px;font-weight:600;">Hi there! &#128075;</p>
            <p>Thanks for your interest in <strong>PyMCU Alpha</strong>! To complete your
            registration and secure your spot on the waitlist, please confirm your email
            address by clicking the button below:</p>
            <p style="text-align:center;margin:30px 0;">
                <a href="{{ confirmation_url }}" style="background:#1d4ed8;color:#ffffff;text-decoration:none;padding:16px 32px;border-radius:8px;font-weight:600;display:inline-block;">Confirm Email Address</a>
            </p>
            <p>If the button doesn't work, copy this link into your browser:<br>
            <a href="{{ confirmation_url }}">{{ confirmation_url }}</a></p>
            <p>If you didn't sign up for the PyMCU waitlist, you can safely ignore this email.</p>
            <p>Best regards,<br>The PyMCU Team</p>
        </div>
        <div style="background:#f9fafb;padding:20px;font-size:12px;color:#555555;">
            <strong>Note:</strong> This confirmation link will expire in 24 hours for security reasons.<br>
            If you no longer wish to receive emails from us, you can
            <a href="{{ unsubscribe_url }}">unsubscribe here</a>.
        </div>
    </div>
</body>
</html>"""

_TEXT_TMPL = r"""PyMCU Alpha Waitlist - Email Confirmation Required

Hi there!

Thanks for your interest in PyMCU Alpha! To complete your registration and secure your spot on the waitlist, please confirm your email address by visiting this link:

{{ confirmation_url }}

If you didn't sign up for the PyMCU waitlist, you can safely ignore this email.

Best regards,
The PyMCU Team

Note: This confirmation link will expire in 24 hours for security reasons.
If you no longer wish to receive emails from us, visit: {{ unsubscribe_url }}"""

html_env = Environment(autoescape=select_autoescape(["html", "xml"]))
text_env = Environment(autoescape=False, keep_trailing_newline=True)

HTML_TEMPLATE: Template = html_env.from_string(_HTML_TMPL)
TEXT_TEMPLATE: Template = text_env.from_string(_TEXT_TMPL)


def build_confirmation_url(site_url: str, token: str) -> str:
    return f"{site_url.rstrip('/')}/confirm?{urlencode({'token': token})}"


def build_unsubscribe_url(site_url: str, email: str) -> str:
    return f"{site_url.rstrip('/')}/unsubscribe?{urlencode({'email': email}, quote_via=quote)}"


def build_confirmation_email(email: str, *, token: str, site_url: str) -> EmailMessage:
    """Render the double opt-in confirmation email.

    Args:
        email: Sanitized recipient address.
        token: Confirmation token stored with the entry.
        site_url: Public site origin, e.g. ``https://pymcu.com``.

    Returns:
        EmailMessage ready for an AbstractEmailSender.
    """
    context = {
        "subject": CONFIRMATION_SUBJECT,
        "confirmation_url": build_confirmation_url(site_url, token),
        "unsubscribe_url": build_unsubscribe_url(site_url, email),
    }
    return EmailMessage(
        to=email,
        subject=CONFIRMATION_SUBJECT,
        html_body=HTML_TEMPLATE.render(**context),
        text_body=TEXT_TEMPLATE.render(**context),
    )
