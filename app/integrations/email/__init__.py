"""Outbound email (Resend)."""

from app.integrations.email.resend_client import (
    EmailResult,
    build_application_html,
    send_application_email,
)

__all__ = [
    "EmailResult",
    "build_application_html",
    "send_application_email",
]
