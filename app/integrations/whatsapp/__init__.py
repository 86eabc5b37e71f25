"""
WhatsApp / ManyChat integration.

This module provides:
- Payload parsing: detect ManyChat vs WhatsApp Cloud API webhooks
- Response formatting: reply bodies for each channel
- TwilioWhatsAppClient: outbound template notifications

Example usage:
    from app.integrations.whatsapp import (
        detect_payload_format,
        extract_message,
        format_manychat_response,
    )

    payload_format = detect_payload_format(payload)
    message = extract_message(payload, payload_format)
    body = format_manychat_response("Hi there!")
"""

from app.integrations.whatsapp.payload_parser import (
    InboundMessage,
    MessageType,
    PayloadFormat,
    detect_payload_format,
    extract_manychat_data,
    extract_message,
    extract_whatsapp_data,
)

from app.integrations.whatsapp.response_formatter import (
    GENERIC_ERROR_MESSAGE,
    NAVIGATION_MENU,
    SESSION_ERROR_MESSAGE,
    bold,
    chunk_message,
    format_manychat_response,
    format_whatsapp_response,
)

from app.integrations.whatsapp.twilio_client import (
    TwilioWhatsAppClient,
    get_twilio_client,
)

__all__ = [
    # Client
    "TwilioWhatsAppClient",
    "get_twilio_client",
    # Payload parsing
    "InboundMessage",
    "MessageType",
    "PayloadFormat",
    "detect_payload_format",
    "extract_manychat_data",
    "extract_message",
    "extract_whatsapp_data",
    # Response formatting
    "GENERIC_ERROR_MESSAGE",
    "NAVIGATION_MENU",
    "SESSION_ERROR_MESSAGE",
    "bold",
    "chunk_message",
    "format_manychat_response",
    "format_whatsapp_response",
]
