"""
Parse incoming chatbot webhook payloads.

Two payload shapes reach the webhook:
- ManyChat external requests: {"subscriber_id", "text", "first_name", ...}
- WhatsApp Cloud API notifications, either the full Meta envelope
  (entry[0].changes[0].value) or a flattened test payload

Both are normalised into an InboundMessage.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.logging_config import get_logger

logger = get_logger(__name__)

IMAGE_PLACEHOLDER = "[IMAGE_UPLOAD]"
UNKNOWN_ATTACHMENT_PLACEHOLDER = "[UNKNOWN_ATTACHMENT]"

# ManyChat sends unresolved merge fields verbatim
_MANYCHAT_UNSET_FIRST_NAME = "{{first_name}}"
_MANYCHAT_UNSET_LAST_NAME = "{{last_name}}"


class PayloadFormat(str, Enum):
    """Detected webhook payload shape."""
    MANYCHAT = "manychat"
    WHATSAPP = "whatsapp"
    UNKNOWN = "unknown"


class MessageType(str, Enum):
    """Type of inbound message as seen by the agents."""
    TEXT = "text"
    IMAGE = "image"


@dataclass
class InboundMessage:
    """
    Normalised inbound message.

    Attributes:
        wa_id: Sender id (ManyChat subscriber id or WhatsApp wa_id)
        text: Message text, or a placeholder for attachments
        message_type: text or image
        first_name: Sender's first name if the provider sent one
        last_name: Sender's last name if the provider sent one
        message_id: Provider message id, used to drop webhook retries
    """
    wa_id: str | None
    text: str
    message_type: MessageType = MessageType.TEXT
    first_name: str | None = None
    last_name: str | None = None
    message_id: str | None = None

    @property
    def is_image(self) -> bool:
        return self.message_type == MessageType.IMAGE


def _first(items: Any) -> Any:
    """First element of a list, or None."""
    if isinstance(items, list) and items:
        return items[0]
    return None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str | None:
    """Ids and names as strings; ManyChat sends numeric subscriber ids."""
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _whatsapp_value(payload: dict[str, Any]) -> dict[str, Any]:
    """Return entry[0].changes[0].value, or the payload itself."""
    entry = _first(payload.get("entry"))
    if isinstance(entry, dict):
        change = _first(entry.get("changes"))
        if isinstance(change, dict) and isinstance(change.get("value"), dict):
            return change["value"]
    return payload


def detect_payload_format(payload: dict[str, Any]) -> PayloadFormat:
    """
    Detect whether a payload came from ManyChat or the WhatsApp Cloud API.

    Args:
        payload: Decoded JSON body

    Returns:
        PayloadFormat
    """
    if not isinstance(payload, dict):
        return PayloadFormat.UNKNOWN

    if payload.get("subscriber_id") and payload.get("text"):
        return PayloadFormat.MANYCHAT

    value = _whatsapp_value(payload)
    if _first(value.get("messages")) or _first(payload.get("messages")):
        return PayloadFormat.WHATSAPP

    contact = payload.get("contact")
    if isinstance(contact, dict) and contact.get("wa_id"):
        return PayloadFormat.WHATSAPP

    return PayloadFormat.UNKNOWN


def extract_manychat_data(payload: dict[str, Any]) -> InboundMessage:
    """Extract sender and text from a ManyChat payload. Always a text message."""
    first_name = _as_text(payload.get("first_name"))
    last_name = _as_text(payload.get("last_name"))

    return InboundMessage(
        wa_id=_as_text(payload.get("subscriber_id")),
        text=_as_text(payload.get("text")) or "",
        message_type=MessageType.TEXT,
        first_name=None if first_name == _MANYCHAT_UNSET_FIRST_NAME else first_name,
        last_name=None if last_name == _MANYCHAT_UNSET_LAST_NAME else last_name,
    )


def extract_whatsapp_data(payload: dict[str, Any]) -> InboundMessage:
    """
    Extract sender and text from a WhatsApp Cloud API payload.

    Image messages become "[IMAGE_UPLOAD]" so agents can react to them;
    any other non-text type becomes "[UNKNOWN_ATTACHMENT]". Fields of the
    wrong shape are treated as missing.
    """
    value = _whatsapp_value(payload)
    message = _first(value.get("messages"))
    contact = _as_dict(_first(value.get("contacts"))) or _as_dict(payload.get("contact"))

    message_type = MessageType.TEXT
    text = ""
    message_id = None

    if isinstance(message, dict):
        message_id = _as_text(message.get("id"))
        kind = message.get("type")
        if kind == "text":
            text = _as_text(_as_dict(message.get("text")).get("body")) or ""
        elif kind == "image":
            message_type = MessageType.IMAGE
            text = IMAGE_PLACEHOLDER
        else:
            text = UNKNOWN_ATTACHMENT_PLACEHOLDER

    profile_name = _as_text(_as_dict(contact.get("profile")).get("name")) or ""
    first_name = profile_name.split(" ")[0] or None

    return InboundMessage(
        wa_id=_as_text(contact.get("wa_id") or value.get("waId")),
        text=text,
        message_type=message_type,
        first_name=first_name,
        message_id=message_id,
    )


def extract_message(payload: dict[str, Any], payload_format: PayloadFormat) -> InboundMessage:
    """Dispatch to the extractor for the detected format."""
    if payload_format == PayloadFormat.MANYCHAT:
        return extract_manychat_data(payload)
    return extract_whatsapp_data(payload)
