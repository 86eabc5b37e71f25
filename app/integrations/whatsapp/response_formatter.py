"""
Format bot replies for the channel the message came in on.

ManyChat expects a dynamic-block v2 body; the WhatsApp Cloud API path
gets a send-message shaped body echoing the recipient. This module also
holds the WhatsApp text helpers and menus shared by the agents.
"""

from typing import Any

from app.logging_config import get_logger

logger = get_logger(__name__)

# WhatsApp message limits
MAX_MESSAGE_LENGTH = 4096  # WhatsApp limit
MAX_CAPTION_LENGTH = 1024

GENERIC_ERROR_MESSAGE = "Sorry, something went wrong. Please try again."
SESSION_ERROR_MESSAGE = "Sorry, we're having trouble starting your session. Please try again."


# ─────────────────────────────────────────────────────────────────────────────
# WhatsApp Text Formatting
# ─────────────────────────────────────────────────────────────────────────────

def bold(text: str) -> str:
    """Format text as bold for WhatsApp."""
    return f"*{text}*"


DIVIDER = "━━━━━━━━━━━━━━━━"

NAVIGATION_MENU = f"""
{DIVIDER}
*Main Menu:*
1️⃣ Bursary Applications
2️⃣ Available Bursaries
3️⃣ My Profile
4️⃣ Contact Us

Reply with a number to return to the menu."""


def chunk_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split a long message into chunks that fit WhatsApp limits.

    Splits on paragraphs first, then on lines for oversized paragraphs.

    Args:
        text: Long message text
        max_length: Maximum chunk size

    Returns:
        List of message chunks
    """
    if len(text) <= max_length:
        return [text]

    chunks = []
    current_chunk = ""

    for para in text.split("\n\n"):
        if len(para) > max_length:
            for line in para.split("\n"):
                # Hard-split lines that are longer than a whole chunk
                while len(line) > max_length:
                    if current_chunk:
                        chunks.append(current_chunk.strip())
                        current_chunk = ""
                    chunks.append(line[:max_length])
                    line = line[max_length:]
                if len(current_chunk) + len(line) + 1 <= max_length:
                    current_chunk += ("\n" if current_chunk else "") + line
                else:
                    if current_chunk:
                        chunks.append(current_chunk.strip())
                    current_chunk = line
        elif len(current_chunk) + len(para) + 2 <= max_length:
            current_chunk += ("\n\n" if current_chunk else "") + para
        else:
            if current_chunk:
                chunks.append(current_chunk.strip())
            current_chunk = para

    if current_chunk:
        chunks.append(current_chunk.strip())

    return chunks


# ─────────────────────────────────────────────────────────────────────────────
# Channel bodies
# ─────────────────────────────────────────────────────────────────────────────

def format_manychat_response(
    text: str,
    image_url: str | None = None,
    debug_info: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a ManyChat dynamic block (v2) reply.

    Long text is sent as several text messages. An image goes first with
    the text following as its caption.

    Example:
        >>> format_manychat_response("Hi")["content"]["messages"]
        [{'type': 'text', 'text': 'Hi'}]
    """
    messages: list[dict[str, Any]] = []
    if image_url:
        messages.append({"type": "image", "url": image_url})
    if text or not image_url:
        messages.extend({"type": "text", "text": chunk} for chunk in chunk_message(text or ""))

    return {
        "version": "v2",
        "content": {
            "messages": messages,
            "quick_replies": [],
        },
        "debug_info": debug_info or {},
    }


def format_whatsapp_response(
    wa_id: str | None,
    text: str,
    image_url: str | None = None,
) -> dict[str, Any]:
    """
    Build a WhatsApp Cloud API message body addressed to wa_id.

    With image_url the body is an image message and text becomes the
    caption, truncated to the caption limit. One body carries one message,
    so text over the WhatsApp limit is cut at the same boundary
    chunk_message would split on.
    """
    if image_url:
        return {
            "messaging_product": "whatsapp",
            "to": wa_id,
            "type": "image",
            "image": {
                "link": image_url,
                "caption": (text or "")[:MAX_CAPTION_LENGTH],
            },
        }

    chunks = chunk_message(text or "")
    if len(chunks) > 1:
        logger.warning("whatsapp_reply_truncated", length=len(text), dropped_chunks=len(chunks) - 1)

    return {
        "messaging_product": "whatsapp",
        "to": wa_id,
        "text": {"body": chunks[0]},
    }
