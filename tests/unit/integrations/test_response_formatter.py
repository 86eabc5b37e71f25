"""Unit tests for channel reply formatting."""

from app.integrations.whatsapp.response_formatter import (
    MAX_CAPTION_LENGTH,
    MAX_MESSAGE_LENGTH,
    NAVIGATION_MENU,
    bold,
    chunk_message,
    format_manychat_response,
    format_whatsapp_response,
)


class TestManyChatResponse:
    """Tests for format_manychat_response."""

    def test_text_reply(self):
        body = format_manychat_response("Hello")

        assert body["version"] == "v2"
        assert body["content"]["messages"] == [{"type": "text", "text": "Hello"}]
        assert body["content"]["quick_replies"] == []
        assert body["debug_info"] == {}

    def test_image_then_caption(self):
        body = format_manychat_response("Your ticket", image_url="data:image/png;base64,AAA")

        assert body["content"]["messages"] == [
            {"type": "image", "url": "data:image/png;base64,AAA"},
            {"type": "text", "text": "Your ticket"},
        ]

    def test_image_only(self):
        body = format_manychat_response("", image_url="https://example.com/t.png")
        assert body["content"]["messages"] == [{"type": "image", "url": "https://example.com/t.png"}]

    def test_debug_info(self):
        body = format_manychat_response("Hi", debug_info={"intent": "greeting"})
        assert body["debug_info"] == {"intent": "greeting"}

    def test_long_text_is_split(self):
        paragraph = "x" * 3000
        body = format_manychat_response(f"{paragraph}\n\n{paragraph}")
        assert len(body["content"]["messages"]) == 2


class TestWhatsAppResponse:
    """Tests for format_whatsapp_response."""

    def test_text_reply(self):
        body = format_whatsapp_response("27721234567", "Hello")
        assert body == {
            "messaging_product": "whatsapp",
            "to": "27721234567",
            "text": {"body": "Hello"},
        }

    def test_image_reply_truncates_caption(self):
        body = format_whatsapp_response("27721234567", "c" * 2000, image_url="https://example.com/t.png")

        assert body["type"] == "image"
        assert body["image"]["link"] == "https://example.com/t.png"
        assert len(body["image"]["caption"]) == MAX_CAPTION_LENGTH

    def test_long_text_keeps_first_chunk(self):
        first = "a" * 3000
        body = format_whatsapp_response("27721234567", f"{first}\n\n{'b' * 3000}")

        assert body["text"]["body"] == first
        assert len(body["text"]["body"]) <= MAX_MESSAGE_LENGTH

    def test_oversized_single_line_is_capped(self):
        body = format_whatsapp_response("27721234567", "z" * 5000)
        assert body["text"]["body"] == "z" * MAX_MESSAGE_LENGTH


class TestChunkMessage:
    """Tests for chunk_message."""

    def test_short_message_is_one_chunk(self):
        assert chunk_message("short") == ["short"]

    def test_chunks_respect_limit(self):
        text = "\n\n".join(["para " * 30] * 10)
        chunks = chunk_message(text, max_length=200)

        assert len(chunks) > 1
        assert all(len(chunk) <= 200 for chunk in chunks)

    def test_oversized_line_is_hard_split(self):
        chunks = chunk_message("y" * 450, max_length=200)
        assert [len(c) for c in chunks] == [200, 200, 50]


def test_navigation_menu_lists_all_options():
    for option in ("Bursary Applications", "Available Bursaries", "My Profile", "Contact Us"):
        assert option in NAVIGATION_MENU


def test_bold():
    assert bold("Hi") == "*Hi*"
