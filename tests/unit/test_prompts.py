"""Unit tests for prompt templates."""

from datetime import date

from langchain_core.messages import HumanMessage, SystemMessage

from app.prompts import (
    PROFILE_EXTRACTION_PROMPT,
    SMALL_TALK_PROMPT,
    WELCOME_MESSAGE,
    build_small_talk_system,
)


def test_small_talk_system_has_date():
    system = build_small_talk_system(date(2025, 11, 3))
    assert "Today's date is 2025-11-03." in system
    assert "{today}" not in system


def test_small_talk_prompt_messages():
    messages = SMALL_TALK_PROMPT.format_messages(
        system="be nice",
        history=[HumanMessage(content="hi")],
    )
    assert isinstance(messages[0], SystemMessage)
    assert messages[0].content == "be nice"
    assert messages[1].content == "hi"


def test_extraction_prompt_fills_fields():
    messages = PROFILE_EXTRACTION_PROMPT.format_messages(fields="age (number), city", text="28, Durban")

    assert "Extract the following fields: age (number), city." in messages[0].content
    assert messages[1].content == "28, Durban"


def test_welcome_lists_menu():
    for option in ("*1.* Bursary Applications", "*2.* Available Bursaries", "*3.* My Profile", "*4.* Contact Us"):
        assert option in WELCOME_MESSAGE
