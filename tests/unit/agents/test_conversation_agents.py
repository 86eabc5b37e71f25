"""
Unit tests for the bursary bot's single-reply agents.

Tests the conversation agent (welcome, profile summary, small talk with
a fake chat model), the bursary lister and the contact agent.
"""

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage

from app.agents import bursary_lister, contact, conversation
from app.agents.common.intents import Intent
from app.agents.conversation import agent as conversation_agent
from app.agents.conversation.agent import build_history_messages, format_profile_summary
from app.integrations.whatsapp.response_formatter import NAVIGATION_MENU
from app.prompts import SMALL_TALK_FALLBACK, WELCOME_MESSAGE
from app.storage.session_cache import SessionData


def session_with(history_len: int = 3, intent: str | None = None) -> SessionData:
    history = [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"m{i}"}
        for i in range(history_len)
    ]
    state = {"intent": intent} if intent else {}
    return SessionData(wa_id="27721234567", history=history, state=state)


# ─────────────────────────────────────────────────────────────────────────────
# Test: Conversation Agent
# ─────────────────────────────────────────────────────────────────────────────

class TestWelcome:
    """Test when the welcome menu is sent."""

    @pytest.mark.asyncio
    async def test_greeting_intent(self, db):
        session = session_with(intent=Intent.GREETING.value)
        response = await conversation.process(db, session, "Hi")

        assert response.response_text == WELCOME_MESSAGE
        assert session.welcome_sent is True

    @pytest.mark.asyncio
    async def test_first_message(self, db):
        """Test: A brand-new conversation always gets the menu."""
        session = session_with(history_len=1, intent=Intent.SMALL_TALK.value)
        response = await conversation.process(db, session, "what's up")

        assert response.response_text == WELCOME_MESSAGE

    @pytest.mark.asyncio
    async def test_show_menu_context(self, db):
        session = session_with(intent=Intent.CANCEL_APPLICATION.value)
        response = await conversation.process(db, session, "cancel application", {"show_menu": True})

        assert response.response_text == WELCOME_MESSAGE


class TestProfileSummary:
    """Test menu option 3."""

    @pytest.mark.asyncio
    async def test_no_application(self, db):
        session = session_with(intent=Intent.VIEW_PROFILE.value)
        response = await conversation.process(db, session, "3")

        assert "haven't started a bursary application" in response.response_text
        assert response.response_text.endswith(NAVIGATION_MENU)

    @pytest.mark.asyncio
    async def test_latest_application(self, db, submitted_application):
        session = session_with(intent=Intent.VIEW_PROFILE.value)
        response = await conversation.process(db, session, "3")

        assert "*Name:* Lerato Dlamini" in response.response_text
        assert "*Application status:* Submitted" in response.response_text
        assert "• Momentum Bursary" in response.response_text

    def test_format_average(self, submitted_application):
        assert "*Average:* 72.5%" in format_profile_summary(submitted_application)


class TestSmallTalk:
    """Test the LLM small-talk path."""

    @pytest.mark.asyncio
    async def test_llm_reply(self, db, mocker):
        mocker.patch.object(
            conversation_agent,
            "get_small_talk_llm",
            return_value=FakeListChatModel(responses=["  Sharp sharp! 😄  "]),
        )
        session = session_with(intent=Intent.SMALL_TALK.value)

        response = await conversation.process(db, session, "tell me a joke")

        assert response.response_text == "Sharp sharp! 😄"
        assert response.keeps_lock is False

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back(self, db, mocker):
        mocker.patch.object(
            conversation_agent, "get_small_talk_llm", side_effect=ValueError("OPENAI_API_KEY not configured")
        )
        session = session_with(intent=Intent.SMALL_TALK.value)

        response = await conversation.process(db, session, "tell me a joke")

        assert response.response_text == SMALL_TALK_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_llm_reply_falls_back(self, db, mocker):
        mocker.patch.object(
            conversation_agent, "get_small_talk_llm", return_value=FakeListChatModel(responses=["   "])
        )
        session = session_with(intent=Intent.SMALL_TALK.value)

        response = await conversation.process(db, session, "hmm")

        assert response.response_text == SMALL_TALK_FALLBACK


class TestHistoryMessages:
    """Test build_history_messages."""

    def test_keeps_last_six(self):
        history = [{"role": "user", "content": str(i)} for i in range(10)]
        messages = build_history_messages(history, "new")

        assert [m.content for m in messages] == ["4", "5", "6", "7", "8", "9", "new"]

    def test_does_not_repeat_current_message(self):
        history = [
            {"role": "assistant", "content": "Welcome"},
            {"role": "user", "content": "tell me a joke"},
        ]
        messages = build_history_messages(history, "tell me a joke")

        assert len(messages) == 2
        assert isinstance(messages[0], AIMessage)
        assert isinstance(messages[1], HumanMessage)


# ─────────────────────────────────────────────────────────────────────────────
# Test: Lister & Contact
# ─────────────────────────────────────────────────────────────────────────────

class TestBursaryLister:

    @pytest.mark.asyncio
    async def test_lists_all_bursaries(self, db):
        response = await bursary_lister.process(db, session_with(), "2")

        text = response.response_text
        assert text.startswith("Here are the *Available Bursaries*")
        for name, funder, deadline in bursary_lister.BURSARY_LIST:
            assert f"*{name}*\nFunder: {funder}\nCloses: *{deadline}*" in text
        assert text.endswith(NAVIGATION_MENU)
        assert response.keeps_lock is False


class TestContact:

    @pytest.mark.asyncio
    async def test_contact_details(self, db):
        response = await contact.process(db, session_with(), "4")

        assert "info@ttibursaries.co.za" in response.response_text
        assert "+27 010 746 4366" in response.response_text
        assert response.response_text.endswith(NAVIGATION_MENU)
