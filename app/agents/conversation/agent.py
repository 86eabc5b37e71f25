"""
Conversation Agent - greetings, profile summary and small talk.

- Greeting (or a brand new conversation): TTI welcome menu
- Menu option 3: summary of the user's latest application
- Anything else: short LLM small-talk reply, with a fixed fallback
"""

from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_openai import ChatOpenAI
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType, Intent
from app.agents.common.response import AgentResponse, success_response
from app.config import settings
from app.integrations.whatsapp.response_formatter import NAVIGATION_MENU
from app.logging_config import get_logger, mask_id
from app.models import BursaryApplication
from app.prompts.conversation import (
    SMALL_TALK_FALLBACK,
    SMALL_TALK_PROMPT,
    WELCOME_MESSAGE,
    build_small_talk_system,
)
from app.storage.application_writer import get_latest_application
from app.storage.session_cache import SessionData

logger = get_logger(__name__)

AGENT_NAME = AgentType.CONVERSATION.value

SMALL_TALK_TEMPERATURE = 0.7
SMALL_TALK_MAX_TOKENS = 100
SMALL_TALK_HISTORY = 6

NO_PROFILE = (
    "👤 *My Profile*\n\n"
    "You haven't started a bursary application yet.\n"
    "Reply *1* to find bursaries that match you! 🎯"
)
PROFILE_UNAVAILABLE = "Sorry, I couldn't load your profile right now. Please try again in a moment."


def get_small_talk_llm() -> BaseChatModel:
    """
    Chat model for small talk.

    Raises:
        ValueError: If the OpenAI API key is missing
    """
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY not configured")

    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=SMALL_TALK_TEMPERATURE,
        max_tokens=SMALL_TALK_MAX_TOKENS,
    )


def build_history_messages(history: list[dict[str, Any]], message: str) -> list[BaseMessage]:
    """
    Last six history entries as chat messages, ending with the user's message.

    The webhook records the user's message before the brain runs, so it is
    only appended when the history doesn't already end with it.
    """
    messages: list[BaseMessage] = []
    for entry in history[-SMALL_TALK_HISTORY:]:
        content = entry.get("content") or ""
        if entry.get("role") == "assistant":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))

    last = history[-1] if history else None
    if not last or last.get("role") != "user" or last.get("content") != message:
        messages.append(HumanMessage(content=message))
    return messages


def format_profile_summary(application: BursaryApplication) -> str:
    """Short summary of an application for the "My Profile" option."""
    lines = ["👤 *My Profile*", ""]
    if application.full_name:
        lines.append(f"*Name:* {application.full_name}")
    if application.email:
        lines.append(f"*Email:* {application.email}")
    if application.field_of_study:
        lines.append(f"*Field of study:* {application.field_of_study}")
    if application.academic_average is not None:
        lines.append(f"*Average:* {application.academic_average:g}%")
    lines.append(f"*Application status:* {application.status.title()}")
    if application.application_ref:
        lines.append(f"*Reference:* {application.application_ref}")

    matches = application.matched_bursaries or []
    if matches:
        lines.append("")
        lines.append("*Matched bursaries:*")
        lines.extend(f"• {match['name']}" for match in matches)
    return "\n".join(lines)


def _profile_reply(db: Session, wa_id: str) -> str:
    try:
        application = get_latest_application(db, wa_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("profile_summary_failed", wa_id=mask_id(wa_id), error=str(e))
        return PROFILE_UNAVAILABLE

    if application is None:
        return NO_PROFILE + NAVIGATION_MENU
    return format_profile_summary(application) + NAVIGATION_MENU


async def small_talk(session: SessionData, message: str) -> str:
    """LLM small-talk reply; falls back to a fixed line on any failure."""
    try:
        chain = SMALL_TALK_PROMPT | get_small_talk_llm()
        result = await chain.ainvoke({
            "system": build_small_talk_system(),
            "history": build_history_messages(session.history, message),
        })
        reply = (getattr(result, "content", "") or "").strip()
    except Exception as e:
        logger.error("small_talk_failed", wa_id=mask_id(session.wa_id), error=str(e))
        return SMALL_TALK_FALLBACK

    return reply or SMALL_TALK_FALLBACK


async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    """
    Handle greetings, the profile option and small talk.

    A greeting is the greeting intent, or a conversation with at most the
    current message in its history.
    """
    intent = session.state.get("intent")
    show_menu = bool((context or {}).get("show_menu"))

    if show_menu or intent == Intent.GREETING.value or len(session.history) <= 1:
        session.welcome_sent = True
        return success_response(WELCOME_MESSAGE, AGENT_NAME)

    if intent == Intent.VIEW_PROFILE.value:
        return success_response(_profile_reply(db, session.wa_id), AGENT_NAME)

    logger.info("small_talk", wa_id=mask_id(session.wa_id), history=len(session.history))
    return success_response(await small_talk(session, message or ""), AGENT_NAME)
