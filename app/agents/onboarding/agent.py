"""
Onboarding Agent - Christ Connect profile questionnaire.

A two-track state machine. The current stage is stored in the user's
profile_data["current_stage"] so onboarding resumes across sessions.

Track 1 (Deeper Connections):
    START → AWAIT_TRACK_SELECTION → DATING_Q1_BASICS → DATING_Q2_FAITH
    → DATING_Q3_VALUES → DATING_Q4_PHOTO → COMPLETE

Track 2 (Friends & Fellowship):
    START → AWAIT_TRACK_SELECTION → FRIEND_Q2_BASICS
    → [FRIEND_Q3_INTERESTS] → [FRIEND_Q4_PREFS] → COMPLETE

Reaching COMPLETE moves the profile to waitlist_completed.
"""

from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType
from app.agents.common.response import (
    AgentResponse,
    awaiting_input_response,
    error_response,
    success_response,
)
from app.integrations.whatsapp.payload_parser import MessageType
from app.logging_config import get_logger, mask_id
from app.models import ProfileStatus
from app.storage.profile_writer import get_or_create_profile, update_profile
from app.storage.session_cache import SessionData
from app.tools.extraction.profile_extractor import extract_profile_data

logger = get_logger(__name__)

AGENT_NAME = AgentType.ONBOARDING.value


class OnboardingStage(str, Enum):
    """Onboarding questionnaire stages."""
    START = "START"
    AWAIT_TRACK_SELECTION = "AWAIT_TRACK_SELECTION"

    # Track 1: Deeper Connections
    DATING_Q1_BASICS = "DATING_Q1_BASICS"
    DATING_Q2_FAITH = "DATING_Q2_FAITH"
    DATING_Q3_VALUES = "DATING_Q3_VALUES"
    DATING_Q4_PHOTO = "DATING_Q4_PHOTO"

    # Track 2: Friends & Fellowship
    FRIEND_Q2_BASICS = "FRIEND_Q2_BASICS"
    FRIEND_Q3_INTERESTS = "FRIEND_Q3_INTERESTS"
    FRIEND_Q4_PREFS = "FRIEND_Q4_PREFS"

    COMPLETE = "COMPLETE"


INTENT_DEEPER = "Deeper Connections"
INTENT_FELLOWSHIP = "Friends & Fellowship"
SUB_INTENT_PRAYER = "Prayer Partner"
SUB_INTENT_BIBLE_GYM = "Bible Gym"
SUB_INTENT_BUDDY = "Buddy"


# ─────────────────────────────────────────────────────────────────────────────
# Replies
# ─────────────────────────────────────────────────────────────────────────────

WELCOME_MESSAGE = (
    "👋 *Welcome to Christ Connect!*\n"
    "Connecting believers across *South Africa*. 🇿🇦\n\n"
    "I’m Grace, your companion here. *How would you like to connect in the Word today?*\n\n"
    "1️⃣ *Intentional Companionship* 🤍\n"
    "(Bible study open to deeper connection)\n\n"
    "2️⃣ *Fellowship Companionship* 🤝\n"
    "(Bible study for friendship & community)\n\n"
    "3️⃣ *The War Room* ⚔️ (Prayer)\n"
    "4️⃣ *Bible Gym* 🧠 (Quizzes)"
)

DEEPER_INTRO = (
    "That is a beautiful desire. 'He who finds a wife finds a good thing.' 🤍\n\n"
    "Let’s build your profile so I can match you. Tell me:\n"
    "*What is your age, which city do you live in, and what do you do for a living?*"
)

PRAYER_INTRO = (
    "The War Room is a powerful place. ⚔️\n\n"
    "To connect you with prayer warriors, I just need a few basics first.\n"
    "*Tell me your age, gender, and where you're from?*"
)

BIBLE_GYM_INTRO = (
    "Let's exercise that faith! 🧠\n\n"
    "Before we start the quiz, let's create your player card.\n"
    "*Tell me your age, gender, and where you're from?*"
)

BUDDY_INTRO = (
    "Awesome! Fellowship is the glue of the Kingdom. 🤝\n\n"
    "So I don't match you with someone in the wrong season, "
    "*tell me your age, gender, and where you're from?*"
)

FAITH_QUESTION = (
    "Now, the important part, being equally yoked.\n"
    "*Which church denomination do you feel at home in? "
    "And do you have children (or want them)?*"
)

VALUES_QUESTION = (
    "Understood. I'll keep that in mind for matches. 🙏\n\n"
    "We all have boundaries. *Is there anything you absolutely cannot accept? "
    "(e.g., Smoker, unemployed, someone far away?)*"
)

PHOTO_QUESTION = (
    "Got it. I'm already scanning for matches who fit that description. 🕵️‍♀️\n\n"
    "*Last step: Please upload a photo of yourself.*\n"
    "Attraction is part of God's design, and I want to present you at your best. "
    "(Just tap the 📷 icon!)"
)

PHOTO_REMINDER = "Please upload a photo to continue (or type 'Skip' if you prefer not to)."

DATING_COMPLETE = (
    "Profile complete! 🎉\n\n"
    "I’ve added you to the confidential matching pool. I will message you the moment "
    "I find a match who fits your heart.\n"
    "Praying for this journey with you! 🤍"
)

BIBLE_GYM_COMPLETE = (
    "Profile ready! 🏃‍♂️💨\n\n"
    "You are all set up. Use the main menu to enter the Bible Gym!"
)

INTERESTS_ACK = (
    "Nice mix! 🔥\n"
    "*Do you prefer to chat with the same gender only (Brothers/Sisters), "
    "or are you open to mixed chats?*"
)

FELLOWSHIP_COMPLETE = (
    "Profile complete! 🎉\n\n"
    "I’ve added you to our community pool. I don't have a perfect match online *right now*, "
    "but I am searching. 🕵️‍♀️\n\n"
    "*The moment someone joins who matches your vibe, I will send you a message.* Hang tight! 🤝"
)

ALREADY_COMPLETE = "You are all set up! Use the main menu to navigate."

PROFILE_UNAVAILABLE = "Sorry, I couldn't load your profile right now. Please try again in a moment."


# ─────────────────────────────────────────────────────────────────────────────
# Stage handlers
# ─────────────────────────────────────────────────────────────────────────────
# Each handler mutates profile_data and returns (reply, next_stage).
# A next_stage of None means "stay and don't save".

def _select_track(message: str, profile_data: dict[str, Any]) -> tuple[str, OnboardingStage]:
    choice = message.strip().lower()

    if choice == "1" or "intentional" in choice or "deeper" in choice:
        profile_data["intent_mode"] = INTENT_DEEPER
        return DEEPER_INTRO, OnboardingStage.DATING_Q1_BASICS

    profile_data["intent_mode"] = INTENT_FELLOWSHIP
    if choice == "3" or "war" in choice or "prayer" in choice:
        profile_data["sub_intent"] = SUB_INTENT_PRAYER
        reply = PRAYER_INTRO
    elif choice == "4" or "gym" in choice or "quiz" in choice:
        profile_data["sub_intent"] = SUB_INTENT_BIBLE_GYM
        reply = BIBLE_GYM_INTRO
    else:
        profile_data["sub_intent"] = SUB_INTENT_BUDDY
        reply = BUDDY_INTRO
    return reply, OnboardingStage.FRIEND_Q2_BASICS


async def _dating_basics(message: str, profile_data: dict[str, Any]) -> tuple[str, OnboardingStage]:
    extracted = await extract_profile_data(message, "age (number), city, job_title")
    profile_data.update(extracted)

    job = extracted.get("job_title") or "hard worker"
    city = extracted.get("city") or "SA"
    return f"Nice to meet you! A {job} in {city}! 🇿🇦\n\n{FAITH_QUESTION}", OnboardingStage.DATING_Q2_FAITH


async def _dating_faith(message: str, profile_data: dict[str, Any]) -> tuple[str, OnboardingStage]:
    extracted = await extract_profile_data(
        message, "denomination, has_children (boolean), wants_children (boolean)"
    )
    profile_data.update(extracted)
    return VALUES_QUESTION, OnboardingStage.DATING_Q3_VALUES


async def _friend_basics(message: str, profile_data: dict[str, Any]) -> tuple[str, OnboardingStage]:
    extracted = await extract_profile_data(message, "age, gender, city")
    profile_data.update(extracted)

    city = extracted.get("city") or "There"
    sub_intent = profile_data.get("sub_intent")

    if sub_intent == SUB_INTENT_BIBLE_GYM:
        return BIBLE_GYM_COMPLETE, OnboardingStage.COMPLETE
    if sub_intent == SUB_INTENT_PRAYER:
        return (
            f"Thanks! {city} is a great place. 🌿\n"
            "For prayer partnerships, do you prefer to connect with *the same gender only "
            "(Brothers/Sisters), or are you open to mixed groups?*",
            OnboardingStage.FRIEND_Q4_PREFS,
        )
    return (
        f"{city} is a great place! 🌊\n"
        "To give you something to talk about, *what are you into? "
        "Soccer, Music, Business, or maybe Bible Study?*",
        OnboardingStage.FRIEND_Q3_INTERESTS,
    )


def _parse_stage(value: Any) -> OnboardingStage:
    try:
        return OnboardingStage(value)
    except ValueError:
        logger.warning("onboarding_unknown_stage", stage=value)
        return OnboardingStage.START


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    """
    Advance the onboarding questionnaire by one step.

    Args:
        db: Database session
        session: User session (last_message_type tells photo uploads apart)
        message: User message text
        context: Handoff context (unused)

    Returns:
        AgentResponse with the next question, or a completion message
    """
    wa_id = session.wa_id
    result = get_or_create_profile(db, wa_id)
    if not result.success:
        return error_response(PROFILE_UNAVAILABLE, AGENT_NAME, errors=[result.error or ""])

    profile_data = dict(result.profile.profile_data or {})
    stage = _parse_stage(profile_data.get("current_stage") or OnboardingStage.START.value)
    message = message or ""

    logger.info("onboarding_step", wa_id=mask_id(wa_id), stage=stage.value)

    if stage == OnboardingStage.COMPLETE:
        return success_response(ALREADY_COMPLETE, AGENT_NAME)

    if stage == OnboardingStage.START:
        reply, next_stage = WELCOME_MESSAGE, OnboardingStage.AWAIT_TRACK_SELECTION

    elif stage == OnboardingStage.AWAIT_TRACK_SELECTION:
        reply, next_stage = _select_track(message, profile_data)

    elif stage == OnboardingStage.DATING_Q1_BASICS:
        reply, next_stage = await _dating_basics(message, profile_data)

    elif stage == OnboardingStage.DATING_Q2_FAITH:
        reply, next_stage = await _dating_faith(message, profile_data)

    elif stage == OnboardingStage.DATING_Q3_VALUES:
        profile_data["dealbreakers"] = message
        reply, next_stage = PHOTO_QUESTION, OnboardingStage.DATING_Q4_PHOTO

    elif stage == OnboardingStage.DATING_Q4_PHOTO:
        is_photo = session.last_message_type == MessageType.IMAGE.value
        if not is_photo and "skip" not in message.lower():
            return awaiting_input_response(PHOTO_REMINDER, AGENT_NAME)
        profile_data["photo_uploaded"] = True
        reply, next_stage = DATING_COMPLETE, OnboardingStage.COMPLETE

    elif stage == OnboardingStage.FRIEND_Q2_BASICS:
        reply, next_stage = await _friend_basics(message, profile_data)

    elif stage == OnboardingStage.FRIEND_Q3_INTERESTS:
        profile_data["interests"] = message
        reply, next_stage = INTERESTS_ACK, OnboardingStage.FRIEND_Q4_PREFS

    else:  # FRIEND_Q4_PREFS
        profile_data["gender_pref"] = "mixed" if "mixed" in message.lower() else "same_gender"
        reply, next_stage = FELLOWSHIP_COMPLETE, OnboardingStage.COMPLETE

    completed = next_stage == OnboardingStage.COMPLETE
    profile_data["current_stage"] = next_stage.value
    status = ProfileStatus.WAITLIST_COMPLETED if completed else ProfileStatus.ONBOARDING_STARTED
    saved = update_profile(db, wa_id, profile_data=profile_data, status=status.value)
    if not saved.success:
        logger.warning("onboarding_save_failed", wa_id=mask_id(wa_id), stage=next_stage.value)

    if completed:
        logger.info("onboarding_completed", wa_id=mask_id(wa_id), track=profile_data.get("intent_mode"))
        return success_response(reply, AGENT_NAME)
    return awaiting_input_response(reply, AGENT_NAME)
