"""
Intent Definitions for Agent Routing.

This module defines:
- Agent types and the intents they serve
- Rule-based intent analysis (no LLM call)
- Bursary main-menu keywords and helpers
"""

import re
from enum import Enum


class AgentType(str, Enum):
    """
    Available agent types for routing.

    Each agent handles a specific domain:
    - ONBOARDING: Christ Connect profile questionnaire
    - MENU: Comedy ticketing menu
    - APPLICATION: Bursary application wizard
    - BURSARY_LISTER: Static list of partner bursaries
    - CONTACT: Contact details
    - CONVERSATION: Greetings, small talk, profile summary
    - DELETED_USER: Fixed reply for users who deleted their profile
    - BRAIN: Routing and orchestration (not a target)
    """

    ONBOARDING = "onboarding"
    MENU = "menu"
    APPLICATION = "application"
    BURSARY_LISTER = "bursary_lister"
    CONTACT = "contact"
    CONVERSATION = "conversation"
    DELETED_USER = "deleted_user"
    BRAIN = "brain"  # For handoff back to router


class Intent(str, Enum):
    """Intent stored in session.state["intent"]."""

    # Christ Connect returning-user menu
    SHARE_IDEA = "share_idea"
    DELETE_PROFILE = "delete_profile"
    CREATE_PROFILE = "create_profile"
    CHECK_STATUS = "check_status"

    # Bursary bot
    GREETING = "greeting"
    APPLY = "apply"
    LIST_BURSARIES = "list_bursaries"
    VIEW_PROFILE = "view_profile"
    CONTACT = "contact"
    CANCEL_APPLICATION = "cancel_application"
    SMALL_TALK = "small_talk"


# ─────────────────────────────────────────────────────────────────────────────
# Keywords
# ─────────────────────────────────────────────────────────────────────────────

GREETING_KEYWORDS = {
    "hi", "hello", "hey", "hallo", "howzit", "sawubona", "molo", "dumela",
    "menu", "start", "main menu", "good morning", "good afternoon", "good evening",
}

# Menu number -> (agent, keywords that select it without the number)
MENU_CHOICES: dict[str, tuple[AgentType, tuple[str, ...]]] = {
    "1": (AgentType.APPLICATION, ("apply", "application")),
    "2": (AgentType.BURSARY_LISTER, ("available", "list bursaries", "bursary list")),
    "3": (AgentType.CONVERSATION, ("profile",)),
    "4": (AgentType.CONTACT, ("contact",)),
}

MENU_CHOICE_INTENTS = {
    AgentType.APPLICATION: Intent.APPLY,
    AgentType.BURSARY_LISTER: Intent.LIST_BURSARIES,
    AgentType.CONVERSATION: Intent.VIEW_PROFILE,
    AgentType.CONTACT: Intent.CONTACT,
}

CANCEL_APPLICATION_PHRASE = "cancel application"

_EMOJI_NUMBERS = {"1️⃣": "1", "2️⃣": "2", "3️⃣": "3", "4️⃣": "4"}


def _normalize(message: str | None) -> str:
    return (message or "").strip().lower()


# ─────────────────────────────────────────────────────────────────────────────
# Intent Detection Utilities
# ─────────────────────────────────────────────────────────────────────────────

def analyze_intent(message: str | None, history: list[dict] | None = None) -> Intent:
    """
    Rule-based intent for the Christ Connect returning-user menu.

    Rules are checked in order, first match wins. The history is accepted
    for interface compatibility but not used.

    Example:
        >>> analyze_intent("2")
        <Intent.DELETE_PROFILE: 'delete_profile'>
        >>> analyze_intent("My name is Thabo")
        <Intent.CHECK_STATUS: 'check_status'>
    """
    msg = _normalize(message)

    if "idea" in msg or msg == "1":
        return Intent.SHARE_IDEA
    if "delete" in msg or msg == "2":
        return Intent.DELETE_PROFILE
    if msg == "yes delete":
        return Intent.DELETE_PROFILE
    if "agree" in msg:
        return Intent.CREATE_PROFILE
    return Intent.CHECK_STATUS


def is_greeting(message: str | None) -> bool:
    """
    Check if a message is a greeting or a request for the main menu.

    Matches the whole message, optionally followed by punctuation or a
    name ("Hi!", "hello there", "good morning Grace").
    """
    msg = re.sub(r"[!.,?]+$", "", _normalize(message))
    if not msg:
        return False
    if msg in GREETING_KEYWORDS:
        return True
    words = msg.split()
    return words[0] in GREETING_KEYWORDS or " ".join(words[:2]) in GREETING_KEYWORDS


def detect_menu_choice(message: str | None) -> AgentType | None:
    """
    Map a bursary main-menu reply to the agent that serves it.

    Accepts the bare number ("1", "1.", "1️⃣") or a keyword.

    Returns:
        AgentType, or None if the message is not a menu choice
    """
    msg = _normalize(message)
    if not msg:
        return None

    number = _EMOJI_NUMBERS.get(msg, msg.rstrip(".)"))
    if number in MENU_CHOICES:
        return MENU_CHOICES[number][0]

    for agent, keywords in MENU_CHOICES.values():
        if any(keyword in msg for keyword in keywords):
            return agent
    return None


def is_cancel_application(message: str | None) -> bool:
    """Check for the phrase that abandons an application draft."""
    return CANCEL_APPLICATION_PHRASE in _normalize(message)


def analyze_bursary_intent(message: str | None) -> Intent:
    """
    Intent for the bursary bot, used for session state and agent hints.

    Example:
        >>> analyze_bursary_intent("Hi")
        <Intent.GREETING: 'greeting'>
        >>> analyze_bursary_intent("2")
        <Intent.LIST_BURSARIES: 'list_bursaries'>
    """
    if is_cancel_application(message):
        return Intent.CANCEL_APPLICATION
    if is_greeting(message):
        return Intent.GREETING

    choice = detect_menu_choice(message)
    if choice is not None:
        return MENU_CHOICE_INTENTS[choice]
    return Intent.SMALL_TALK
