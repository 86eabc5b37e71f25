"""
Centralized prompts for the chatbot service.

All LLM prompts and long fixed replies are defined in this package for
easy maintenance.
"""

from app.prompts.conversation import (
    SMALL_TALK_FALLBACK,
    SMALL_TALK_PROMPT,
    SMALL_TALK_SYSTEM,
    WELCOME_MESSAGE,
    build_small_talk_system,
)
from app.prompts.profile_extraction import (
    PROFILE_EXTRACTION_PROMPT,
    PROFILE_EXTRACTION_SYSTEM,
)

__all__ = [
    # Conversation agent
    "SMALL_TALK_FALLBACK",
    "SMALL_TALK_PROMPT",
    "SMALL_TALK_SYSTEM",
    "WELCOME_MESSAGE",
    "build_small_talk_system",
    # Profile extraction
    "PROFILE_EXTRACTION_PROMPT",
    "PROFILE_EXTRACTION_SYSTEM",
]
