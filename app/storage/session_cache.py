"""
In-memory session cache.

This module provides a fast, TTL-based cache for conversation sessions
that sits in front of the chat_sessions table. It's designed to:
- Serve hot sessions without a DB round trip
- Auto-expire sessions after inactivity
- Keep the bot answering when the database is unavailable
"""

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from app.config import settings
from app.logging_config import get_logger, mask_id

logger = get_logger(__name__)


@dataclass
class SessionData:
    """
    A user's conversation session.

    history holds {"role": "user"|"assistant", "content": str} entries.
    state is free-form and owned by the brain and the agents, e.g.:
        {
            "intent": "check_status",
            "last_agent": "menu_agent",
            "locked_agent": "application",
            "menu_agent_state": {"stage": "SELECT_SHOW"},
        }
    """
    wa_id: str
    user_id: str | None = None
    user_name: str | None = None

    # Conversation
    history: list[dict[str, Any]] = field(default_factory=list)
    state: dict[str, Any] = field(default_factory=dict)
    conversation_count: int = 0
    welcome_sent: bool = False
    has_received_help: bool = False

    # Agent routing
    current_agent: str | None = "conversation_agent"
    agent_handoff_history: list[dict[str, Any]] = field(default_factory=list)
    last_agent_handoff: dict[str, Any] | None = None

    # Last inbound message
    last_message_type: str = "text"
    last_message_id: str | None = None

    # Set when the session could not be loaded or created at all
    emergency_fallback: bool = False

    # Timestamps
    created_at: str = ""
    last_updated: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionData":
        """Create from dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def touch(self) -> None:
        """Update the last_updated timestamp."""
        now = datetime.utcnow().isoformat()
        self.last_updated = now
        if not self.created_at:
            self.created_at = now

    @property
    def is_valid(self) -> bool:
        """Whether the session can be used to run a conversation turn."""
        return not self.emergency_fallback

    @property
    def last_assistant_message(self) -> str | None:
        for entry in reversed(self.history):
            if entry.get("role") == "assistant":
                return entry.get("content")
        return None


@dataclass
class _CacheEntry:
    data: SessionData
    cached_at: float


class SessionCache:
    """
    Process-local TTL cache keyed by wa_id.

    Entries expire session_ttl_minutes after they were last written.
    Expired entries are evicted lazily on get() and in bulk by
    cleanup_expired(), which the API runs on a timer.
    """

    def __init__(self, ttl_seconds: float | None = None):
        self._entries: dict[str, _CacheEntry] = {}
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.session_ttl_minutes * 60
        )

    def _is_expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.cached_at > self.ttl_seconds

    def get(self, wa_id: str) -> SessionData | None:
        """
        Get cached session.

        Returns:
            SessionData if cached and not expired, None otherwise
        """
        entry = self._entries.get(wa_id)
        if entry is None:
            return None

        if self._is_expired(entry, time.monotonic()):
            del self._entries[wa_id]
            logger.debug("session_cache_expired", wa_id=mask_id(wa_id))
            return None

        return entry.data

    def set(self, wa_id: str, session: SessionData) -> None:
        """Cache a session, resetting its TTL."""
        self._entries[wa_id] = _CacheEntry(data=session, cached_at=time.monotonic())

    def delete(self, wa_id: str) -> bool:
        return self._entries.pop(wa_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)

    def cleanup_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of sessions removed
        """
        now = time.monotonic()
        logger.debug("session_cache_cleanup_started", size=self.size)

        expired = [
            wa_id for wa_id, entry in self._entries.items()
            if self._is_expired(entry, now)
        ]
        for wa_id in expired:
            del self._entries[wa_id]

        logger.info("session_cache_cleanup", removed=len(expired), remaining=self.size)
        return len(expired)


# Global cache instance
session_cache = SessionCache()
