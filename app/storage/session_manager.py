"""
Session manager.

Provides persistent per-user conversation state across webhook calls:
- get-or-create with the in-memory cache in front of the chat_sessions table
- deep-merge updates
- bounded message history

Database writes are best effort. If the database is down, sessions keep
working from the cache for the lifetime of the process.
"""

from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.logging_config import get_logger, mask_id
from app.models import ChatSession
from app.storage.session_cache import SessionData, session_cache

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def deep_merge(target: dict[str, Any], source: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge source into a copy of target.

    Nested dicts are merged recursively; lists and scalars in source
    replace the value in target.

    Example:
        >>> deep_merge({"state": {"a": 1, "b": 1}}, {"state": {"b": 2}})
        {'state': {'a': 1, 'b': 2}}
    """
    if not source:
        return dict(target)

    output = dict(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            output[key] = deep_merge(target[key], value)
        else:
            output[key] = value
    return output


def create_new_session(wa_id: str) -> SessionData:
    """Create a new session object with default values."""
    session = SessionData(wa_id=wa_id, user_id=wa_id)
    session.touch()
    return session


def create_emergency_session(wa_id: str) -> SessionData:
    """Minimal session returned when nothing else works. Not usable for a turn."""
    session = SessionData(wa_id=wa_id, user_id=wa_id, emergency_fallback=True)
    session.touch()
    return session


def is_duplicate_message(session: SessionData, message_id: str | None) -> bool:
    """
    Check if an inbound message was already processed.

    Providers retry webhooks; a repeated message id must not be
    appended to history twice.
    """
    return bool(message_id) and session.last_message_id == message_id


def _log_database_error(error: SQLAlchemyError, operation: str, wa_id: str) -> None:
    message = str(error).lower()
    if "no such table" in message or "does not exist" in message:
        logger.error(
            "session_database_schema_error",
            operation=operation,
            wa_id=mask_id(wa_id),
            hint="chat_sessions table missing; run init_db()",
        )
    else:
        logger.error(
            "session_database_error",
            operation=operation,
            wa_id=mask_id(wa_id),
            error=str(error),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────

def _load_session(db: Session, wa_id: str) -> SessionData | None:
    try:
        row = db.get(ChatSession, wa_id)
    except SQLAlchemyError as e:
        db.rollback()
        _log_database_error(e, "retrieval", wa_id)
        return None

    if row is None:
        return None

    data = dict(row.session_data or {})
    data["wa_id"] = wa_id
    data.setdefault("created_at", row.created_at.isoformat() if row.created_at else "")
    return SessionData.from_dict(data)


def _persist_session(db: Session | None, session: SessionData, operation: str) -> bool:
    """Upsert the session row. Failures are logged and the cached copy is kept."""
    if db is None:
        return False

    try:
        row = db.get(ChatSession, session.wa_id)
        if row is None:
            row = ChatSession(wa_id=session.wa_id, session_data=session.to_dict())
            db.add(row)
        else:
            row.session_data = session.to_dict()
            row.last_updated = datetime.utcnow()
        db.commit()
        logger.debug("session_persisted", operation=operation, wa_id=mask_id(session.wa_id))
        return True
    except SQLAlchemyError as e:
        db.rollback()
        _log_database_error(e, operation, session.wa_id)
        return False


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def get_session(db: Session | None, wa_id: str) -> SessionData:
    """
    Get a user session, creating it on first contact.

    Lookup order: cache, database, new session. A new session is cached
    immediately and inserted into the database best effort.

    Args:
        db: Database session (None for cache-only operation)
        wa_id: WhatsApp/ManyChat subscriber id

    Returns:
        SessionData. On unexpected failure an emergency session with
        emergency_fallback=True.
    """
    try:
        cached = session_cache.get(wa_id)
        if cached is not None:
            logger.debug("session_cache_hit", wa_id=mask_id(wa_id))
            return cached

        if db is not None:
            stored = _load_session(db, wa_id)
            if stored is not None:
                logger.info("session_loaded", wa_id=mask_id(wa_id))
                session_cache.set(wa_id, stored)
                return stored

        session = create_new_session(wa_id)
        session_cache.set(wa_id, session)
        _persist_session(db, session, "creation")

        logger.info("session_created", wa_id=mask_id(wa_id))
        return session

    except Exception as e:
        logger.error(
            "session_critical_error",
            wa_id=mask_id(wa_id),
            error=str(e),
            exc_info=True,
        )
        return create_emergency_session(wa_id)


def update_session(db: Session | None, wa_id: str, update: dict[str, Any]) -> SessionData:
    """
    Update a user session with new data.

    Args:
        db: Database session
        wa_id: User identifier
        update: Partial session dict, deep-merged into the current session

    Returns:
        Updated session (the current session if the update fails)
    """
    try:
        session = get_session(db, wa_id)
        updated = SessionData.from_dict(deep_merge(session.to_dict(), update))
        updated.touch()

        session_cache.set(wa_id, updated)
        _persist_session(db, updated, "update")
        return updated

    except Exception as e:
        logger.error(
            "session_update_failed",
            wa_id=mask_id(wa_id),
            error=str(e),
            exc_info=True,
        )
        return get_session(db, wa_id)


def add_to_history(db: Session | None, wa_id: str, message: dict[str, Any]) -> SessionData:
    """
    Append a message to the user's history.

    Keeps the most recent session_history_limit messages and counts
    user turns in conversation_count.

    Args:
        db: Database session
        wa_id: User identifier
        message: {"role": "user"|"assistant", "content": str}

    Returns:
        Updated session
    """
    try:
        session = get_session(db, wa_id)
        limit = settings.session_history_limit

        history = list(session.history or [])
        if len(history) >= limit:
            history = history[-(limit - 1):] if limit > 1 else []
        history.append(message)
        session.history = history

        if message.get("role") == "user":
            session.conversation_count = (session.conversation_count or 0) + 1

        session.touch()
        session_cache.set(wa_id, session)
        _persist_session(db, session, "history")
        return session

    except Exception as e:
        logger.error(
            "session_history_update_failed",
            wa_id=mask_id(wa_id),
            error=str(e),
            exc_info=True,
        )
        return get_session(db, wa_id)
