"""
Storage layer for persisting data.

This module provides:
- Session cache and session manager for per-user conversation state
- Profile writer for the onboarding flow and notification job
- Application writer for bursary application drafts
"""

from app.storage.session_cache import SessionCache, SessionData, session_cache
from app.storage.session_manager import (
    add_to_history,
    create_new_session,
    deep_merge,
    get_session,
    is_duplicate_message,
    update_session,
)
from app.storage.profile_writer import (
    ProfileWriteResult,
    get_or_create_profile,
    get_profile,
    get_profile_status,
    get_profiles_due_for_notification,
    mark_notified,
    update_profile,
)
from app.storage.application_writer import (
    ApplicationStorageError,
    ApplicationWriteResult,
    cancel_draft,
    create_application,
    get_draft_application,
    get_latest_application,
    get_or_create_draft,
    save_application,
)

__all__ = [
    # Session cache
    "SessionCache",
    "SessionData",
    "session_cache",
    # Session manager
    "add_to_history",
    "create_new_session",
    "deep_merge",
    "get_session",
    "is_duplicate_message",
    "update_session",
    # Profile writer
    "ProfileWriteResult",
    "get_or_create_profile",
    "get_profile",
    "get_profile_status",
    "get_profiles_due_for_notification",
    "mark_notified",
    "update_profile",
    # Application writer
    "ApplicationStorageError",
    "ApplicationWriteResult",
    "cancel_draft",
    "create_application",
    "get_draft_application",
    "get_latest_application",
    "get_or_create_draft",
    "save_application",
]
