"""Unit tests for the session cache and session manager."""

import time

import pytest
from sqlalchemy.exc import OperationalError

from app.models import ChatSession
from app.storage import session_manager
from app.storage.session_cache import SessionCache, SessionData, session_cache
from app.storage.session_manager import (
    add_to_history,
    deep_merge,
    get_session,
    is_duplicate_message,
    update_session,
)


# ─────────────────────────────────────────────────────────────────────────────
# Test: Session Cache
# ─────────────────────────────────────────────────────────────────────────────

class TestSessionCache:
    """Tests for the TTL cache."""

    def test_set_and_get(self):
        """Test: A cached session is returned."""
        cache = SessionCache(ttl_seconds=60)
        session = SessionData(wa_id="123")
        cache.set("123", session)

        assert cache.get("123") is session
        assert cache.size == 1

    def test_expired_entry_is_evicted_on_get(self):
        """Test: Entries past the TTL are dropped lazily."""
        cache = SessionCache(ttl_seconds=0)
        cache.set("123", SessionData(wa_id="123"))
        time.sleep(0.01)

        assert cache.get("123") is None
        assert cache.size == 0

    def test_cleanup_expired(self):
        """Test: cleanup_expired removes every stale entry."""
        cache = SessionCache(ttl_seconds=0)
        cache.set("a", SessionData(wa_id="a"))
        cache.set("b", SessionData(wa_id="b"))
        time.sleep(0.01)

        assert cache.cleanup_expired() == 2
        assert cache.size == 0

    def test_delete(self):
        cache = SessionCache(ttl_seconds=60)
        cache.set("a", SessionData(wa_id="a"))

        assert cache.delete("a") is True
        assert cache.delete("a") is False


class TestSessionData:
    """Tests for SessionData helpers."""

    def test_from_dict_ignores_unknown_keys(self):
        session = SessionData.from_dict({"wa_id": "1", "legacy_field": True})
        assert session.wa_id == "1"

    def test_last_assistant_message(self):
        session = SessionData(wa_id="1", history=[
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "2"},
        ])
        assert session.last_assistant_message == "Hello!"

    def test_defaults(self):
        session = SessionData(wa_id="1")
        assert session.current_agent == "conversation_agent"
        assert session.is_valid is True
        assert session.history == []


# ─────────────────────────────────────────────────────────────────────────────
# Test: Deep Merge
# ─────────────────────────────────────────────────────────────────────────────

class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_dicts_are_merged(self):
        merged = deep_merge({"state": {"a": 1, "b": 1}}, {"state": {"b": 2, "c": 3}})
        assert merged == {"state": {"a": 1, "b": 2, "c": 3}}

    def test_lists_are_replaced(self):
        merged = deep_merge({"history": [1, 2]}, {"history": [3]})
        assert merged == {"history": [3]}

    def test_target_is_not_mutated(self):
        target = {"state": {"a": 1}}
        deep_merge(target, {"state": {"a": 2}})
        assert target == {"state": {"a": 1}}

    def test_empty_source(self):
        assert deep_merge({"a": 1}, None) == {"a": 1}


# ─────────────────────────────────────────────────────────────────────────────
# Test: Session Manager
# ─────────────────────────────────────────────────────────────────────────────

class TestGetSession:
    """Tests for get_session."""

    def test_creates_and_persists_new_session(self, db, wa_id):
        """Test: First contact creates a session in cache and database."""
        session = get_session(db, wa_id)

        assert session.wa_id == wa_id
        assert session.user_id == wa_id
        assert session.created_at
        assert session_cache.get(wa_id) is session
        assert db.get(ChatSession, wa_id) is not None

    def test_returns_cached_session(self, db, wa_id):
        first = get_session(db, wa_id)
        assert get_session(db, wa_id) is first

    def test_loads_session_from_database(self, db, wa_id):
        """Test: A session evicted from the cache is restored from the database."""
        update_session(db, wa_id, {"user_name": "Thabo", "state": {"intent": "apply"}})
        session_cache.clear()

        session = get_session(db, wa_id)

        assert session.user_name == "Thabo"
        assert session.state == {"intent": "apply"}

    def test_works_without_database(self, wa_id):
        session = get_session(None, wa_id)
        assert session.wa_id == wa_id
        assert session.is_valid is True

    def test_database_error_falls_back_to_cache(self, db, wa_id, mocker):
        """Test: A database outage still yields a usable session."""
        mocker.patch.object(db, "get", side_effect=OperationalError("SELECT", {}, Exception("down")))

        session = get_session(db, wa_id)

        assert session.is_valid is True
        assert session_cache.get(wa_id) is session

    def test_unexpected_error_returns_emergency_session(self, db, wa_id, mocker):
        mocker.patch.object(session_manager, "create_new_session", side_effect=RuntimeError("boom"))

        session = get_session(db, wa_id)

        assert session.emergency_fallback is True
        assert session.is_valid is False


class TestUpdateSession:
    """Tests for update_session."""

    def test_deep_merges_state(self, db, wa_id):
        update_session(db, wa_id, {"state": {"intent": "apply", "locked_agent": "application"}})
        session = update_session(db, wa_id, {"state": {"locked_agent": None}})

        assert session.state == {"intent": "apply", "locked_agent": None}

    def test_persists_update(self, db, wa_id):
        update_session(db, wa_id, {"welcome_sent": True})
        row = db.get(ChatSession, wa_id)
        db.refresh(row)

        assert row.session_data["welcome_sent"] is True


class TestAddToHistory:
    """Tests for add_to_history."""

    def test_appends_and_counts_user_turns(self, db, wa_id):
        add_to_history(db, wa_id, {"role": "user", "content": "Hi"})
        session = add_to_history(db, wa_id, {"role": "assistant", "content": "Hello"})

        assert [m["content"] for m in session.history] == ["Hi", "Hello"]
        assert session.conversation_count == 1

    def test_history_is_bounded(self, db, wa_id, monkeypatch):
        """Test: Only the most recent messages are kept."""
        monkeypatch.setattr(session_manager.settings, "session_history_limit", 3)

        for i in range(5):
            session = add_to_history(db, wa_id, {"role": "user", "content": str(i)})

        assert [m["content"] for m in session.history] == ["2", "3", "4"]
        assert session.conversation_count == 5


class TestDuplicateMessages:
    """Tests for is_duplicate_message."""

    def test_same_message_id_is_duplicate(self):
        session = SessionData(wa_id="1", last_message_id="wamid.1")
        assert is_duplicate_message(session, "wamid.1") is True

    @pytest.mark.parametrize("message_id", [None, "", "wamid.2"])
    def test_other_ids_are_not_duplicates(self, message_id):
        session = SessionData(wa_id="1", last_message_id="wamid.1")
        assert is_duplicate_message(session, message_id) is False
