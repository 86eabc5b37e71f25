"""Unit tests for application_writer storage module."""

import pytest
from sqlalchemy.exc import OperationalError

from app.models import ApplicationStage, ApplicationStatus
from app.storage.application_writer import (
    ApplicationStorageError,
    cancel_draft,
    get_draft_application,
    get_latest_application,
    get_or_create_draft,
    save_application,
)


class TestGetOrCreateDraft:
    """Tests for get_or_create_draft."""

    def test_creates_draft(self, db, wa_id):
        draft = get_or_create_draft(db, wa_id)

        assert draft.status == ApplicationStatus.DRAFT.value
        assert draft.current_stage == ApplicationStage.QUICK_MATCH.value
        assert draft.stage_progress == {}
        assert draft.matched_bursaries == []

    def test_reuses_existing_draft(self, db, wa_id):
        first = get_or_create_draft(db, wa_id)
        assert get_or_create_draft(db, wa_id).id == first.id

    def test_submitted_application_is_not_a_draft(self, db, wa_id, submitted_application):
        draft = get_or_create_draft(db, wa_id)
        assert draft.id != submitted_application.id

    def test_load_failure_raises(self, db, wa_id, mocker):
        mocker.patch.object(db, "query", side_effect=OperationalError("SELECT", {}, Exception("down")))
        with pytest.raises(ApplicationStorageError):
            get_or_create_draft(db, wa_id)

    def test_insert_failure_raises(self, db, wa_id, mocker):
        mocker.patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("down")))
        with pytest.raises(ApplicationStorageError, match="insert failed"):
            get_or_create_draft(db, wa_id)


class TestSaveApplication:
    """Tests for save_application."""

    def test_in_place_json_changes_are_saved(self, db, wa_id):
        """Test: Mutating stage_progress in place is persisted."""
        draft = get_or_create_draft(db, wa_id)
        draft.stage_progress["match_step"] = 3

        assert save_application(db, draft) is True
        db.expire_all()
        assert get_draft_application(db, wa_id).stage_progress == {"match_step": 3}

    def test_failure_returns_false(self, db, wa_id, mocker):
        draft = get_or_create_draft(db, wa_id)
        mocker.patch.object(db, "commit", side_effect=OperationalError("UPDATE", {}, Exception("down")))

        assert save_application(db, draft) is False


class TestCancelDraft:
    """Tests for cancel_draft."""

    def test_cancels_draft(self, db, wa_id):
        get_or_create_draft(db, wa_id)

        assert cancel_draft(db, wa_id) is True
        assert get_draft_application(db, wa_id) is None
        assert get_latest_application(db, wa_id).status == ApplicationStatus.CANCELLED.value

    def test_no_draft(self, db, wa_id):
        assert cancel_draft(db, wa_id) is False

    def test_submitted_application_is_untouched(self, db, wa_id, submitted_application):
        assert cancel_draft(db, wa_id) is False
        assert get_latest_application(db, wa_id).status == ApplicationStatus.SUBMITTED.value
