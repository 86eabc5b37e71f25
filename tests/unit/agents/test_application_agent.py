"""
Unit tests for the bursary application wizard.

The email sender is mocked; drafts live in the in-memory database.
"""

from unittest.mock import AsyncMock

import pytest

from app.agents.application import agent as application_agent
from app.agents.application.agent import build_review_summary, parse_average, pending_question, process
from app.agents.common.response import AgentStatus
from app.agents.common.state_manager import agent_state_manager
from app.integrations.email import EmailResult
from app.models import ApplicationStage, ApplicationStatus
from app.storage.application_writer import ApplicationStorageError, get_latest_application
from app.storage.session_cache import SessionData


@pytest.fixture
def session(wa_id):
    return SessionData(wa_id=wa_id, user_id=wa_id)


@pytest.fixture
def mock_email(mocker):
    return mocker.patch.object(
        application_agent,
        "send_application_email",
        new_callable=AsyncMock,
        return_value=EmailResult(success=True, email_id="email_1"),
    )


async def run(db, session, *messages):
    response = None
    for message in messages:
        response = await process(db, session, message)
    return response


def latest(db, wa_id):
    db.expire_all()
    return get_latest_application(db, wa_id)


QUICK_MATCH = ("1", "1", "1", "1")  # start, citizen, STEM, low income


class TestParseAverage:
    """Tests for parse_average."""

    @pytest.mark.parametrize("text,expected", [
        ("75", 75.0),
        ("75%", 75.0),
        ("72,5", 72.5),
        ("0", 0.0),
        ("100", 100.0),
    ])
    def test_valid(self, text, expected):
        assert parse_average(text) == expected

    @pytest.mark.parametrize("text", ["abc", "101", "-5", ""])
    def test_invalid(self, text):
        assert parse_average(text) is None


# ─────────────────────────────────────────────────────────────────────────────
# Test: Quick Match
# ─────────────────────────────────────────────────────────────────────────────

class TestQuickMatch:
    """Steps 1-3 and the early matches."""

    @pytest.mark.asyncio
    async def test_first_message_asks_citizenship(self, db, session, wa_id):
        response = await process(db, session, "1")

        assert "Step 1/8" in response.response_text
        assert response.status == AgentStatus.AWAITING_INPUT
        assert latest(db, wa_id).stage_progress == {"match_step": 2}

    @pytest.mark.asyncio
    async def test_non_citizen_is_ineligible(self, db, session, wa_id):
        response = await run(db, session, "1", "2")

        assert "require citizenship" in response.response_text
        assert response.keeps_lock is False
        application = latest(db, wa_id)
        assert application.status == ApplicationStatus.INELIGIBLE.value
        assert application.is_sa_citizen is False

    @pytest.mark.asyncio
    async def test_yes_is_accepted(self, db, session, wa_id):
        response = await run(db, session, "1", "Yes")
        assert "Step 2/8" in response.response_text

    @pytest.mark.asyncio
    async def test_early_matches(self, db, session, wa_id):
        response = await run(db, session, *QUICK_MATCH)

        assert "Great news! You match these bursaries" in response.response_text
        assert "Siemens Bursary" in response.response_text
        assert "What's your full name?" in response.response_text

        application = latest(db, wa_id)
        assert application.field_of_study == "STEM"
        assert application.household_income == 200_000
        assert application.academic_average == 65
        assert application.current_stage == ApplicationStage.BASIC_DETAILS.value
        assert application.stage_progress == {"detail_step": 1}

    @pytest.mark.asyncio
    async def test_unknown_field_is_other(self, db, session, wa_id):
        await run(db, session, "1", "1", "9", "3")

        application = latest(db, wa_id)
        assert application.field_of_study == "Other"
        assert application.household_income == 700_000
        assert application.matched_bursaries == []


# ─────────────────────────────────────────────────────────────────────────────
# Test: Basic Details
# ─────────────────────────────────────────────────────────────────────────────

class TestBasicDetails:
    """Steps 4-7."""

    @pytest.mark.asyncio
    async def test_name(self, db, session):
        response = await run(db, session, *QUICK_MATCH, "Thabo Nkosi")
        assert response.response_text.startswith("Thanks Thabo! ✅")

    @pytest.mark.asyncio
    async def test_invalid_email_repeats_step(self, db, session, wa_id):
        response = await run(db, session, *QUICK_MATCH, "Thabo Nkosi", "not-an-email")

        assert response.response_text == application_agent.INVALID_EMAIL
        assert latest(db, wa_id).stage_progress["detail_step"] == 2

    @pytest.mark.asyncio
    async def test_email_is_lowercased(self, db, session, wa_id):
        await run(db, session, *QUICK_MATCH, "Thabo Nkosi", "Thabo@Example.COM")

        application = latest(db, wa_id)
        assert application.email == "thabo@example.com"
        assert application.phone_number == wa_id

    @pytest.mark.asyncio
    async def test_invalid_average(self, db, session):
        response = await run(db, session, *QUICK_MATCH, "Thabo Nkosi", "t@example.com", "excellent")
        assert response.response_text == application_agent.INVALID_AVERAGE

    @pytest.mark.asyncio
    async def test_average_rematches(self, db, session, wa_id):
        await run(db, session, *QUICK_MATCH, "Thabo Nkosi", "t@example.com", "78")

        names = [m["name"] for m in latest(db, wa_id).matched_bursaries]
        assert names == ["Siemens Bursary", "Bureau Veritas Bursary"]

    @pytest.mark.asyncio
    async def test_motivation_shows_review(self, db, session, wa_id):
        response = await run(
            db, session, *QUICK_MATCH, "Thabo Nkosi", "t@example.com", "78", "I love building things."
        )

        assert "REVIEW YOUR APPLICATION" in response.response_text
        assert "🎯 Match Score: 100/100" in response.response_text
        application = latest(db, wa_id)
        assert application.current_stage == ApplicationStage.REVIEW.value
        assert application.application_ref.startswith("FME-TN-")


# ─────────────────────────────────────────────────────────────────────────────
# Test: Review & Submit
# ─────────────────────────────────────────────────────────────────────────────

class TestReview:
    """Step 8."""

    @pytest.mark.asyncio
    async def test_submit_sends_email(self, db, session, wa_id, review_application, mock_email):
        response = await process(db, session, "1")

        assert "Application submitted successfully!" in response.response_text
        assert "Reference: FME-TN-ABC123" in response.response_text
        assert response.status == AgentStatus.COMPLETED
        mock_email.assert_awaited_once()

        application = latest(db, wa_id)
        assert application.status == ApplicationStatus.SUBMITTED.value
        assert application.current_stage == ApplicationStage.COMPLETE.value
        assert application.submitted_at is not None

    @pytest.mark.asyncio
    async def test_email_failure_still_submits(self, db, session, wa_id, review_application, mock_email):
        mock_email.return_value = EmailResult(success=False, error="HTTP 500")

        response = await process(db, session, "submit")

        assert "Email delivery pending" in response.response_text
        assert latest(db, wa_id).status == ApplicationStatus.SUBMITTED.value

    @pytest.mark.asyncio
    async def test_save_failure_keeps_review(self, db, session, review_application, mock_email, mocker):
        mocker.patch.object(application_agent, "save_application", return_value=False)

        response = await process(db, session, "1")

        assert response.response_text == application_agent.SUBMIT_SAVE_FAILED
        assert response.keeps_lock is True
        mock_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_not_available(self, db, session, review_application):
        response = await process(db, session, "2")
        assert response.response_text == application_agent.EDIT_NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_other_reply(self, db, session, review_application):
        response = await process(db, session, "maybe")
        assert response.response_text == application_agent.REVIEW_CHOICES

    def test_summary_truncates_motivation(self, review_application):
        review_application.motivation_text = "m" * 200
        summary = build_review_summary(review_application)

        assert f"\"{'m' * 120}...\"" in summary
        assert "78% average" in summary


# ─────────────────────────────────────────────────────────────────────────────
# Test: Cancel & Errors
# ─────────────────────────────────────────────────────────────────────────────

class TestCancel:
    """Cancelling the draft."""

    @pytest.mark.asyncio
    async def test_cancel_hands_off_to_conversation(self, db, session, wa_id):
        await run(db, session, "1", "1")

        response = await process(db, session, "cancel application")

        assert response.status == AgentStatus.HANDOFF
        assert response.handoff_to == "conversation"
        assert response.handoff_context == {"show_menu": True}
        assert latest(db, wa_id).status == ApplicationStatus.CANCELLED.value

    @pytest.mark.asyncio
    async def test_new_draft_after_cancel(self, db, session, wa_id):
        await run(db, session, "1", "1", "cancel application")

        response = await process(db, session, "1")

        assert "Step 1/8" in response.response_text

    @pytest.mark.asyncio
    async def test_load_failure(self, db, session, mocker):
        mocker.patch.object(
            application_agent, "get_or_create_draft", side_effect=ApplicationStorageError("db down")
        )

        response = await process(db, session, "1")

        assert response.status == AgentStatus.ERROR
        assert response.response_text == application_agent.LOAD_FAILED


class TestCompleted:
    """Messages to a submitted application go to a new draft."""

    @pytest.mark.asyncio
    async def test_submitted_does_not_block_new_draft(self, db, session, submitted_application):
        response = await process(db, session, "1")
        assert "Step 1/8" in response.response_text


# ─────────────────────────────────────────────────────────────────────────────
# Test: Resume & Agent State
# ─────────────────────────────────────────────────────────────────────────────

class TestResume:
    """Coming back to the wizard from the main menu."""

    @pytest.mark.asyncio
    async def test_repeats_pending_question(self, db, session, wa_id):
        await run(db, session, *QUICK_MATCH)

        response = await process(db, session, "1", {"resume": True})

        assert response.response_text == f"{application_agent.RESUMED}\n\n{application_agent.NAME_QUESTION}"
        assert response.keeps_lock is True
        application = latest(db, wa_id)
        assert application.full_name is None
        assert application.stage_progress == {"detail_step": 1}

    @pytest.mark.asyncio
    async def test_review_is_shown_again(self, db, session, review_application, mock_email):
        response = await process(db, session, "1", {"resume": True})

        assert "REVIEW YOUR APPLICATION" in response.response_text
        mock_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_draft_starts_normally(self, db, session):
        response = await process(db, session, "1", {"resume": True})
        assert "Step 1/8" in response.response_text

    @pytest.mark.parametrize("stage,progress,expected", [
        (ApplicationStage.QUICK_MATCH.value, {"match_step": 1}, None),
        (ApplicationStage.QUICK_MATCH.value, {"match_step": 3}, application_agent.FIELD_QUESTION),
        (ApplicationStage.BASIC_DETAILS.value, {"detail_step": 2}, application_agent.EMAIL_QUESTION),
        (ApplicationStage.BASIC_DETAILS.value, {"detail_step": 4}, application_agent.MOTIVATION_QUESTION),
        (ApplicationStage.COMPLETE.value, {}, None),
    ])
    def test_pending_question(self, submitted_application, stage, progress, expected):
        submitted_application.current_stage = stage
        submitted_application.stage_progress = progress
        assert pending_question(submitted_application) == expected


class TestAgentState:
    """The wizard's working state in the agent state manager."""

    @pytest.mark.asyncio
    async def test_open_step_is_recorded(self, db, session, wa_id):
        await run(db, session, "1", "1")

        state = agent_state_manager.get_agent_state("application", wa_id)

        assert state["state"] == ApplicationStage.QUICK_MATCH.value
        assert state["context"]["stage_progress"] == {"match_step": 3}
        assert state["context"]["application_id"] == str(latest(db, wa_id).id)

    @pytest.mark.asyncio
    async def test_cancel_clears_state(self, db, session, wa_id):
        await run(db, session, "1", "1", "cancel application")

        state = agent_state_manager.get_agent_state("application", wa_id)

        assert state["state"] == "initialized"
        assert state["context"] == {}
