"""
Application Agent - 8-step bursary application wizard.

Stages (BursaryApplication.current_stage) and their step counters
(stage_progress):

    quick_match    match_step 1-4   citizenship, field, income → early matches
    basic_details  detail_step 1-4  name, email, average, motivation
    review         review_step 1    submit or edit
    complete

The draft is saved after every message. On submit the application is
emailed to the funders' inbox with the applicant in CC.
"""

import re
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.agents.application.matching import (
    DEFAULT_ACADEMIC_AVERAGE,
    FIELD_OF_STUDY_CHOICES,
    INCOME_CHOICES,
    calculate_score,
    format_matches,
    format_matches_early,
    generate_reference,
    match_bursaries,
)
from app.agents.common.handoff import HandoffReason
from app.agents.common.intents import AgentType, is_cancel_application
from app.agents.common.response import (
    AgentResponse,
    awaiting_input_response,
    error_response,
    handoff_response,
    success_response,
)
from app.agents.common.state_manager import agent_state_manager
from app.integrations.email import send_application_email
from app.logging_config import get_logger, mask_id
from app.models import ApplicationStage, ApplicationStatus, BursaryApplication
from app.storage.application_writer import (
    ApplicationStorageError,
    cancel_draft,
    get_or_create_draft,
    save_application,
)
from app.storage.session_cache import SessionData

logger = get_logger(__name__)

AGENT_NAME = AgentType.APPLICATION.value

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
YES_PATTERN = re.compile(r"^(1|yes|y)$", re.IGNORECASE)
LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")

MOTIVATION_PREVIEW_LENGTH = 120
DIVIDER = "━━━━━━━━━━━━━━━━━━━━━"


# ─────────────────────────────────────────────────────────────────────────────
# Replies
# ─────────────────────────────────────────────────────────────────────────────

LOAD_FAILED = "Sorry, I'm having trouble loading your application. Please try again in a moment."

CITIZENSHIP_QUESTION = (
    "Let's find your bursaries! 🎯\n\n📍 Step 1/8\n\n"
    "🇿🇦 Are you a SA citizen or permanent resident?\n\n1️⃣ Yes\n2️⃣ No"
)

NOT_ELIGIBLE = (
    "😔 Most SA bursaries require citizenship.\n\n"
    "Try:\n• International scholarships\n• Study loans\n• Part-time work\n\n"
    "Need career guidance instead?"
)

FIELD_QUESTION = (
    "✅ Great!\n\n📍 Step 2/8\n\n📚 Field of study?\n\n"
    "1️⃣ STEM\n2️⃣ Commerce/Business\n3️⃣ Health Sciences\n4️⃣ Humanities\n5️⃣ Other"
)

INCOME_QUESTION = (
    "📍 Step 3/8\n\n💰 Household annual income?\n\n"
    "1️⃣ R0-R350k\n2️⃣ R350k-R600k\n3️⃣ Above R600k"
)

NAME_QUESTION = "📍 Step 4/8\n\n👤 What's your full name?"
EMAIL_QUESTION = "📍 Step 5/8\n\n📧 Email address?"
INVALID_EMAIL = "That doesn't look valid. Try again (e.g., student@gmail.com)"

AVERAGE_QUESTION = "📍 Step 6/8\n\n📊 Academic average?\n(Percentage, e.g., 75)"
INVALID_AVERAGE = "Please enter a valid percentage (0-100)"

MOTIVATION_QUESTION = (
    "Great! ✅\n\n📍 Step 7/8\n\n✍️ Why do you need this bursary?\n(1-2 sentences is fine!)"
)

REVIEW_CHOICES = "Please choose:\n\n1️⃣ Submit ✅\n2️⃣ Edit ✏️"
EDIT_NOT_AVAILABLE = "Editing coming soon! For now, restart with 'cancel application'."
SUBMIT_SAVE_FAILED = (
    "Sorry, there was a problem saving your application. Please try submitting again."
)

ALREADY_COMPLETE = "✅ Your application is complete! Check your email for confirmation."
UNKNOWN_STEP = "Please choose a number from the options."
DETAILS_FALLBACK = "Please provide your answer."

CANCELLED = "No problem, your application has been cancelled. 👍"
RESUMED = "Welcome back! Let's pick up where you left off. 📋"


def _early_matches_message(matches: list[dict[str, Any]]) -> str:
    return (
        f"🎉 Great news! You match these bursaries:\n\n{format_matches_early(matches)}"
        "\n\n━━━━━━━━━━━━━━━\n\n"
        f"Ready to apply? Let's get your details! 📋\n\n{NAME_QUESTION}"
    )


def build_review_summary(application: BursaryApplication) -> str:
    """Step 8 summary shown before submitting."""
    motivation = application.motivation_text or ""
    preview = motivation[:MOTIVATION_PREVIEW_LENGTH]
    if len(motivation) > MOTIVATION_PREVIEW_LENGTH:
        preview += "..."

    return (
        f"{DIVIDER}\n📋 REVIEW YOUR APPLICATION\n{DIVIDER}\n\n"
        "📍 Step 8/8\n\n"
        f"👤 {application.full_name}\n"
        f"📧 {application.email}\n"
        f"🎓 {application.field_of_study} student\n"
        f"📊 {_format_average(application.academic_average)}% average\n\n"
        f"✍️ Motivation:\n\"{preview}\"\n\n"
        f"🎯 Match Score: {application.eligibility_score}/100\n\n"
        f"🎁 Matched Bursaries:\n{format_matches(application.matched_bursaries)}\n\n"
        f"{DIVIDER}\n\n"
        "Ready to submit?\n\n1️⃣ Submit Application ✅\n2️⃣ Edit Details ✏️"
    )


def _submitted_message(application: BursaryApplication) -> str:
    return (
        f"🎉 Application submitted successfully!\n\n{DIVIDER}\n✅ YOUR APPLICATION\n{DIVIDER}\n\n"
        f"Reference: {application.application_ref}\n"
        "📧 Email sent to funders\n"
        f"📬 Copy sent to: {application.email}\n\n"
        f"Matched Bursaries:\n{format_matches(application.matched_bursaries)}\n\n"
        f"{DIVIDER}\n\n"
        "📧 Check your email for confirmation!\n"
        "⏰ You'll hear back in 2-3 weeks.\n\n"
        "Need anything else? 💙"
    )


def _email_pending_message(application: BursaryApplication) -> str:
    return (
        "🎉 Application submitted!\n\n"
        f"Reference: {application.application_ref}\n\n"
        "⚠️ Email delivery pending - we'll send it shortly.\n\n"
        f"Matched bursaries:\n{format_matches(application.matched_bursaries)}"
    )


def _format_average(average: float | None) -> str:
    if average is None:
        return ""
    return f"{average:g}"


def parse_average(text: str) -> float | None:
    """
    Parse an academic average, accepting a decimal comma.

    Returns:
        The percentage, or None if it isn't a number between 0 and 100
    """
    match = LEADING_NUMBER.match(text.strip().replace(",", ".", 1))
    if not match:
        return None
    average = float(match.group(0))
    if average < 0 or average > 100:
        return None
    return average


# ─────────────────────────────────────────────────────────────────────────────
# Stage handlers
# ─────────────────────────────────────────────────────────────────────────────

def pending_question(application: BursaryApplication) -> str | None:
    """The question the wizard is waiting on, or None when nothing is open."""
    progress = application.stage_progress or {}
    stage = application.current_stage

    if stage == ApplicationStage.QUICK_MATCH.value:
        return {
            2: CITIZENSHIP_QUESTION,
            3: FIELD_QUESTION,
            4: INCOME_QUESTION,
        }.get(progress.get("match_step") or 1)

    if stage == ApplicationStage.BASIC_DETAILS.value:
        return {
            1: NAME_QUESTION,
            2: EMAIL_QUESTION,
            3: AVERAGE_QUESTION,
            4: MOTIVATION_QUESTION,
        }.get(progress.get("detail_step") or 1)

    if stage == ApplicationStage.REVIEW.value:
        return build_review_summary(application)

    return None


# Each handler returns (reply, keep_lock).

def _handle_quick_match(message: str, application: BursaryApplication) -> tuple[str, bool]:
    progress = application.stage_progress or {}
    step = progress.get("match_step") or 1
    answer = message.strip()

    if step == 1:
        application.stage_progress = {"match_step": 2}
        return CITIZENSHIP_QUESTION, True

    if step == 2:
        application.is_sa_citizen = bool(YES_PATTERN.match(answer))
        if not application.is_sa_citizen:
            application.status = ApplicationStatus.INELIGIBLE.value
            return NOT_ELIGIBLE, False
        application.stage_progress = {**progress, "match_step": 3}
        return FIELD_QUESTION, True

    if step == 3:
        application.field_of_study = FIELD_OF_STUDY_CHOICES.get(answer, "Other")
        application.stage_progress = {**progress, "match_step": 4}
        return INCOME_QUESTION, True

    if step == 4:
        application.household_income = INCOME_CHOICES.get(answer, INCOME_CHOICES["1"])
        if application.academic_average is None:
            application.academic_average = DEFAULT_ACADEMIC_AVERAGE

        application.matched_bursaries = match_bursaries(application)
        application.current_stage = ApplicationStage.BASIC_DETAILS.value
        application.stage_progress = {"detail_step": 1}
        return _early_matches_message(application.matched_bursaries), True

    return UNKNOWN_STEP, True


def _handle_basic_details(message: str, application: BursaryApplication) -> tuple[str, bool]:
    progress = application.stage_progress or {}
    step = progress.get("detail_step") or 1
    answer = message.strip()

    if step == 1:
        application.full_name = answer
        application.stage_progress = {**progress, "detail_step": 2}
        return f"Thanks {application.first_name}! ✅\n\n{EMAIL_QUESTION}", True

    if step == 2:
        email = answer.lower()
        if not EMAIL_PATTERN.match(email):
            return INVALID_EMAIL, True
        application.email = email
        application.phone_number = application.wa_id
        application.stage_progress = {**progress, "detail_step": 3}
        return AVERAGE_QUESTION, True

    if step == 3:
        average = parse_average(answer)
        if average is None:
            return INVALID_AVERAGE, True
        application.academic_average = average
        application.matched_bursaries = match_bursaries(application)
        application.stage_progress = {**progress, "detail_step": 4}
        return MOTIVATION_QUESTION, True

    if step == 4:
        application.motivation_text = answer
        application.eligibility_score = calculate_score(application)
        application.application_ref = generate_reference(application.full_name)
        application.current_stage = ApplicationStage.REVIEW.value
        application.stage_progress = {"review_step": 1}
        return build_review_summary(application), True

    return DETAILS_FALLBACK, True


async def _handle_review(
    db: Session, message: str, application: BursaryApplication
) -> tuple[str, bool]:
    answer = message.strip().lower()

    if "submit" in answer or answer == "1":
        application.status = ApplicationStatus.SUBMITTED.value
        application.submitted_at = datetime.utcnow()
        application.current_stage = ApplicationStage.COMPLETE.value

        if not save_application(db, application):
            return SUBMIT_SAVE_FAILED, True

        logger.info(
            "application_submitted",
            application_id=str(application.id),
            ref=application.application_ref,
            matches=len(application.matched_bursaries or []),
        )

        result = await send_application_email(application)
        if result.success:
            return _submitted_message(application), False
        return _email_pending_message(application), False

    if "edit" in answer or answer == "2":
        return EDIT_NOT_AVAILABLE, True

    return REVIEW_CHOICES, True


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
    Advance the application wizard by one step.

    "cancel application" abandons the draft and hands the user back to
    the conversation agent's main menu. With context["resume"] (the user
    picked the wizard from the main menu) an open draft repeats its
    pending question instead of taking the message as the answer.
    """
    wa_id = session.wa_id
    message = message or ""

    if is_cancel_application(message):
        cancelled = cancel_draft(db, wa_id)
        agent_state_manager.clear_agent_state(AGENT_NAME, wa_id)
        logger.info("application_cancel_requested", wa_id=mask_id(wa_id), had_draft=cancelled)
        return handoff_response(
            CANCELLED,
            AGENT_NAME,
            target=AgentType.CONVERSATION.value,
            reason=HandoffReason.USER_CANCELLED.value,
            context={"show_menu": True},
        )

    try:
        application = get_or_create_draft(db, wa_id)
    except ApplicationStorageError as e:
        logger.error("application_load_failed", wa_id=mask_id(wa_id), error=str(e))
        return error_response(LOAD_FAILED, AGENT_NAME, errors=[str(e)])

    if context and context.get("resume"):
        question = pending_question(application)
        if question:
            logger.info(
                "application_resumed",
                wa_id=mask_id(wa_id),
                stage=application.current_stage,
                progress=application.stage_progress,
            )
            return awaiting_input_response(f"{RESUMED}\n\n{question}", AGENT_NAME)

    stage = application.current_stage or ApplicationStage.QUICK_MATCH.value
    logger.info(
        "application_step",
        wa_id=mask_id(wa_id),
        stage=stage,
        progress=application.stage_progress,
    )

    if stage == ApplicationStage.QUICK_MATCH.value:
        reply, keep_lock = _handle_quick_match(message, application)
    elif stage == ApplicationStage.BASIC_DETAILS.value:
        reply, keep_lock = _handle_basic_details(message, application)
    elif stage == ApplicationStage.REVIEW.value:
        reply, keep_lock = await _handle_review(db, message, application)
    elif stage == ApplicationStage.COMPLETE.value:
        reply, keep_lock = ALREADY_COMPLETE, False
    else:
        application.current_stage = ApplicationStage.QUICK_MATCH.value
        application.stage_progress = {}
        reply, keep_lock = "Let's start your bursary application!", True

    if not save_application(db, application):
        logger.warning("application_save_failed", wa_id=mask_id(wa_id), stage=application.current_stage)

    if keep_lock:
        agent_state_manager.update_agent_state(AGENT_NAME, wa_id, {
            "state": application.current_stage,
            "context": {
                "application_id": str(application.id),
                "stage_progress": application.stage_progress,
            },
        })
        return awaiting_input_response(reply, AGENT_NAME)

    agent_state_manager.clear_agent_state(AGENT_NAME, wa_id)
    return success_response(reply, AGENT_NAME)
