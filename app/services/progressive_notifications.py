"""
Progressive notification job for Christ Connect.

Waitlisted users are asked one follow-up question at a time through
pre-approved WhatsApp templates, at most once every notification window.
The job only stamps last_notified_at; progressive_stage advances when
the user replies.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import settings
from app.integrations.whatsapp.twilio_client import TwilioWhatsAppClient
from app.logging_config import get_logger, mask_id
from app.storage.profile_writer import (
    PROGRESSIVE_COMPLETE,
    get_profiles_due_for_notification,
    mark_notified,
)

logger = get_logger(__name__)

AWAIT_VISION = "awaiting_vision"
DEFAULT_RECIPIENT_NAME = "Friend"

PROGRESSIVE_STAGES = [
    AWAIT_VISION,
    "awaiting_denomination",
    "awaiting_rhythm",
    "awaiting_prayer_style",
    "awaiting_fellowship_interest",
    "awaiting_match_gender_pref",
    "awaiting_match_age_pref",
    PROGRESSIVE_COMPLETE,
]

# Stage → approved template name
TEMPLATE_MAP = {
    AWAIT_VISION: "vision_message",
    "awaiting_denomination": "ask_denomination",
    "awaiting_rhythm": "ask_rhythm",
    "awaiting_prayer_style": "ask_prayer_style",
    "awaiting_fellowship_interest": "ask_fellowship_interest",
    "awaiting_match_gender_pref": "ask_match_gender",
    "awaiting_match_age_pref": "ask_match_age",
}


@dataclass
class NotificationJobResult:
    """Counts from one job run."""
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def message(self) -> str:
        return f"Progressive job complete. Sent: {self.sent}, Failed: {self.failed}."

    def to_dict(self) -> dict:
        return {
            "success": True,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "message": self.message,
        }


def resolve_template_sid(template_name: str) -> str:
    """Content SID configured for a template name, or the name itself."""
    return settings.twilio_content_sids.get(template_name, template_name)


async def run_progressive_notifications(
    db: Session,
    client: TwilioWhatsAppClient,
    now: datetime | None = None,
) -> NotificationJobResult:
    """
    Send the next progressive template to every eligible user.

    Args:
        db: Database session
        client: Twilio client used to send templates
        now: Current time (for tests)

    Returns:
        NotificationJobResult with sent, failed and skipped counts
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=settings.notification_interval_days)
    result = NotificationJobResult()

    profiles = get_profiles_due_for_notification(db, cutoff)
    logger.info("progressive_job_started", eligible=len(profiles), cutoff=cutoff.isoformat())

    for profile in profiles:
        data = profile.profile_data or {}
        stage = data.get("progressive_stage") or AWAIT_VISION
        template_name = TEMPLATE_MAP.get(stage)

        if not template_name:
            logger.warning("progressive_template_missing", wa_id=mask_id(profile.wa_id), stage=stage)
            result.skipped += 1
            continue

        sent = await client.send_template_message(
            profile.wa_id,
            resolve_template_sid(template_name),
            {"1": data.get("name") or DEFAULT_RECIPIENT_NAME},
        )

        if sent.get("success"):
            result.sent += 1
            mark_notified(db, profile.wa_id, now)
        else:
            result.failed += 1
            logger.warning(
                "progressive_send_failed",
                wa_id=mask_id(profile.wa_id),
                template=template_name,
                error=sent.get("error"),
            )

    logger.info(
        "progressive_job_complete",
        sent=result.sent,
        failed=result.failed,
        skipped=result.skipped,
    )
    return result
