"""
Profile storage operations for the onboarding flow.

Handles profile creation, stage/status updates and the queries used by
the brain router and the progressive notification job.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.logging_config import get_logger, mask_id
from app.models import ProfileStatus, UserProfile

logger = get_logger(__name__)

INITIAL_STAGE = "START"
PROGRESSIVE_COMPLETE = "progressive_complete"


@dataclass
class ProfileWriteResult:
    """Result of a profile write operation."""
    success: bool
    profile: UserProfile | None = None
    is_new: bool = False
    error: str | None = None


def get_profile(db: Session, wa_id: str) -> UserProfile | None:
    """Get profile by wa_id."""
    return db.get(UserProfile, wa_id)


def get_profile_status(db: Session, wa_id: str) -> str | None:
    """
    Get the user's profile status.

    Returns:
        Status string, or None if the user has no profile yet

    Raises:
        SQLAlchemyError: On database failure (the brain treats it as None)
    """
    profile = get_profile(db, wa_id)
    return profile.status if profile else None


def get_or_create_profile(db: Session, wa_id: str) -> ProfileWriteResult:
    """
    Get the profile for wa_id, creating it at the START stage if missing.

    Args:
        db: Database session
        wa_id: WhatsApp id

    Returns:
        ProfileWriteResult with the profile
    """
    try:
        profile = get_profile(db, wa_id)
        if profile:
            return ProfileWriteResult(success=True, profile=profile)

        profile = UserProfile(
            wa_id=wa_id,
            status=ProfileStatus.ONBOARDING_STARTED.value,
            profile_data={"current_stage": INITIAL_STAGE},
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)

        logger.info("profile_created", wa_id=mask_id(wa_id))
        return ProfileWriteResult(success=True, profile=profile, is_new=True)

    except SQLAlchemyError as e:
        db.rollback()
        logger.error("create_profile_failed", wa_id=mask_id(wa_id), error=str(e))
        return ProfileWriteResult(success=False, error=str(e))


def update_profile(
    db: Session,
    wa_id: str,
    profile_data: dict[str, Any] | None = None,
    status: str | None = None,
) -> ProfileWriteResult:
    """
    Replace profile_data and/or status.

    Args:
        db: Database session
        wa_id: WhatsApp id
        profile_data: Full profile data to store (replaces existing)
        status: New status value

    Returns:
        ProfileWriteResult
    """
    try:
        profile = get_profile(db, wa_id)
        if not profile:
            return ProfileWriteResult(success=False, error="Profile not found")

        if profile_data is not None:
            # New dict so the JSON column change is detected
            profile.profile_data = dict(profile_data)
        if status is not None:
            profile.status = status
        profile.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(profile)

        logger.info(
            "profile_updated",
            wa_id=mask_id(wa_id),
            status=profile.status,
            stage=profile.current_stage,
        )
        return ProfileWriteResult(success=True, profile=profile)

    except SQLAlchemyError as e:
        db.rollback()
        logger.error("update_profile_failed", wa_id=mask_id(wa_id), error=str(e))
        return ProfileWriteResult(success=False, error=str(e))


def mark_notified(db: Session, wa_id: str, when: datetime | None = None) -> bool:
    """Stamp last_notified_at. Returns False on failure."""
    try:
        profile = get_profile(db, wa_id)
        if not profile:
            return False
        profile.last_notified_at = when or datetime.utcnow()
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("mark_notified_failed", wa_id=mask_id(wa_id), error=str(e))
        return False


def get_profiles_due_for_notification(db: Session, cutoff: datetime) -> list[UserProfile]:
    """
    Waitlisted profiles whose progressive drip is unfinished and that
    were never notified or last notified at or before cutoff.

    progressive_stage lives inside the JSON blob, so it is filtered in
    Python to stay portable across SQLite and PostgreSQL.
    """
    candidates = db.query(UserProfile).filter(
        UserProfile.status == ProfileStatus.WAITLIST_COMPLETED.value,
        or_(
            UserProfile.last_notified_at.is_(None),
            UserProfile.last_notified_at <= cutoff,
        ),
    ).all()

    return [
        profile for profile in candidates
        if (profile.profile_data or {}).get("progressive_stage") != PROGRESSIVE_COMPLETE
    ]
