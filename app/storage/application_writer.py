"""
Bursary application storage operations.

The application wizard works on a single draft per user. Submitted,
ineligible and cancelled applications are left untouched.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from app.logging_config import get_logger, mask_id
from app.models import ApplicationStage, ApplicationStatus, BursaryApplication

logger = get_logger(__name__)


class ApplicationStorageError(Exception):
    """Raised when a draft can neither be loaded nor created."""


@dataclass
class ApplicationWriteResult:
    """Result of an application write operation."""
    success: bool
    application: BursaryApplication | None = None
    error: str | None = None


def get_draft_application(db: Session, wa_id: str) -> BursaryApplication | None:
    """Get the user's current draft, if any."""
    return db.query(BursaryApplication).filter(
        BursaryApplication.wa_id == wa_id,
        BursaryApplication.status == ApplicationStatus.DRAFT.value,
    ).order_by(BursaryApplication.created_at.desc()).first()


def get_latest_application(db: Session, wa_id: str) -> BursaryApplication | None:
    """Most recent application in any status."""
    return db.query(BursaryApplication).filter(
        BursaryApplication.wa_id == wa_id,
    ).order_by(BursaryApplication.created_at.desc()).first()


def create_application(db: Session, wa_id: str) -> ApplicationWriteResult:
    """
    Create a new draft at the start of the quick-match stage.

    Args:
        db: Database session
        wa_id: WhatsApp id

    Returns:
        ApplicationWriteResult with the new application
    """
    try:
        application = BursaryApplication(
            wa_id=wa_id,
            status=ApplicationStatus.DRAFT.value,
            current_stage=ApplicationStage.QUICK_MATCH.value,
            stage_progress={},
            matched_bursaries=[],
        )
        db.add(application)
        db.commit()
        db.refresh(application)

        logger.info(
            "application_created",
            application_id=str(application.id),
            wa_id=mask_id(wa_id),
        )
        return ApplicationWriteResult(success=True, application=application)

    except SQLAlchemyError as e:
        db.rollback()
        logger.error("create_application_failed", wa_id=mask_id(wa_id), error=str(e))
        return ApplicationWriteResult(success=False, error=str(e))


def get_or_create_draft(db: Session, wa_id: str) -> BursaryApplication:
    """
    Load the user's draft or start a new one.

    Raises:
        ApplicationStorageError: If the draft can't be loaded or created
    """
    try:
        draft = get_draft_application(db, wa_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("load_draft_failed", wa_id=mask_id(wa_id), error=str(e))
        raise ApplicationStorageError(f"Database error: {e}") from e

    if draft:
        logger.debug("draft_loaded", application_id=str(draft.id))
        return draft

    result = create_application(db, wa_id)
    if not result.success:
        raise ApplicationStorageError(f"Database insert failed: {result.error}")
    return result.application


def save_application(db: Session, application: BursaryApplication) -> bool:
    """
    Persist all changes to an application.

    JSON columns are flagged as modified because the wizard mutates
    them in place.

    Returns:
        True if saved
    """
    try:
        if application not in db:
            db.add(application)
        flag_modified(application, "stage_progress")
        flag_modified(application, "matched_bursaries")
        application.updated_at = datetime.utcnow()
        db.commit()

        logger.debug(
            "application_saved",
            application_id=str(application.id),
            stage=application.current_stage,
            status=application.status,
        )
        return True

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "save_application_failed",
            application_id=str(application.id) if application.id else None,
            error=str(e),
        )
        return False


def cancel_draft(db: Session, wa_id: str) -> bool:
    """
    Cancel the user's draft.

    Returns:
        True if a draft was cancelled
    """
    draft = get_draft_application(db, wa_id)
    if not draft:
        return False

    draft.status = ApplicationStatus.CANCELLED.value
    saved = save_application(db, draft)
    if saved:
        logger.info("application_cancelled", application_id=str(draft.id))
    return saved
