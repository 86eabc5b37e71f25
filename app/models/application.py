"""Bursary application model for the bursary-application bot."""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    INELIGIBLE = "ineligible"
    CANCELLED = "cancelled"


class ApplicationStage(str, Enum):
    """Wizard stage. Progress within a stage is kept in stage_progress."""

    QUICK_MATCH = "quick_match"
    BASIC_DETAILS = "basic_details"
    REVIEW = "review"
    COMPLETE = "complete"


class BursaryApplication(Base):
    """
    A bursary application built through the WhatsApp wizard.

    Only one draft per wa_id is worked on at a time; submitted, ineligible
    and cancelled applications are kept for reference.

    stage_progress examples:
        {"match_step": 3}
        {"detail_step": 2}
        {"review_step": 1}
    """

    __tablename__ = "bursary_applications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    wa_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # ─────────────────────────────────────────────────────────────────────────
    # Wizard State
    # ─────────────────────────────────────────────────────────────────────────
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ApplicationStatus.DRAFT.value
    )
    current_stage: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ApplicationStage.QUICK_MATCH.value
    )
    stage_progress: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # ─────────────────────────────────────────────────────────────────────────
    # Applicant
    # ─────────────────────────────────────────────────────────────────────────
    is_sa_citizen: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    field_of_study: Mapped[str | None] = mapped_column(String(64), nullable=True)
    household_income: Mapped[int | None] = mapped_column(Integer, nullable=True)
    academic_average: Mapped[float | None] = mapped_column(Float, nullable=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    province: Mapped[str | None] = mapped_column(String(64), nullable=True)
    academic_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    motivation_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ─────────────────────────────────────────────────────────────────────────
    # Results
    # ─────────────────────────────────────────────────────────────────────────
    matched_bursaries: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    eligibility_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    application_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<BursaryApplication(id={self.id}, stage={self.current_stage}, "
            f"status={self.status})>"
        )

    @property
    def first_name(self) -> str:
        parts = (self.full_name or "").split()
        return parts[0] if parts else ""
