"""User profile model for the fellowship-matching bot."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class ProfileStatus(str, Enum):
    """Lifecycle of a profile. Drives brain routing."""

    ONBOARDING_STARTED = "onboarding_started"
    WAITLIST_COMPLETED = "waitlist_completed"
    DELETED = "deleted"


class UserProfile(Base):
    """
    Loosely-typed profile accumulated one question at a time.

    profile_data holds every answered field (age, city, denomination, ...)
    plus bookkeeping keys:
    - current_stage: onboarding stage the user is on
    - progressive_stage: stage of the post-onboarding notification drip
    """

    __tablename__ = "user_profiles"

    wa_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ProfileStatus.ONBOARDING_STARTED.value
    )
    profile_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    last_notified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<UserProfile(wa_id=...{self.wa_id[-4:]}, status={self.status})>"

    @property
    def current_stage(self) -> str | None:
        return (self.profile_data or {}).get("current_stage")

    @property
    def is_complete(self) -> bool:
        return self.status == ProfileStatus.WAITLIST_COMPLETED.value
