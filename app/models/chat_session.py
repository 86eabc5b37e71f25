"""Chat session model: the persisted copy of a user's conversation session."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class ChatSession(Base):
    """
    Persisted conversation session, one row per WhatsApp/ManyChat user.

    The whole session (history, free-form agent state, counters) lives in
    the session_data JSON blob. The in-memory session cache sits in front
    of this table; writes here are best effort.
    """

    __tablename__ = "chat_sessions"

    wa_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    session_data: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ChatSession(wa_id=...{self.wa_id[-4:]}, last_updated={self.last_updated})>"
