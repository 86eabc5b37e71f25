"""
SQLAlchemy ORM models for the application.
All models must be imported here so init_db() creates their tables.
"""

from app.models.application import (
    ApplicationStage,
    ApplicationStatus,
    BursaryApplication,
)
from app.models.chat_session import ChatSession
from app.models.profile import ProfileStatus, UserProfile

__all__ = [
    "ChatSession",
    "UserProfile",
    "ProfileStatus",
    "BursaryApplication",
    "ApplicationStage",
    "ApplicationStatus",
]
