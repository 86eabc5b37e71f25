"""
FastAPI dependencies for dependency injection.

Provides database sessions and the Twilio client.
"""

from typing import Annotated, Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.integrations.whatsapp import TwilioWhatsAppClient, get_twilio_client


# ─────────────────────────────────────────────────────────────────────────────
# Database Session
# ─────────────────────────────────────────────────────────────────────────────

def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get a database session.

    Yields:
        SQLAlchemy Session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Type alias for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db)]


# ─────────────────────────────────────────────────────────────────────────────
# Twilio Client
# ─────────────────────────────────────────────────────────────────────────────

def get_twilio() -> TwilioWhatsAppClient:
    """
    Dependency to get Twilio client.

    Returns:
        TwilioWhatsAppClient instance
    """
    return get_twilio_client()


TwilioClient = Annotated[TwilioWhatsAppClient, Depends(get_twilio)]
