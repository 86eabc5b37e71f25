"""
Pytest configuration and fixtures for the chatbot test suite.

Provides:
- Database fixtures (fresh in-memory SQLite per test)
- Session, profile and application fixtures
- Global cache resets between tests
"""

import os
from datetime import datetime
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "test-sid")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-token")
os.environ.setdefault("TWILIO_WHATSAPP_FROM", "whatsapp:+14155238886")

from app.agents.brain.graph import reset_graph
from app.agents.common.state_manager import agent_state_manager
from app.database import Base
from app.models import (
    ApplicationStage,
    ApplicationStatus,
    BursaryApplication,
    ProfileStatus,
    UserProfile,
)
from app.storage.session_cache import session_cache


TEST_WA_ID = "27721234567"


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="function")
def engine():
    """
    In-memory SQLite engine shared across threads.

    The code under test commits, so each test gets its own database
    instead of a rolled-back transaction.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()


# ─────────────────────────────────────────────────────────────────────────────
# Global State
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_globals():
    """Clear process-local caches so tests don't leak into each other."""
    session_cache.clear()
    agent_state_manager._states.clear()
    agent_state_manager._handoffs.clear()
    reset_graph()
    yield
    session_cache.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def wa_id() -> str:
    return TEST_WA_ID


@pytest.fixture
def waitlisted_profile(db: Session) -> UserProfile:
    """Profile that finished onboarding and was never notified."""
    profile = UserProfile(
        wa_id="27820000001",
        status=ProfileStatus.WAITLIST_COMPLETED.value,
        profile_data={"current_stage": "COMPLETE", "name": "Tasi"},
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def deleted_profile(db: Session) -> UserProfile:
    profile = UserProfile(
        wa_id="27820000002",
        status=ProfileStatus.DELETED.value,
        profile_data={},
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def review_application(db: Session, wa_id: str) -> BursaryApplication:
    """Draft that reached the review step."""
    application = BursaryApplication(
        wa_id=wa_id,
        status=ApplicationStatus.DRAFT.value,
        current_stage=ApplicationStage.REVIEW.value,
        stage_progress={"review_step": 1},
        is_sa_citizen=True,
        field_of_study="STEM",
        household_income=200_000,
        academic_average=78.0,
        full_name="Thabo Nkosi",
        email="thabo@example.com",
        phone_number=wa_id,
        motivation_text="I want to study engineering.",
        matched_bursaries=[
            {"name": "Siemens Bursary", "match_score": 0.92, "amount": "R80,000/year + internship"},
        ],
        eligibility_score=100,
        application_ref="FME-TN-ABC123",
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


@pytest.fixture
def submitted_application(db: Session, wa_id: str) -> BursaryApplication:
    application = BursaryApplication(
        wa_id=wa_id,
        status=ApplicationStatus.SUBMITTED.value,
        current_stage=ApplicationStage.COMPLETE.value,
        field_of_study="Commerce",
        academic_average=72.5,
        full_name="Lerato Dlamini",
        email="lerato@example.com",
        matched_bursaries=[{"name": "Momentum Bursary", "match_score": 0.85}],
        application_ref="FME-LD-XYZ",
        submitted_at=datetime(2025, 11, 3, 10, 30),
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    return application
