"""
Health checks for load balancers and container orchestrators.

/health        process is up, which bot is running
/health/ready  database reachable, integrations configured
/health/live   in-memory caches of this worker
"""

import time
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.agents.common.state_manager import agent_state_manager
from app.api.deps import get_db
from app.config import settings
from app.logging_config import get_logger
from app.storage.session_cache import session_cache

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

APP_VERSION = "0.1.0"


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str
    bot_variant: str


class ComponentCheck(BaseModel):
    """One dependency in the readiness report."""
    status: str  # ok, error, not_configured
    detail: str | None = None
    latency_ms: float | None = None


class ReadinessStatus(BaseModel):
    ready: bool
    checks: dict[str, ComponentCheck]


def _configured(flag: bool, detail: str) -> ComponentCheck:
    return ComponentCheck(status="ok" if flag else "not_configured", detail=detail)


def check_database(db: Session) -> ComponentCheck:
    """Round-trip a SELECT 1 and time it."""
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("health_check_db_failed", error=str(e))
        return ComponentCheck(status="error", detail=str(e))
    return ComponentCheck(status="ok", latency_ms=round((time.perf_counter() - started) * 1000, 2))


@router.get("", response_model=HealthStatus)
@router.get("/", response_model=HealthStatus, include_in_schema=False)
async def health_check() -> HealthStatus:
    """Alive check without touching dependencies."""
    return HealthStatus(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=APP_VERSION,
        environment=settings.environment,
        bot_variant=settings.bot_variant,
    )


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_check(db: Session = Depends(get_db)) -> ReadinessStatus:
    """
    Readiness for traffic.

    Only the database gates readiness; a missing integration key degrades
    a feature (small talk, emails, notifications) but replies still go out.
    """
    checks = {
        "database": check_database(db),
        "llm": _configured(bool(settings.openai_api_key), settings.openai_model),
        "twilio": _configured(
            bool(settings.twilio_account_sid and settings.twilio_auth_token),
            "progressive notifications",
        ),
        "email": _configured(bool(settings.resend_api_key), "application emails"),
    }
    return ReadinessStatus(ready=checks["database"].status == "ok", checks=checks)


@router.get("/live")
async def liveness_check() -> dict:
    """Process is running; reports this worker's cache sizes."""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "cached_sessions": session_cache.size,
        "recorded_handoffs": agent_state_manager.handoff_count,
    }
