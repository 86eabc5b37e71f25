"""
System diagnostics endpoint.

GET/POST /api/system?action=health|env-check|test-connections
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import DbSession
from app.config import settings
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/system", tags=["system"])

AVAILABLE_ACTIONS = ["health", "env-check", "test-connections"]
OK_STATUSES = {"CONNECTED", "ACTIVE", "RESPONSIVE", "READY"}


def handle_health_check() -> dict[str, Any]:
    return {
        "health_status": "EXCELLENT",
        "server_status": "Running",
        "bot_variant": settings.bot_variant,
        "environment": settings.environment,
        "system_components": {
            "brain": "Active - LangGraph router dispatching to agents",
            "sessions": "Active - cached sessions with database persistence",
            "database_ready": "Configured" if settings.database_url else "Missing",
            "ai_integration": f"OpenAI {settings.openai_model}",
        },
        "ready_for_production": settings.environment == "production",
    }


def _variable_status(configured: bool, required_for: str) -> dict[str, Any]:
    return {
        "exists": configured,
        "status": "configured" if configured else "missing",
        "required_for": required_for,
    }


def handle_environment_check() -> dict[str, Any]:
    """Report which integrations are configured."""
    variables = {
        "OPENAI_API_KEY": _variable_status(
            bool(settings.openai_api_key), "AI small talk and profile extraction"
        ),
        "DATABASE_URL": _variable_status(
            bool(settings.database_url), "Sessions, profiles and applications"
        ),
        "TWILIO_CREDENTIALS": _variable_status(
            bool(settings.twilio_account_sid and settings.twilio_auth_token),
            "Progressive WhatsApp notifications",
        ),
        "RESEND_API_KEY": _variable_status(
            bool(settings.resend_api_key), "Bursary application emails"
        ),
        "WHATSAPP_WEBHOOK_VERIFY_TOKEN": _variable_status(
            bool(settings.whatsapp_webhook_verify_token), "WhatsApp Cloud API webhook verification"
        ),
    }

    configured = sum(1 for variable in variables.values() if variable["exists"])
    total = len(variables)
    complete = configured == total

    return {
        "environment_check": "completed",
        "configuration_status": {
            "configured_variables": configured,
            "total_required": total,
            "percentage_complete": round(configured / total * 100),
        },
        "variables_status": variables,
        "overall_status": "FULLY_CONFIGURED" if complete else "PARTIAL_CONFIGURATION",
        "functionality_level": "FULL_AI_FUNCTIONALITY" if complete else "LIMITED_MODE",
    }


def handle_connection_test(db: Session) -> dict[str, Any]:
    """Check the database for real; report the rest by configuration."""
    connections = {
        "api_endpoints": "RESPONSIVE",
        "openai_api": "READY" if settings.openai_api_key else "NOT_CONFIGURED",
        "twilio": "READY" if settings.twilio_account_sid and settings.twilio_auth_token else "NOT_CONFIGURED",
        "resend": "READY" if settings.resend_api_key else "NOT_CONFIGURED",
    }

    try:
        db.execute(text("SELECT 1"))
        connections["database"] = "CONNECTED"
    except SQLAlchemyError as e:
        logger.error("system_db_check_failed", error=str(e))
        connections["database"] = "ERROR"

    all_ok = all(status in OK_STATUSES for status in connections.values())
    return {
        "connection_test": "completed",
        "test_results": connections,
        "all_systems": "OPERATIONAL" if all_ok else "PARTIAL_FUNCTIONALITY",
    }


async def _requested_action(request: Request) -> str:
    action = request.query_params.get("action")
    if action:
        return action
    if request.method == "POST":
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("action"):
            return str(body["action"])
    return "health"


@router.api_route("", methods=["GET", "POST"])
async def system(request: Request, db: DbSession) -> dict[str, Any]:
    """
    Run a system diagnostic.

    Unknown actions list the available ones.
    """
    action = await _requested_action(request)
    logger.info("system_action", action=action)

    if action == "health":
        response = handle_health_check()
    elif action == "env-check":
        response = handle_environment_check()
    elif action == "test-connections":
        response = handle_connection_test(db)
    else:
        response = {
            "unknown_action": action,
            "available_actions": AVAILABLE_ACTIONS,
            "default_response": "System is operational",
        }

    return {
        "timestamp": datetime.utcnow().isoformat(),
        "system_action": action,
        "system_status": "operational",
        **response,
    }
