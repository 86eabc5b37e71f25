"""
FastAPI application entry point.

This is the main FastAPI application that handles:
- ManyChat / WhatsApp Cloud API webhooks
- Health checks and system diagnostics
- Scheduled notification jobs
"""

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.agents.common.state_manager import agent_state_manager
from app.api.routes import (
    health_router,
    notifications_router,
    system_router,
    webhook_router,
)
from app.config import settings
from app.database import init_db
from app.logging_config import configure_logging, get_logger
from app.storage.session_cache import session_cache

logger = get_logger(__name__)


async def cleanup_loop() -> None:
    """
    Periodically sweep expired sessions and agent states.

    Sessions are swept every session_cleanup_interval_minutes; agent
    states on their own (longer) interval.
    """
    session_interval = settings.session_cleanup_interval_minutes * 60
    agent_interval = settings.agent_state_cleanup_interval_minutes * 60
    since_agent_cleanup = 0

    while True:
        await asyncio.sleep(session_interval)
        session_cache.cleanup_expired()

        since_agent_cleanup += session_interval
        if since_agent_cleanup >= agent_interval:
            agent_state_manager.cleanup()
            since_agent_cleanup = 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    configure_logging()
    init_db()
    cleanup_task = asyncio.create_task(cleanup_loop())

    logger.info(
        "application_starting",
        environment=settings.environment,
        bot_variant=settings.bot_variant,
        openai_configured=bool(settings.openai_api_key),
        twilio_configured=bool(settings.twilio_account_sid),
    )

    yield

    # Shutdown
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    logger.info("application_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="WhatsApp Chatbots",
    description="ManyChat / WhatsApp webhook bots: Christ Connect, TTI Bursaries, comedy tickets",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# ─────────────────────────────────────────────────────────────────────────────
# Include Routers
# ─────────────────────────────────────────────────────────────────────────────

# API routes, mounted at /api and versioned at /api/v1
for prefix in ("/api", "/api/v1"):
    app.include_router(webhook_router, prefix=prefix)
    app.include_router(system_router, prefix=prefix)
    app.include_router(notifications_router, prefix=prefix)

app.include_router(health_router, prefix="/api/v1")

# Also mount health at root for simpler health checks
app.include_router(health_router)


# ─────────────────────────────────────────────────────────────────────────────
# Root Endpoint
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Root endpoint with a short banner."""
    return f"WhatsApp chatbot webhook is running ({settings.bot_variant}). POST messages to /api/webhook."


# ─────────────────────────────────────────────────────────────────────────────
# Run with Uvicorn (for development)
# ─────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level="debug" if settings.environment == "development" else "info",
    )
