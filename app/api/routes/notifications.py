"""
Scheduled job endpoints (cron targets).
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import DbSession, TwilioClient
from app.logging_config import get_logger
from app.services.progressive_notifications import run_progressive_notifications

logger = get_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/progressive")
async def progressive_notifications(db: DbSession, twilio: TwilioClient):
    """Send the next Christ Connect progressive template to eligible users."""
    try:
        result = await run_progressive_notifications(db, twilio)
    except SQLAlchemyError as e:
        logger.error("progressive_job_failed", error=str(e))
        return JSONResponse(status_code=500, content={"error": "DB error"})

    return result.to_dict()
