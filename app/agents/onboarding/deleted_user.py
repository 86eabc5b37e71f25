"""Fixed reply for Christ Connect users who deleted their profile."""

from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType
from app.agents.common.response import AgentResponse, success_response
from app.storage.session_cache import SessionData

AGENT_NAME = AgentType.DELETED_USER.value

DELETED_PROFILE_MESSAGE = (
    "You have previously deleted your profile. To re-join, please contact support."
)


async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    return success_response(DELETED_PROFILE_MESSAGE, AGENT_NAME)
