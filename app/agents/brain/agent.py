"""
Brain - Main Entry Point.

The brain is the central router for every inbound message. It picks one
agent per message based on the configured bot variant:
- christ_connect: onboarding questionnaire / returning-user menu by profile status
- tti_bursaries: numbered main menu with a sticky application wizard
- comedy_tickets: ticketing menu

Usage:
    from app.agents.brain import process_message

    result = await process_message(db, session, "Hi")
    print(result.response_text)
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from app.agents.brain.graph import get_brain_graph
from app.agents.brain.state import BrainState, create_initial_state
from app.config import settings
from app.integrations.whatsapp.response_formatter import GENERIC_ERROR_MESSAGE
from app.logging_config import get_logger, mask_id
from app.storage.session_cache import SessionData

logger = get_logger(__name__)


@dataclass
class BrainResult:
    """
    Result from the brain.

    Attributes:
        response_text: Text to send (caption when image_url is set)
        image_url: Image to send, e.g. a ticket data URL
        agent_used: Which agent produced the final reply
        intent: Intent detected for the message
        success: Whether processing completed
        errors: List of errors (if any)
    """

    response_text: str
    image_url: str | None = None
    agent_used: str = "brain"
    intent: str | None = None
    routing_method: str = ""
    success: bool = True
    request_id: str = ""
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "response_text": self.response_text,
            "image_url": self.image_url,
            "agent_used": self.agent_used,
            "intent": self.intent,
            "routing_method": self.routing_method,
            "success": self.success,
            "request_id": self.request_id,
            "errors": self.errors,
        }


async def process_message(
    db: Session,
    session: SessionData,
    message: str,
    variant: str | None = None,
    request_id: str | None = None,
) -> BrainResult:
    """
    Route a message to an agent and return its reply.

    The caller has already added the user's message to the session history.

    Args:
        db: Database session
        session: User session
        message: User message text (or the image placeholder)
        variant: Bot variant, defaults to settings.bot_variant
        request_id: Request ID for tracing

    Returns:
        BrainResult. Unexpected errors yield a generic apology with
        success=False.
    """
    request_id = request_id or str(uuid.uuid4())
    variant = variant or settings.bot_variant

    logger.info(
        "brain_process_start",
        request_id=request_id,
        wa_id=mask_id(session.wa_id),
        variant=variant,
        message_preview=message[:50] if message else None,
    )

    try:
        initial_state = create_initial_state(session, message, variant, request_id)
        final_state = await get_brain_graph().ainvoke(
            initial_state,
            config={"configurable": {"db": db}},
        )

        result = BrainResult(
            response_text=final_state.get("response_text", ""),
            image_url=final_state.get("image_url"),
            agent_used=_get_agent_used(final_state),
            intent=final_state.get("intent"),
            routing_method=final_state.get("routing_method", ""),
            success=final_state.get("status") == "completed",
            request_id=request_id,
            errors=final_state.get("errors", []),
        )

        logger.info(
            "brain_process_complete",
            request_id=request_id,
            success=result.success,
            agent=result.agent_used,
            method=result.routing_method,
            has_image=result.image_url is not None,
        )
        return result

    except Exception as e:
        logger.error(
            "brain_process_error",
            request_id=request_id,
            error=str(e),
            exc_info=True,
        )
        return BrainResult(
            response_text=GENERIC_ERROR_MESSAGE,
            success=False,
            request_id=request_id,
            errors=[str(e)],
        )


def _get_agent_used(state: BrainState) -> str:
    """Extract which agent was used from final state."""
    response = state.get("agent_response")
    if response:
        return response.agent_name
    return state.get("selected_agent") or "brain"
