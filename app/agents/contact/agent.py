"""Contact Agent - TTI Bursaries contact details."""

from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType
from app.agents.common.response import AgentResponse, success_response
from app.integrations.whatsapp.response_formatter import NAVIGATION_MENU
from app.storage.session_cache import SessionData

AGENT_NAME = AgentType.CONTACT.value

CONTACT_DETAILS = """Here are our *Contact Details*:

📧 *Email:* info@ttibursaries.co.za
☎️ *Telephone:* +27 010 746 4366
🌐 *Website:* https://www.ttibursaries.co.za

Our team is available to help you during office hours."""


async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    return success_response(CONTACT_DETAILS + NAVIGATION_MENU, AGENT_NAME)
