"""Bursary Lister Agent - static list of partner bursaries."""

from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType
from app.agents.common.response import AgentResponse, success_response
from app.integrations.whatsapp.response_formatter import NAVIGATION_MENU
from app.logging_config import get_logger, mask_id
from app.storage.session_cache import SessionData

logger = get_logger(__name__)

AGENT_NAME = AgentType.BURSARY_LISTER.value

# (name, funder, deadline)
BURSARY_LIST: list[tuple[str, str, str]] = [
    ("Siemens Bursary", "Siemens South Africa", "31 December 2025"),
    ("Momentum Bursary", "Momentum Metropolitan", "15 December 2025"),
    ("Metropolitan Health Bursary", "Metropolitan Health Group", "30 November 2025"),
    ("Bureau Veritas Bursary", "Bureau Veritas South Africa", "20 December 2025"),
    ("General Financial Aid", "TTI Bursaries Fund", "Ongoing"),
]


def format_bursary_list() -> str:
    lines = ["Here are the *Available Bursaries* we are currently partnered with:\n\n"]
    for name, funder, deadline in BURSARY_LIST:
        lines.append(f"*{name}*\nFunder: {funder}\nCloses: *{deadline}*\n\n")
    return "".join(lines)


async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    """Send the bursary list followed by the main menu."""
    logger.info("bursary_list_sent", wa_id=mask_id(session.wa_id), count=len(BURSARY_LIST))
    return success_response(format_bursary_list() + NAVIGATION_MENU, AGENT_NAME)
