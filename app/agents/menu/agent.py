"""
Menu Agent - comedy show ticketing ("Lesedi, Oscar's Booking Manager").

HOME → SELECT_SHOW → SHOW_DETAILS → CONFIRM_PURCHASE → (QR ticket) → HOME
HOME → VIP_CLUB → HOME

The stage lives in session.state["menu_agent_state"]; the brain persists
the session state after every turn.
"""

from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.intents import AgentType
from app.agents.common.response import (
    AgentResponse,
    awaiting_input_response,
    success_response,
)
from app.logging_config import get_logger, mask_id
from app.storage.session_cache import SessionData
from app.tools.ticket_generator import generate_ticket

logger = get_logger(__name__)

AGENT_NAME = AgentType.MENU.value
STATE_KEY = "menu_agent_state"
DEFAULT_USER_NAME = "Fan"

CURRENT_SHOW = "Old Jokes to the Bin"
CURRENT_SHOW_PRICE = "R250"
TICKET_SEAT_TYPE = "VIP Access"


class MenuStage(str, Enum):
    HOME = "HOME"
    SELECT_SHOW = "SELECT_SHOW"
    SHOW_DETAILS = "SHOW_DETAILS"
    CONFIRM_PURCHASE = "CONFIRM_PURCHASE"
    VIP_CLUB = "VIP_CLUB"


SHOW_LIST = (
    "🎟️ *Current Shows*\n"
    "Select a show to view details:\n\n"
    "1️⃣ **Old Jokes Straight to the Bin**\n(Dec 2025 - Joburg)\n\n"
    "2️⃣ **The Book of Laughter**\n(2026 Tour - Coming Soon)"
)

VIP_PROMPT = "✨ *VIP Access*\n\nGet front row priority. Type your **Email Address** to join:"

SHOW_DETAILS = (
    "[Insert Digital Poster Image Here]\n\n"
    "🗑️ *Old Jokes Straight to the Bin*\n"
    "_Oscar Omuhle's Final Performance of the Classics_\n\n"
    "📍 **Venue:** Joburg Theatre\n"
    "📅 **Date:** 06 Dec 2025\n"
    "💰 **Price:** R250 (VIP)\n\n"
    "👇 *Reply \"BOOK\" to secure your seat!*"
)

NOT_ON_SALE = (
    "📖 *The Book of Laughter*\n\n"
    "Tickets for this tour are not out yet. I'll notify you when they drop! \n\n"
    "Select 1️⃣ for the current show or 0️⃣ for Menu."
)

SELECT_SHOW_REPROMPT = "Please select a show number (e.g. 1) or type 'Back'."
PAYMENT_REPROMPT = "Please complete payment (Type 'PAID') or say 'Cancel'."
VIP_REPROMPT = "Type your email or 'Back'."
VIP_ADDED = "Added to VIP list! 📧"


def main_menu(name: str) -> str:
    return (
        f"👋 *Sawubona {name}!* I'm Lesedi, Oscar's Booking Manager.\n\n"
        "1️⃣ **Get Tickets** (Upcoming Shows)\n"
        "2️⃣ **Join VIP Club**"
    )


def payment_prompt(name: str, show: str, price: str) -> str:
    return (
        f"Excellent choice, {name}. 🎟️\n\n"
        f"You are booking **1x VIP Seat** for **{show}**.\n"
        f"Total: {price}\n\n"
        "💳 *[TAP HERE TO PAY SECURELY]*\n"
        "(For this demo, simply type **'PAID'** to verify)"
    )


def ticket_caption(name: str) -> str:
    return f"✅ *Payment Received!*\n\nHere is your access code, {name}.\nShow this QR at the door."


async def process(
    db: Session,
    session: SessionData,
    message: str,
    context: dict[str, Any] | None = None,
) -> AgentResponse:
    """
    Handle one ticketing menu message.

    Returns:
        AgentResponse; after payment it carries the ticket as image_url
        with the confirmation as caption
    """
    user_name = session.user_name or DEFAULT_USER_NAME
    agent_state = dict(session.state.get(STATE_KEY) or {"stage": MenuStage.HOME.value})
    stage = agent_state.get("stage", MenuStage.HOME.value)
    msg = (message or "").strip().lower()

    logger.info("menu_step", wa_id=mask_id(session.wa_id), stage=stage)

    image_url = None

    if stage == MenuStage.SELECT_SHOW.value:
        if "1" in msg or "old" in msg or "bin" in msg:
            agent_state.update(
                stage=MenuStage.SHOW_DETAILS.value,
                selected_show=CURRENT_SHOW,
                price=CURRENT_SHOW_PRICE,
            )
            reply = SHOW_DETAILS
        elif "2" in msg or "book" in msg:
            reply = NOT_ON_SALE
        elif "0" in msg or "back" in msg:
            agent_state["stage"] = MenuStage.HOME.value
            reply = main_menu(user_name)
        else:
            reply = SELECT_SHOW_REPROMPT

    elif stage == MenuStage.SHOW_DETAILS.value:
        if "book" in msg or "yes" in msg or "1" in msg:
            agent_state["stage"] = MenuStage.CONFIRM_PURCHASE.value
            reply = payment_prompt(
                user_name,
                agent_state.get("selected_show", CURRENT_SHOW),
                agent_state.get("price", CURRENT_SHOW_PRICE),
            )
        else:
            agent_state["stage"] = MenuStage.HOME.value
            reply = main_menu(user_name)

    elif stage == MenuStage.CONFIRM_PURCHASE.value:
        if "paid" in msg or "done" in msg:
            show = agent_state.get("selected_show", CURRENT_SHOW)
            image_url = generate_ticket(user_name, show, TICKET_SEAT_TYPE)
            agent_state["stage"] = MenuStage.HOME.value
            reply = ticket_caption(user_name)
            logger.info("ticket_issued", wa_id=mask_id(session.wa_id), show=show)
        elif "cancel" in msg:
            agent_state["stage"] = MenuStage.HOME.value
            reply = main_menu(user_name)
        else:
            reply = PAYMENT_REPROMPT

    elif stage == MenuStage.VIP_CLUB.value:
        if "@" in msg:
            agent_state["stage"] = MenuStage.HOME.value
            agent_state["vip_email"] = msg
            reply = f"{VIP_ADDED}\n\n{main_menu(user_name)}"
        elif "back" in msg:
            agent_state["stage"] = MenuStage.HOME.value
            reply = main_menu(user_name)
        else:
            reply = VIP_REPROMPT

    else:
        if "1" in msg or "ticket" in msg:
            agent_state["stage"] = MenuStage.SELECT_SHOW.value
            reply = SHOW_LIST
        elif "2" in msg or "vip" in msg:
            agent_state["stage"] = MenuStage.VIP_CLUB.value
            reply = VIP_PROMPT
        else:
            agent_state["stage"] = MenuStage.HOME.value
            reply = main_menu(user_name)

    session.state[STATE_KEY] = agent_state

    if image_url:
        return success_response(reply, AGENT_NAME, image_url=image_url)
    return awaiting_input_response(reply, AGENT_NAME)
