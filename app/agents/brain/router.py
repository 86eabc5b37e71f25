"""
Brain routing rules and agent registry.

Routing depends on the bot variant:

christ_connect:  profile status decides (new → onboarding, waitlisted → menu,
                 deleted → fixed reply)
comedy_tickets:  always the ticketing menu
tti_bursaries:   cancel phrase → application, then the sticky lock, then
                 the numbered main menu, then conversation
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.agents import application, bursary_lister, contact, conversation, menu, onboarding
from app.agents.common.intents import AgentType, detect_menu_choice, is_cancel_application
from app.agents.common.response import AgentResponse
from app.agents.common.state_manager import agent_state_manager
from app.logging_config import get_logger, mask_id
from app.models import ProfileStatus
from app.storage.session_cache import SessionData

logger = get_logger(__name__)

VARIANT_CHRIST_CONNECT = "christ_connect"
VARIANT_TTI_BURSARIES = "tti_bursaries"
VARIANT_COMEDY_TICKETS = "comedy_tickets"

LOCK_KEY = "locked_agent"

AgentHandler = Callable[[Session, SessionData, str, dict[str, Any] | None], Awaitable[AgentResponse]]

AGENT_REGISTRY: dict[str, AgentHandler] = {
    AgentType.ONBOARDING.value: onboarding.process,
    AgentType.DELETED_USER.value: onboarding.deleted_user.process,
    AgentType.MENU.value: menu.process,
    AgentType.APPLICATION.value: application.process,
    AgentType.BURSARY_LISTER.value: bursary_lister.process,
    AgentType.CONTACT.value: contact.process,
    AgentType.CONVERSATION.value: conversation.process,
}


@dataclass
class RoutingDecision:
    """Agent chosen for a message and how it was chosen."""
    agent: str
    method: str
    # Set when a locked agent was overridden: (from_agent, reason)
    overridden_lock: tuple[str, str] | None = None


def get_agent(name: str) -> AgentHandler:
    """
    Look up an agent handler.

    Raises:
        KeyError: If no agent is registered under that name
    """
    return AGENT_REGISTRY[name]


def route_by_profile_status(status: str | None) -> str:
    """Christ Connect routing by profile status."""
    if status is None or status == ProfileStatus.ONBOARDING_STARTED.value:
        return AgentType.ONBOARDING.value
    if status == ProfileStatus.WAITLIST_COMPLETED.value:
        return AgentType.MENU.value
    if status == ProfileStatus.DELETED.value:
        return AgentType.DELETED_USER.value
    return AgentType.ONBOARDING.value


def route_bursary_message(session: SessionData, message: str) -> RoutingDecision:
    """TTI Bursaries routing: cancel, lock, menu choice, conversation."""
    if is_cancel_application(message):
        return RoutingDecision(AgentType.APPLICATION.value, "cancel")

    locked = session.state.get(LOCK_KEY)
    if locked in AGENT_REGISTRY:
        recommendation = agent_state_manager.determine_handoff_needed(locked, session.wa_id, message)
        if recommendation.handoff_needed and recommendation.target_agent in AGENT_REGISTRY:
            logger.info(
                "lock_overridden",
                wa_id=mask_id(session.wa_id),
                locked_agent=locked,
                target=recommendation.target_agent,
                reason=recommendation.reason,
            )
            return RoutingDecision(
                recommendation.target_agent,
                "recommended",
                overridden_lock=(locked, recommendation.reason or ""),
            )
        return RoutingDecision(locked, "locked")

    choice = detect_menu_choice(message)
    if choice is not None:
        return RoutingDecision(choice.value, "menu")

    return RoutingDecision(AgentType.CONVERSATION.value, "default")


def determine_target_agent(
    variant: str,
    session: SessionData,
    message: str,
    profile_status: str | None = None,
) -> RoutingDecision:
    """
    Pick the agent for a message.

    Args:
        variant: Bot variant (christ_connect, tti_bursaries, comedy_tickets)
        session: User session (its state holds the sticky lock)
        message: User message
        profile_status: Christ Connect profile status, None if no profile

    Returns:
        RoutingDecision
    """
    if variant == VARIANT_COMEDY_TICKETS:
        return RoutingDecision(AgentType.MENU.value, "variant")
    if variant == VARIANT_TTI_BURSARIES:
        return route_bursary_message(session, message)
    return RoutingDecision(route_by_profile_status(profile_status), "status")
