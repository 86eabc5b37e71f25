"""
Brain State Schema.

Defines the state that flows through the LangGraph nodes of the brain
router. The database session travels separately in the run config
(config["configurable"]["db"]).
"""

import uuid
from typing import Any, Literal, TypedDict

from app.agents.common.response import AgentResponse
from app.storage.session_cache import SessionData


BrainStatus = Literal[
    "loading",          # Loading profile status
    "analyzing",        # Detecting intent
    "routing",          # Choosing the agent
    "processing",       # Agent is running
    "handling_response",# Lock and handoff bookkeeping
    "updating_session", # Persisting history and state
    "completed",
    "error",
]


class BrainState(TypedDict, total=False):
    """
    State schema for the brain router.

    The brain:
    1. Loads the user's profile status
    2. Analyzes the intent and stores it on the session
    3. Picks an agent (variant rules, sticky lock, menu choice)
    4. Runs the agent
    5. Follows handoffs (at most three per message)
    6. Records the reply and persists the session
    """

    # =========================================================================
    # Request
    # =========================================================================
    request_id: str
    wa_id: str
    message: str
    session: SessionData
    variant: str

    # =========================================================================
    # Context
    # =========================================================================
    profile_status: str | None
    intent: str | None

    # =========================================================================
    # Routing Decision
    # =========================================================================
    selected_agent: str
    routing_method: str  # "status", "variant", "cancel", "locked", "recommended", "menu", "default"
    handoff_context: dict[str, Any] | None

    # =========================================================================
    # Agent Execution
    # =========================================================================
    agent_response: AgentResponse | None
    handoff_count: int
    handoffs: list[dict[str, Any]]  # {"from", "to", "reason", "context"}

    # =========================================================================
    # Output
    # =========================================================================
    responses: list[str]
    response_text: str
    image_url: str | None

    # =========================================================================
    # Status & Errors
    # =========================================================================
    status: BrainStatus
    errors: list[str]


def create_initial_state(
    session: SessionData,
    message: str,
    variant: str,
    request_id: str | None = None,
) -> BrainState:
    """Create the initial state for one brain run."""
    return BrainState(
        request_id=request_id or str(uuid.uuid4()),
        wa_id=session.wa_id,
        message=message or "",
        session=session,
        variant=variant,
        profile_status=None,
        intent=None,
        selected_agent="",
        routing_method="",
        handoff_context=None,
        agent_response=None,
        handoff_count=0,
        handoffs=[],
        responses=[],
        response_text="",
        image_url=None,
        status="loading",
        errors=[],
    )
