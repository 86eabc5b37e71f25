"""
Brain router.

Picks one agent per message and follows agent handoffs.

Usage:
    from app.agents.brain import process_message

    result = await process_message(db, session, "1")
"""

from app.agents.brain.agent import BrainResult, process_message
from app.agents.brain.graph import get_brain_graph, reset_graph
from app.agents.brain.router import (
    AGENT_REGISTRY,
    RoutingDecision,
    determine_target_agent,
    route_by_profile_status,
)
from app.agents.brain.state import BrainState, create_initial_state

__all__ = [
    "AGENT_REGISTRY",
    "BrainResult",
    "BrainState",
    "RoutingDecision",
    "create_initial_state",
    "determine_target_agent",
    "get_brain_graph",
    "process_message",
    "reset_graph",
    "route_by_profile_status",
]
