"""
Common infrastructure for multi-agent coordination.

This module provides shared components for the Brain router:
- AgentResponse: Unified response format for all agents
- Handoff protocol: Inter-agent communication and transfer
- Intent analysis: Rule-based intents and bursary menu helpers
- AgentStateManager: In-memory per-agent state and handoff records

Usage:
    from app.agents.common import AgentResponse, AgentType, awaiting_input_response

    return awaiting_input_response("What's your full name?", agent_name="application")
"""

from app.agents.common.response import (
    AgentResponse,
    AgentStatus,
    awaiting_input_response,
    error_response,
    handoff_response,
    success_response,
)
from app.agents.common.handoff import (
    MAX_HANDOFFS_PER_MESSAGE,
    HandoffReason,
    HandoffSignal,
    HandoffTarget,
    validate_handoff,
)
from app.agents.common.intents import (
    AgentType,
    Intent,
    analyze_bursary_intent,
    analyze_intent,
    detect_menu_choice,
    is_cancel_application,
    is_greeting,
)

__all__ = [
    # Response
    "AgentResponse",
    "AgentStatus",
    "awaiting_input_response",
    "error_response",
    "handoff_response",
    "success_response",
    # Handoff
    "MAX_HANDOFFS_PER_MESSAGE",
    "HandoffReason",
    "HandoffSignal",
    "HandoffTarget",
    "validate_handoff",
    # Intents
    "AgentType",
    "Intent",
    "analyze_bursary_intent",
    "analyze_intent",
    "detect_menu_choice",
    "is_cancel_application",
    "is_greeting",
]
