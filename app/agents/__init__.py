"""
Agents module.

Contains the LangGraph brain router and the agents it dispatches to.

Available agents:
- Brain: Router and orchestrator (entry point)
- Onboarding: Christ Connect profile questionnaire
- Menu: Comedy show ticketing
- Application: Bursary application wizard
- Bursary Lister / Contact / Conversation: TTI Bursaries main menu options

Common infrastructure:
- AgentResponse: Unified response format for all agents
- HandoffSignal: Inter-agent communication protocol
- AgentType: Agent type enumeration for routing

Usage:
    from app.agents import process_message

    result = await process_message(db, session, "Hi")
"""

from app.agents.brain import BrainResult, process_message
from app.agents.common import (
    AgentResponse,
    AgentStatus,
    AgentType,
    HandoffSignal,
    HandoffTarget,
)

__all__ = [
    # Brain (main entry point)
    "process_message",
    "BrainResult",
    # Common infrastructure
    "AgentResponse",
    "AgentStatus",
    "AgentType",
    "HandoffSignal",
    "HandoffTarget",
]
