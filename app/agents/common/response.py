"""
Unified AgentResponse for all agents.

This module defines the standard response format every agent
(onboarding, menu, application, lister, contact, conversation) returns
to the Brain router.

The AgentResponse enables:
- Consistent response handling
- Handoff signaling between agents
- Session lock management
- Image replies (ticket QR codes)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AgentStatus(str, Enum):
    """Status of agent execution."""

    COMPLETED = "completed"           # Task finished successfully
    AWAITING_INPUT = "awaiting_input" # Waiting for user response
    ERROR = "error"                   # Error occurred
    HANDOFF = "handoff"               # Transferring to another agent


@dataclass
class AgentResponse:
    """
    Unified response format from any agent to the Brain.

    Attributes:
        response_text: Text to send back to the user (caption when image_url is set)
        status: Current status of the agent execution
        agent_name: Name of the agent that generated this response
        image_url: Image to send (URL or data URL)

        handoff_to: Target agent for handoff (None = no handoff)
        handoff_reason: Why the handoff is happening
        handoff_context: Data to pass to the next agent

        release_lock: Whether to release the sticky session lock
        errors: List of error messages

    Example:
        >>> # Application wizard asks the next question and keeps the lock
        >>> AgentResponse(
        ...     response_text="What's your full name?",
        ...     status=AgentStatus.AWAITING_INPUT,
        ...     agent_name="application",
        ... )

        >>> # Application cancelled, conversation agent takes over
        >>> AgentResponse(
        ...     response_text="Your application has been cancelled.",
        ...     status=AgentStatus.HANDOFF,
        ...     handoff_to="conversation",
        ...     release_lock=True,
        ... )
    """

    # Required: Response to user
    response_text: str
    status: AgentStatus = AgentStatus.COMPLETED
    agent_name: str = "unknown"
    image_url: str | None = None

    # Handoff signals (for inter-agent transfer)
    handoff_to: str | None = None
    handoff_reason: str | None = None
    handoff_context: dict[str, Any] | None = None

    # Session management
    release_lock: bool = False

    # Errors
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether the agent completed successfully."""
        return self.status in (
            AgentStatus.COMPLETED,
            AgentStatus.AWAITING_INPUT,
            AgentStatus.HANDOFF,
        )

    @property
    def wants_handoff(self) -> bool:
        """Whether the agent wants to hand off to another agent."""
        return self.handoff_to is not None

    @property
    def keeps_lock(self) -> bool:
        """Whether the next message should go straight back to this agent."""
        return self.status == AgentStatus.AWAITING_INPUT and not self.release_lock

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "response_text": self.response_text,
            "status": self.status.value if isinstance(self.status, AgentStatus) else self.status,
            "success": self.success,
            "agent_name": self.agent_name,
            "image_url": self.image_url,
            "handoff_to": self.handoff_to,
            "handoff_reason": self.handoff_reason,
            "release_lock": self.release_lock,
            "errors": self.errors,
        }

    def __repr__(self) -> str:
        return (
            f"AgentResponse(agent={self.agent_name}, status={self.status.value}, "
            f"handoff_to={self.handoff_to}, release_lock={self.release_lock})"
        )


# ─────────────────────────────────────────────────────────────────────────────
# Factory functions for common response patterns
# ─────────────────────────────────────────────────────────────────────────────

def success_response(
    text: str,
    agent_name: str,
    release_lock: bool = True,
    **kwargs
) -> AgentResponse:
    """Create a successful completion response."""
    return AgentResponse(
        response_text=text,
        status=AgentStatus.COMPLETED,
        agent_name=agent_name,
        release_lock=release_lock,
        **kwargs
    )


def awaiting_input_response(
    text: str,
    agent_name: str,
    **kwargs
) -> AgentResponse:
    """Create a response awaiting user input."""
    return AgentResponse(
        response_text=text,
        status=AgentStatus.AWAITING_INPUT,
        agent_name=agent_name,
        release_lock=False,  # Keep lock while waiting
        **kwargs
    )


def error_response(
    text: str,
    agent_name: str,
    errors: list[str] | None = None,
    **kwargs
) -> AgentResponse:
    """Create an error response."""
    return AgentResponse(
        response_text=text,
        status=AgentStatus.ERROR,
        agent_name=agent_name,
        release_lock=True,  # Release lock on error
        errors=errors or [],
        **kwargs
    )


def handoff_response(
    text: str,
    agent_name: str,
    target: str,
    reason: str | None = None,
    context: dict[str, Any] | None = None,
    **kwargs
) -> AgentResponse:
    """Create a handoff response to another agent."""
    return AgentResponse(
        response_text=text,
        status=AgentStatus.HANDOFF,
        agent_name=agent_name,
        handoff_to=target,
        handoff_reason=reason,
        handoff_context=context,
        release_lock=True,
        **kwargs
    )
