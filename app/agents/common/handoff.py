"""
Handoff Protocol for Inter-Agent Communication.

A handoff occurs when:
- An agent detects the user wants something outside its domain
- An agent finishes and another agent should greet the user
- The agent state manager spots a request the locked agent can't serve

The protocol ensures:
- Context is preserved across agent transitions
- Loops and infinite handoffs are prevented
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HandoffTarget(str, Enum):
    """Valid targets for handoff."""

    BRAIN = "brain"                   # Return to the Brain for re-routing
    ONBOARDING = "onboarding"
    MENU = "menu"
    APPLICATION = "application"
    BURSARY_LISTER = "bursary_lister"
    CONTACT = "contact"
    CONVERSATION = "conversation"


class HandoffReason(str, Enum):
    """Common reasons for handoff."""

    TASK_COMPLETED = "task_completed"
    USER_CANCELLED = "user_cancelled"
    INTENT_CHANGED = "intent_changed"
    USER_CONFUSED = "user_confused"
    CONTACT_REQUESTED = "contact_requested"
    BURSARY_LIST_REQUESTED = "bursary_list_requested"


@dataclass
class HandoffSignal:
    """
    Signal requesting a handoff.

    Attributes:
        target: Which agent should receive the conversation
        reason: Why the handoff is happening
        context: Data to pass to the target agent
        original_message: The user message that triggered the handoff
        source_agent: Agent handing off
        confidence: How sure the sender is (rule-based signals use fixed values)

    Example:
        >>> HandoffSignal(
        ...     target=HandoffTarget.CONVERSATION,
        ...     reason=HandoffReason.USER_CANCELLED,
        ...     source_agent="application",
        ... )
    """

    target: HandoffTarget
    reason: HandoffReason | str
    context: dict[str, Any] = field(default_factory=dict)
    original_message: str | None = None

    # Metadata
    source_agent: str | None = None
    confidence: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/logging."""
        return {
            "target": self.target.value if isinstance(self.target, HandoffTarget) else self.target,
            "reason": self.reason.value if isinstance(self.reason, HandoffReason) else self.reason,
            "context": self.context,
            "original_message": self.original_message,
            "source_agent": self.source_agent,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HandoffSignal":
        """Create from dictionary. Unknown targets fall back to the Brain."""
        target = data.get("target", HandoffTarget.BRAIN.value)
        if isinstance(target, str):
            try:
                target = HandoffTarget(target)
            except ValueError:
                target = HandoffTarget.BRAIN

        reason = data.get("reason", "unknown")
        if isinstance(reason, str):
            try:
                reason = HandoffReason(reason)
            except ValueError:
                pass  # Keep as string if not a known reason

        return cls(
            target=target,
            reason=reason,
            context=data.get("context") or {},
            original_message=data.get("original_message"),
            source_agent=data.get("source_agent"),
            confidence=data.get("confidence", 1.0),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Handoff validation and safety
# ─────────────────────────────────────────────────────────────────────────────

MAX_HANDOFFS_PER_MESSAGE = 3  # Prevent infinite loops


def validate_handoff(
    signal: HandoffSignal,
    handoff_count: int,
) -> tuple[bool, str | None]:
    """
    Validate a handoff signal.

    Args:
        signal: The handoff signal to validate
        handoff_count: Number of handoffs already performed this message

    Returns:
        Tuple of (is_valid, error_message)
    """
    if handoff_count >= MAX_HANDOFFS_PER_MESSAGE:
        return False, f"Max handoffs ({MAX_HANDOFFS_PER_MESSAGE}) exceeded"

    if signal.source_agent and signal.target.value == signal.source_agent:
        return False, f"Agent {signal.source_agent} cannot hand off to itself"

    return True, None
