"""
Agent state manager.

Keeps small per-(agent, user) working state in memory, records handoffs
on the user's session, and decides whether a message sent to a locked
agent should go somewhere else instead.

State is process-local and expires after agent_state_ttl_minutes of
inactivity. cleanup() is called periodically by the API lifespan task.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.agents.common.handoff import HandoffReason
from app.agents.common.intents import AgentType
from app.config import settings
from app.logging_config import get_logger, mask_id
from app.storage.session_manager import get_session, update_session

logger = get_logger(__name__)

HANDOFF_HISTORY_LIMIT = 5

# Explicit requests that the locked agent can't serve
_CONTACT_REQUEST = re.compile(r"\b(contact us|contact details|phone number for tti|speak to (a )?(human|person|someone))\b")
_BURSARY_LIST_REQUEST = re.compile(r"\b(available bursaries|list (of )?bursaries|bursary list|show (me )?(the )?bursaries)\b")
_CONFUSION = re.compile(r"confused|don't understand|dont understand|help me|what do you mean")


@dataclass
class HandoffRecommendation:
    """Outcome of determine_handoff_needed."""
    handoff_needed: bool
    target_agent: str | None = None
    reason: str | None = None
    confidence: float = 0.6


class AgentStateManager:
    """In-memory agent states and handoff records."""

    def __init__(self, ttl_minutes: int | None = None):
        self.ttl = timedelta(
            minutes=ttl_minutes if ttl_minutes is not None else settings.agent_state_ttl_minutes
        )
        self._states: dict[str, dict[str, Any]] = {}
        self._handoffs: list[dict[str, Any]] = []

    @staticmethod
    def _key(agent_id: str, wa_id: str) -> str:
        return f"{agent_id}:{wa_id}"

    def get_agent_state(self, agent_id: str, wa_id: str) -> dict[str, Any]:
        """Get the agent's state for a user, initialising it on first use."""
        key = self._key(agent_id, wa_id)
        if key not in self._states:
            now = datetime.utcnow()
            self._states[key] = {
                "agent_id": agent_id,
                "user_id": wa_id,
                "created_at": now,
                "last_updated": now,
                "state": "initialized",
                "context": {},
                "conversation_turns": 0,
            }
        return self._states[key]

    def update_agent_state(self, agent_id: str, wa_id: str, update: dict[str, Any]) -> dict[str, Any]:
        """Shallow-merge update into the agent state."""
        state = {**self.get_agent_state(agent_id, wa_id), **update}
        state["last_updated"] = datetime.utcnow()
        self._states[self._key(agent_id, wa_id)] = state
        return state

    def increment_conversation_turns(self, agent_id: str, wa_id: str) -> dict[str, Any]:
        state = self.get_agent_state(agent_id, wa_id)
        return self.update_agent_state(
            agent_id, wa_id, {"conversation_turns": state["conversation_turns"] + 1}
        )

    def clear_agent_state(self, agent_id: str, wa_id: str) -> None:
        self._states.pop(self._key(agent_id, wa_id), None)

    def record_handoff(
        self,
        db: Session | None,
        wa_id: str,
        from_agent: str,
        to_agent: str,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """
        Record a handoff in memory and on the user's session.

        The session keeps last_agent_handoff and the last five handoffs.

        Returns:
            True if the session was updated
        """
        now = datetime.utcnow()
        self._handoffs.append({
            "user_id": wa_id,
            "from_agent": from_agent,
            "to_agent": to_agent,
            "timestamp": now,
            "context": context or {},
        })

        record = {"from": from_agent, "to": to_agent, "timestamp": now.isoformat()}
        try:
            session = get_session(db, wa_id)
            history = [*(session.agent_handoff_history or []), record][-HANDOFF_HISTORY_LIMIT:]
            update_session(db, wa_id, {
                "last_agent_handoff": record,
                "agent_handoff_history": history,
                "current_agent": to_agent,
            })
        except Exception as e:
            logger.error("handoff_record_failed", wa_id=mask_id(wa_id), error=str(e))
            return False

        self.get_agent_state(to_agent, wa_id)
        logger.info(
            "handoff_recorded",
            wa_id=mask_id(wa_id),
            from_agent=from_agent,
            to_agent=to_agent,
        )
        return True

    def prepare_handoff_context(
        self,
        wa_id: str,
        from_agent: str,
        to_agent: str,
        user_data: dict[str, Any] | None = None,
        additional_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Package the source agent's context for the target agent."""
        source = self.get_agent_state(from_agent, wa_id)
        now = datetime.utcnow()
        return {
            "handoff_id": f"{wa_id}_{int(now.timestamp() * 1000)}",
            "from_agent": from_agent,
            "to_agent": to_agent,
            "timestamp": now.isoformat(),
            "user_data": user_data or {},
            "source_agent_context": source["context"],
            "additional_context": additional_context or {},
            "conversation_state": {
                "turns": source["conversation_turns"],
                "current_state": source["state"],
            },
        }

    def determine_handoff_needed(
        self,
        current_agent: str,
        wa_id: str,
        message: str,
    ) -> HandoffRecommendation:
        """
        Decide whether a message to the locked agent needs another agent.

        Explicit contact or bursary-list requests go to those agents;
        expressions of confusion go to the conversation agent.
        """
        lower = (message or "").lower()
        self.get_agent_state(current_agent, wa_id)

        if _CONTACT_REQUEST.search(lower) and current_agent != AgentType.CONTACT.value:
            return HandoffRecommendation(
                handoff_needed=True,
                target_agent=AgentType.CONTACT.value,
                reason=HandoffReason.CONTACT_REQUESTED.value,
                confidence=0.9,
            )

        if _BURSARY_LIST_REQUEST.search(lower) and current_agent != AgentType.BURSARY_LISTER.value:
            return HandoffRecommendation(
                handoff_needed=True,
                target_agent=AgentType.BURSARY_LISTER.value,
                reason=HandoffReason.BURSARY_LIST_REQUESTED.value,
                confidence=0.9,
            )

        if _CONFUSION.search(lower) and current_agent != AgentType.CONVERSATION.value:
            return HandoffRecommendation(
                handoff_needed=True,
                target_agent=AgentType.CONVERSATION.value,
                reason=HandoffReason.USER_CONFUSED.value,
                confidence=0.7,
            )

        return HandoffRecommendation(handoff_needed=False, confidence=0.6)

    def cleanup(self) -> int:
        """
        Drop agent states and handoff records older than the TTL.

        Returns:
            Number of agent states removed
        """
        cutoff = datetime.utcnow() - self.ttl

        expired = [key for key, state in self._states.items() if state["last_updated"] < cutoff]
        for key in expired:
            del self._states[key]
        self._handoffs = [h for h in self._handoffs if h["timestamp"] >= cutoff]

        logger.info(
            "agent_state_cleanup",
            removed=len(expired),
            remaining=len(self._states),
            handoffs=len(self._handoffs),
        )
        return len(expired)

    @property
    def handoff_count(self) -> int:
        return len(self._handoffs)


# Global instance
agent_state_manager = AgentStateManager()
