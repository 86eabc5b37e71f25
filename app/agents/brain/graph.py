"""
Brain Graph Definition.

Defines the LangGraph that routes every message to one agent:
1. Load context (profile status)
2. Analyze intent
3. Route to an agent
4. Run the agent
5. Process the response (lock, handoffs)
6. Update the session
"""

from typing import Literal

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.agents.brain.router import (
    LOCK_KEY,
    VARIANT_CHRIST_CONNECT,
    VARIANT_TTI_BURSARIES,
    determine_target_agent,
    get_agent,
)
from app.agents.brain.state import BrainState
from app.agents.common.handoff import (
    MAX_HANDOFFS_PER_MESSAGE,
    HandoffSignal,
    HandoffTarget,
    validate_handoff,
)
from app.agents.common.intents import analyze_bursary_intent, analyze_intent
from app.agents.common.state_manager import agent_state_manager
from app.logging_config import get_logger, mask_id
from app.storage.profile_writer import get_profile_status
from app.storage.session_manager import add_to_history, update_session

logger = get_logger(__name__)

RESPONSE_SEPARATOR = "\n\n"


def _get_db(config: RunnableConfig) -> Session:
    return config["configurable"]["db"]


# ─────────────────────────────────────────────────────────────────────────────
# Conditional Edge Functions
# ─────────────────────────────────────────────────────────────────────────────

def should_continue_or_handoff(state: BrainState) -> Literal["done", "handoff", "reroute"]:
    """
    Determine if we're done or need to follow a handoff.

    Returns:
        - "done": Finished processing
        - "handoff": Run the agent selected by process_response
        - "reroute": Handoff back to the brain, route again
    """
    if state.get("status") != "handling_response":
        return "done"

    if state.get("routing_method") == "reroute":
        return "reroute"
    return "handoff"


# ─────────────────────────────────────────────────────────────────────────────
# Node Functions
# ─────────────────────────────────────────────────────────────────────────────

async def load_context_node(state: BrainState, config: RunnableConfig) -> BrainState:
    """
    Load the Christ Connect profile status.

    A database error counts as "no profile" so the user lands in onboarding.
    """
    if state.get("variant") != VARIANT_CHRIST_CONNECT:
        state["status"] = "analyzing"
        return state

    db = _get_db(config)
    try:
        state["profile_status"] = get_profile_status(db, state["wa_id"])
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("profile_status_failed", wa_id=mask_id(state["wa_id"]), error=str(e))
        state["profile_status"] = None

    logger.debug(
        "load_context_complete",
        request_id=state.get("request_id"),
        profile_status=state["profile_status"],
    )
    state["status"] = "analyzing"
    return state


def analyze_intent_node(state: BrainState) -> BrainState:
    """Detect the intent and store it on the session."""
    session = state["session"]
    message = state["message"]

    if state.get("variant") == VARIANT_TTI_BURSARIES:
        intent = analyze_bursary_intent(message)
    else:
        intent = analyze_intent(message, session.history)

    state["intent"] = intent.value
    session.state["intent"] = intent.value
    state["status"] = "routing"
    return state


def route_node(state: BrainState) -> BrainState:
    """Pick the agent for this message."""
    session = state["session"]
    decision = determine_target_agent(
        state.get("variant", VARIANT_CHRIST_CONNECT),
        session,
        state["message"],
        state.get("profile_status"),
    )

    if decision.overridden_lock:
        from_agent, reason = decision.overridden_lock
        session.state[LOCK_KEY] = None
        state["handoffs"] = state.get("handoffs", []) + [{
            "from": from_agent,
            "to": decision.agent,
            "reason": reason,
            "context": agent_state_manager.prepare_handoff_context(
                state["wa_id"], from_agent, decision.agent,
                additional_context={"reason": reason},
            ),
        }]

    state["selected_agent"] = decision.agent
    state["routing_method"] = decision.method
    # Picking an agent from the main menu re-enters it rather than answering it
    if decision.method == "menu":
        state["handoff_context"] = {"resume": True}
    state["status"] = "processing"

    logger.info(
        "brain_routed",
        request_id=state.get("request_id"),
        wa_id=mask_id(state["wa_id"]),
        agent=decision.agent,
        method=decision.method,
        intent=state.get("intent"),
    )
    return state


async def run_agent_node(state: BrainState, config: RunnableConfig) -> BrainState:
    """Run the selected agent."""
    agent_name = state["selected_agent"]
    session = state["session"]
    handler = get_agent(agent_name)

    logger.debug("run_agent_start", request_id=state.get("request_id"), agent=agent_name)

    response = await handler(
        _get_db(config),
        session,
        state["message"],
        state.get("handoff_context"),
    )
    agent_state_manager.increment_conversation_turns(agent_name, state["wa_id"])

    state["agent_response"] = response
    if response.response_text:
        state["responses"] = state.get("responses", []) + [response.response_text]
    if response.image_url:
        state["image_url"] = response.image_url
    if response.errors:
        state["errors"] = state.get("errors", []) + response.errors

    state["status"] = "handling_response"
    return state


def process_response_node(state: BrainState) -> BrainState:
    """
    Apply lock and handoff rules to the agent response.

    Awaiting-input responses lock the session to the agent; anything else
    releases it. Valid handoffs select the next agent.
    """
    response = state.get("agent_response")
    session = state["session"]

    if not response:
        state["status"] = "error"
        state["errors"] = state.get("errors", []) + ["No agent response"]
        return state

    session.state[LOCK_KEY] = response.agent_name if response.keeps_lock else None
    session.state["last_agent"] = response.agent_name
    state["handoff_context"] = None

    if not response.wants_handoff:
        state["status"] = "updating_session"
        return state

    signal = HandoffSignal.from_dict({
        "target": response.handoff_to,
        "reason": response.handoff_reason,
        "context": response.handoff_context,
        "original_message": state["message"],
        "source_agent": response.agent_name,
    })
    handoff_count = state.get("handoff_count", 0)
    valid, error = validate_handoff(signal, handoff_count)

    if not valid:
        logger.warning(
            "handoff_rejected",
            request_id=state.get("request_id"),
            source=response.agent_name,
            target=response.handoff_to,
            error=error,
        )
        state["status"] = "updating_session"
        return state

    state["handoff_count"] = handoff_count + 1
    state["handoff_context"] = signal.context
    if signal.target == HandoffTarget.BRAIN:
        state["routing_method"] = "reroute"
    else:
        state["selected_agent"] = signal.target.value
        state["routing_method"] = "handoff"

    state["handoffs"] = state.get("handoffs", []) + [{
        "from": response.agent_name,
        "to": signal.target.value,
        "reason": signal.to_dict()["reason"],
        "context": signal.context,
    }]
    logger.info(
        "handoff",
        request_id=state.get("request_id"),
        source=response.agent_name,
        target=signal.target.value,
        count=state["handoff_count"],
        max_handoffs=MAX_HANDOFFS_PER_MESSAGE,
    )
    return state


async def update_session_node(state: BrainState, config: RunnableConfig) -> BrainState:
    """
    Record the reply and persist the session.

    Handoffs are recorded first because they rewrite the cached session's
    routing fields; history and state are merged on top.
    """
    db = _get_db(config)
    wa_id = state["wa_id"]
    session = state["session"]

    state["response_text"] = RESPONSE_SEPARATOR.join(state.get("responses", []))

    for handoff in state.get("handoffs", []):
        agent_state_manager.record_handoff(
            db, wa_id, handoff["from"], handoff["to"], handoff.get("context")
        )

    add_to_history(db, wa_id, {"role": "assistant", "content": state["response_text"]})
    update_session(db, wa_id, {
        "state": session.state,
        "current_agent": session.state.get("last_agent"),
        "welcome_sent": session.welcome_sent,
    })

    if state.get("status") != "error":
        state["status"] = "completed"

    logger.debug(
        "update_session_complete",
        request_id=state.get("request_id"),
        handoffs=len(state.get("handoffs", [])),
    )
    return state


# ─────────────────────────────────────────────────────────────────────────────
# Graph Compilation
# ─────────────────────────────────────────────────────────────────────────────

def create_brain_graph() -> StateGraph:
    """
    Create the brain graph.

    Flow:
    1. load_context → analyze_intent → route → run_agent → process_response
    2. process_response → (conditional):
       - "done" → update_session → END
       - "handoff" → run_agent (loop)
       - "reroute" → route (loop)

    Returns:
        StateGraph (not compiled)
    """
    graph = StateGraph(BrainState)

    graph.add_node("load_context", load_context_node)
    graph.add_node("analyze_intent", analyze_intent_node)
    graph.add_node("route", route_node)
    graph.add_node("run_agent", run_agent_node)
    graph.add_node("process_response", process_response_node)
    graph.add_node("update_session", update_session_node)

    graph.set_entry_point("load_context")

    graph.add_edge("load_context", "analyze_intent")
    graph.add_edge("analyze_intent", "route")
    graph.add_edge("route", "run_agent")
    graph.add_edge("run_agent", "process_response")

    graph.add_conditional_edges(
        "process_response",
        should_continue_or_handoff,
        {
            "done": "update_session",
            "handoff": "run_agent",
            "reroute": "route",
        }
    )

    graph.add_edge("update_session", END)

    return graph


def compile_brain_graph():
    """Compile and return the brain graph."""
    return create_brain_graph().compile()


# Cached compiled graph
_compiled_graph = None


def get_brain_graph():
    """Get the cached compiled graph."""
    global _compiled_graph
    if _compiled_graph is None:
        _compiled_graph = compile_brain_graph()
    return _compiled_graph


def reset_graph():
    """Reset the cached graph (for testing)."""
    global _compiled_graph
    _compiled_graph = None
