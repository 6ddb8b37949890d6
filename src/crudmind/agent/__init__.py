"""ReAct agent for database conversations.

The agent alternates between reasoning and calling database tools until
it can answer. Writes pause the run for user confirmation; the paused
state is persisted with the conversation and resumed on confirm.

Usage::

    from crudmind.agent.builder import build_orchestrator
    from crudmind.config.loader import load_config

    orchestrator = build_orchestrator(load_config())
    response = await orchestrator.handle("conv-1", "How many users signed up today?")
"""

from crudmind.agent.events import EventType, StreamingEvent
from crudmind.agent.loop import AgentLoop, AgentRun, ConfirmationError
from crudmind.agent.response import AgentResponse, ResponseType
from crudmind.agent.state import AgentState, AgentStatus, InvalidTransitionError, PendingAction
from crudmind.agent.step import AgentStep

__all__ = [
    "AgentLoop",
    "AgentResponse",
    "AgentRun",
    "AgentState",
    "AgentStatus",
    "AgentStep",
    "ConfirmationError",
    "EventType",
    "InvalidTransitionError",
    "PendingAction",
    "ResponseType",
    "StreamingEvent",
]
