"""Response envelope returned by the orchestrator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crudmind.agent.state import AgentState


class ResponseType(str, Enum):
    MESSAGE = "message"
    CONFIRMATION = "confirmation"
    ERROR = "error"
    EXECUTED = "executed"


@dataclass(frozen=True)
class AgentResponse:
    """Final answer, pending confirmation or error, with the steps taken."""

    type: ResponseType
    message: str
    steps: list[dict[str, Any]] = field(default_factory=list)
    pending_action: dict[str, Any] | None = None
    result: dict[str, Any] | None = None

    @classmethod
    def of_message(cls, message: str, steps: list[dict[str, Any]] | None = None) -> "AgentResponse":
        return cls(ResponseType.MESSAGE, message, steps or [])

    @classmethod
    def of_confirmation(
        cls,
        message: str,
        pending_action: dict[str, Any],
        steps: list[dict[str, Any]] | None = None,
    ) -> "AgentResponse":
        return cls(ResponseType.CONFIRMATION, message, steps or [], pending_action=pending_action)

    @classmethod
    def of_error(cls, message: str, steps: list[dict[str, Any]] | None = None) -> "AgentResponse":
        return cls(ResponseType.ERROR, message, steps or [])

    @classmethod
    def of_executed(
        cls,
        message: str,
        result: dict[str, Any],
        steps: list[dict[str, Any]] | None = None,
    ) -> "AgentResponse":
        return cls(ResponseType.EXECUTED, message, steps or [], result=result)

    @classmethod
    def from_state(cls, state: AgentState) -> "AgentResponse":
        """Translate a terminal or paused state into exactly one response."""
        steps = [step.to_dict() for step in state.steps]

        if state.needs_confirmation:
            pending = state.pending_action
            if pending is None:
                return cls.of_error("No pending operation found to confirm.", steps)
            return cls.of_confirmation(
                pending.description or "Do you confirm this operation?",
                pending.to_dict(),
                steps,
            )

        if state.is_failed:
            return cls.of_error(state.final_answer or "An error occurred.", steps)

        return cls.of_message(state.final_answer or "", steps)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form. Confirmations also carry an ``intent`` block for chat widgets."""
        data: dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.steps:
            data["steps"] = self.steps
        if self.pending_action is not None:
            data["pending_action"] = self.pending_action
        if self.result is not None:
            data["result"] = self.result

        if self.type is ResponseType.CONFIRMATION and self.pending_action:
            params = self.pending_action.get("params") or {}
            data["intent"] = {
                "type": "confirmation",
                "action": self.pending_action.get("action"),
                "table": params.get("table"),
                "data": params,
                "where": params.get("where") or {},
                "select": [],
                "message": self.message,
                "confidence": 1.0,
                "auto_continue": False,
            }

        return data
