"""Server-sent events emitted while an agent run streams."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from crudmind.agent.step import AgentStep


class EventType(str, Enum):
    STEP = "step"
    CONFIRMATION = "confirmation"
    MESSAGE = "message"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class StreamingEvent:
    """One event of the stream. ``done`` is always the last one."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def step(cls, agent_step: AgentStep) -> "StreamingEvent":
        return cls(EventType.STEP, agent_step.to_dict())

    @classmethod
    def confirmation(cls, action: str, params: dict[str, Any], description: str) -> "StreamingEvent":
        return cls(
            EventType.CONFIRMATION,
            {"action": action, "params": params, "description": description},
        )

    @classmethod
    def message(cls, content: str) -> "StreamingEvent":
        return cls(EventType.MESSAGE, {"content": content})

    @classmethod
    def error(cls, message: str) -> "StreamingEvent":
        return cls(EventType.ERROR, {"message": message})

    @classmethod
    def done(cls, steps: list[dict[str, Any]] | None = None, final_message: str | None = None) -> "StreamingEvent":
        return cls(EventType.DONE, {"steps": steps or [], "message": final_message})

    def to_sse(self) -> dict[str, str]:
        """Event dict as consumed by ``sse_starlette.EventSourceResponse``."""
        return {"event": self.type.value, "data": json.dumps(self.data, ensure_ascii=False, default=str)}

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "data": self.data}
