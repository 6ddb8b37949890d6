"""A single reasoning increment: Thought -> Action -> Observation."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AgentStep(BaseModel):
    """Immutable record of one agent step.

    A step with ``action`` set but no ``observation`` is paused (awaiting
    confirmation). It is later replaced in place by ``with_observation``.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    thought: str | None = None
    action: str | None = None
    action_params: dict[str, Any] | None = None
    observation: str | None = None
    timestamp: float = Field(default_factory=time.time)

    @classmethod
    def thinking(cls, index: int, thought: str) -> "AgentStep":
        return cls(index=index, thought=thought)

    @classmethod
    def acting(cls, index: int, thought: str | None, action: str, params: dict[str, Any]) -> "AgentStep":
        return cls(index=index, thought=thought, action=action, action_params=dict(params))

    @property
    def is_paused(self) -> bool:
        return self.action is not None and self.observation is None

    def with_observation(self, observation: str) -> "AgentStep":
        """Copy of this step carrying ``observation``; index and timestamp kept."""
        return self.model_copy(update={"observation": observation})

    def to_dict(self) -> dict[str, Any]:
        """API representation, omitting unset fields."""
        data = {
            "step": self.index,
            "thought": self.thought,
            "action": self.action,
            "action_params": self.action_params,
            "observation": self.observation,
        }
        return {key: value for key, value in data.items() if value is not None}
