"""Execution state for one agent run.

The state is a plain serializable value: it is persisted by the
conversation store while a write awaits confirmation and reloaded to
resume. Status transitions::

    running -> completed | failed | needs_confirmation
    needs_confirmation -> running   (on confirm / reject)
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from crudmind.agent.step import AgentStep
from crudmind.llm.client import Message, ToolCall


class AgentStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    NEEDS_CONFIRMATION = "needs_confirmation"


class InvalidTransitionError(RuntimeError):
    """Raised when a status change is not allowed from the current status."""


class ToolCallRecord(BaseModel):
    id: str
    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class TranscriptEntry(BaseModel):
    """One entry of the tool-calling transcript replayed to the LLM."""

    role: Literal["assistant", "tool_result"]
    content: str | None = None
    tool_call: ToolCallRecord | None = None  # assistant entries
    tool_call_id: str | None = None  # tool_result entries


class PendingAction(BaseModel):
    """A deferred write awaiting user confirmation."""

    tool_name: str
    params: dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    tool_call_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.tool_name,
            "params": self.params,
            "description": self.description,
            "tool_call_id": self.tool_call_id,
        }


class AgentState(BaseModel):
    """Step history, transcript and outcome of a single run."""

    user_message: str
    max_steps: int = Field(default=10, ge=1)
    steps: list[AgentStep] = Field(default_factory=list)
    transcript: list[TranscriptEntry] = Field(default_factory=list)
    status: AgentStatus = AgentStatus.RUNNING
    final_answer: str | None = None
    pending_action: PendingAction | None = None

    # -- budget -----------------------------------------------------------

    def extend_max_steps(self, extra: int) -> None:
        """Grant extra steps. The budget only ever grows."""
        if extra < 0:
            raise ValueError("Step budget can only be extended")
        self.max_steps += extra

    @property
    def steps_taken(self) -> int:
        return len(self.steps)

    @property
    def steps_remaining(self) -> int:
        return self.max_steps - len(self.steps)

    @property
    def current_step_number(self) -> int:
        return len(self.steps) + 1

    def is_max_steps_reached(self) -> bool:
        return len(self.steps) >= self.max_steps

    # -- steps ------------------------------------------------------------

    def add_step(self, step: AgentStep) -> None:
        self.steps.append(step)

    @property
    def last_step(self) -> AgentStep | None:
        return self.steps[-1] if self.steps else None

    def replace_last_step(self, step: AgentStep) -> None:
        if self.steps:
            self.steps[-1] = step
        else:
            self.steps.append(step)

    # -- transcript -------------------------------------------------------

    def add_tool_call(
        self,
        tool_call_id: str,
        tool_name: str,
        params: dict[str, Any],
        thought: str | None = None,
    ) -> None:
        self.transcript.append(
            TranscriptEntry(
                role="assistant",
                content=thought,
                tool_call=ToolCallRecord(id=tool_call_id, name=tool_name, params=params),
            )
        )

    def add_tool_result(self, tool_call_id: str, content: str) -> None:
        self.transcript.append(
            TranscriptEntry(role="tool_result", tool_call_id=tool_call_id, content=content)
        )

    def replace_tool_result(self, tool_call_id: str, content: str) -> None:
        """Overwrite the result for ``tool_call_id`` in place, appending only if absent."""
        for entry in self.transcript:
            if entry.role == "tool_result" and entry.tool_call_id == tool_call_id:
                entry.content = content
                return
        self.add_tool_result(tool_call_id, content)

    def to_messages(self) -> list[Message]:
        """Replay the transcript as LLM messages.

        Consecutive assistant entries form one assistant turn carrying the
        whole batch of tool calls; the first non-empty thought is its text.
        """
        messages: list[Message] = []
        batch: list[TranscriptEntry] = []

        def flush() -> None:
            if not batch:
                return
            thought = next((entry.content for entry in batch if entry.content), None)
            messages.append(
                Message(
                    role="assistant",
                    content=thought,
                    tool_calls=[
                        ToolCall(
                            id=entry.tool_call.id,
                            name=entry.tool_call.name,
                            arguments=entry.tool_call.params,
                        )
                        for entry in batch
                        if entry.tool_call is not None
                    ],
                )
            )
            batch.clear()

        for entry in self.transcript:
            if entry.role == "assistant":
                batch.append(entry)
                continue
            flush()
            messages.append(
                Message(role="tool", content=entry.content or "", tool_call_id=entry.tool_call_id)
            )
        flush()

        return messages

    def unbalanced_tool_calls(self) -> list[str]:
        """Ids of tool calls lacking exactly one result entry."""
        counts: dict[str, int] = {}
        for entry in self.transcript:
            if entry.role == "tool_result" and entry.tool_call_id:
                counts[entry.tool_call_id] = counts.get(entry.tool_call_id, 0) + 1
        return [
            entry.tool_call.id
            for entry in self.transcript
            if entry.role == "assistant"
            and entry.tool_call is not None
            and counts.get(entry.tool_call.id, 0) != 1
        ]

    # -- status -----------------------------------------------------------

    def complete(self, answer: str) -> None:
        if self.status is not AgentStatus.RUNNING:
            raise InvalidTransitionError(f"Cannot complete a run in status '{self.status.value}'")
        self.status = AgentStatus.COMPLETED
        self.final_answer = answer

    def fail(self, reason: str) -> None:
        """Mark the run failed. Allowed from any status; used for protocol violations too."""
        self.status = AgentStatus.FAILED
        self.final_answer = reason

    def request_confirmation(
        self,
        tool_name: str,
        params: dict[str, Any],
        description: str,
        tool_call_id: str | None = None,
    ) -> None:
        if self.status is not AgentStatus.RUNNING:
            raise InvalidTransitionError(
                f"Cannot request confirmation in status '{self.status.value}'"
            )
        self.status = AgentStatus.NEEDS_CONFIRMATION
        self.pending_action = PendingAction(
            tool_name=tool_name,
            params=params,
            description=description,
            tool_call_id=tool_call_id,
        )

    def clear_pending_action(self) -> None:
        """Drop the pending action and resume running."""
        if self.status is not AgentStatus.NEEDS_CONFIRMATION:
            raise InvalidTransitionError("No pending action to clear")
        self.pending_action = None
        self.status = AgentStatus.RUNNING

    @property
    def is_running(self) -> bool:
        return self.status is AgentStatus.RUNNING

    @property
    def is_completed(self) -> bool:
        return self.status is AgentStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status is AgentStatus.FAILED

    @property
    def needs_confirmation(self) -> bool:
        return self.status is AgentStatus.NEEDS_CONFIRMATION

    @property
    def error(self) -> str | None:
        return self.final_answer if self.is_failed else None

    def to_dict(self) -> dict[str, Any]:
        """API representation."""
        return {
            "status": self.status.value,
            "steps": [step.to_dict() for step in self.steps],
            "final_answer": self.final_answer,
            "pending_action": self.pending_action.to_dict() if self.pending_action else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], user_message: str = "", max_steps: int | None = None) -> "AgentState":
        """Rebuild a state from :meth:`to_dict` output.

        The API form carries no transcript, so only status, steps, answer
        and pending action come back.
        """
        steps = [
            AgentStep(
                index=raw["step"],
                thought=raw.get("thought"),
                action=raw.get("action"),
                action_params=raw.get("action_params"),
                observation=raw.get("observation"),
            )
            for raw in data.get("steps", [])
        ]
        pending = data.get("pending_action")
        return cls(
            user_message=user_message,
            max_steps=max(max_steps or len(steps), len(steps), 1),
            steps=steps,
            status=AgentStatus(data["status"]),
            final_answer=data.get("final_answer"),
            pending_action=PendingAction(
                tool_name=pending["action"],
                params=pending.get("params") or {},
                description=pending.get("description") or "",
                tool_call_id=pending.get("tool_call_id"),
            )
            if pending
            else None,
        )
