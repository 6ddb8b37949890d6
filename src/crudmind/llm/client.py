"""LLM client protocol and data types."""

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class ToolCall:
    """A tool call requested by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    """A message in the conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str | None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None  # For tool response messages
    name: str | None = None  # Tool name for tool response messages


@dataclass
class CompletionResponse:
    """Response from the LLM: either a text answer or one or more tool calls.

    When tool calls are present, ``content`` holds the model's stated
    reasoning for them (may be empty).
    """

    content: str
    tool_calls: list[ToolCall] | None = None
    finish_reason: str = "stop"

    @property
    def is_tool_call(self) -> bool:
        return bool(self.tool_calls)

    @property
    def is_text(self) -> bool:
        return not self.tool_calls

    @property
    def thought(self) -> str:
        return self.content if self.tool_calls else ""


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    async def chat_with_tools(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict[str, Any]],
    ) -> CompletionResponse:
        """Ask the LLM for the next action or a final answer.

        Args:
            system_prompt: System context (rules, schema, user)
            messages: Conversation history plus tool-calling transcript
            tools: Tool definitions in OpenAI function format; an empty
                list forces a text response

        Returns:
            CompletionResponse with text or parallel tool calls
        """
        ...
