"""Anthropic Claude LLM client using httpx.

Implements the LLMClient protocol for the Anthropic Messages API with
httpx directly rather than the anthropic SDK.
"""

import logging
from typing import Any

import httpx

from crudmind.llm.client import CompletionResponse, Message, ToolCall

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = "https://api.anthropic.com"
ANTHROPIC_API_VERSION = "2023-06-01"


class AnthropicClient:
    """LLM client for the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        timeout: int = 120,
        temperature: float = 0.2,
        base_url: str = ANTHROPIC_API_URL,
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model name
            max_tokens: Default max tokens for responses
            timeout: Request timeout in seconds
            temperature: Default sampling temperature
            base_url: API root
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_API_VERSION,
                "content-type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
        )

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal messages to Anthropic format.

        Consecutive tool results are folded into a single user turn, since
        Anthropic expects all results of one tool_use batch together.
        """
        anthropic_messages: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == "assistant" and msg.tool_calls:
                content_blocks: list[dict[str, Any]] = []
                if msg.content:
                    content_blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    content_blocks.append(
                        {
                            "type": "tool_use",
                            "id": tc.id,
                            "name": tc.name,
                            "input": tc.arguments,
                        }
                    )
                anthropic_messages.append({"role": "assistant", "content": content_blocks})

            elif msg.role == "tool":
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content or "",
                }
                previous = anthropic_messages[-1] if anthropic_messages else None
                if (
                    previous
                    and previous["role"] == "user"
                    and isinstance(previous["content"], list)
                    and all(b.get("type") == "tool_result" for b in previous["content"])
                ):
                    previous["content"].append(block)
                else:
                    anthropic_messages.append({"role": "user", "content": [block]})

            else:
                anthropic_messages.append({"role": msg.role, "content": msg.content or ""})

        return anthropic_messages

    def _convert_tools(self, tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert OpenAI function format to Anthropic tool format."""
        anthropic_tools = []
        for tool in tools:
            func = tool.get("function", tool)
            anthropic_tools.append(
                {
                    "name": func["name"],
                    "description": func.get("description", ""),
                    "input_schema": func.get("parameters", {"type": "object", "properties": {}}),
                }
            )
        return anthropic_tools

    def _parse_content(self, content_blocks: list[dict[str, Any]]) -> tuple[str, list[ToolCall]]:
        """Split response content blocks into text and tool calls."""
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in content_blocks:
            if block["type"] == "text":
                text_parts.append(block["text"])
            elif block["type"] == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block["id"],
                        name=block["name"],
                        arguments=block.get("input") or {},
                    )
                )

        return "\n".join(text_parts), tool_calls

    async def chat_with_tools(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict[str, Any]],
    ) -> CompletionResponse:
        """Generate the next action or a final answer from Claude.

        Args:
            system_prompt: System prompt
            messages: Conversation history plus transcript
            tools: Tools in OpenAI function format (may be empty)

        Returns:
            CompletionResponse with content and optional tool calls
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "system": system_prompt,
            "messages": self._convert_messages(messages),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        if tools:
            payload["tools"] = self._convert_tools(tools)

        logger.debug("Anthropic request: %d messages, %d tools", len(payload["messages"]), len(tools))
        response = await self.client.post("/v1/messages", json=payload)
        response.raise_for_status()
        data = response.json()

        content_text, tool_calls = self._parse_content(data["content"])

        stop_reason = data.get("stop_reason", "end_turn")
        finish_reason = "tool_calls" if stop_reason == "tool_use" else "stop"

        return CompletionResponse(
            content=content_text,
            tool_calls=tool_calls if tool_calls else None,
            finish_reason=finish_reason,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
