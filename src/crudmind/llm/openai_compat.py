"""Client for OpenAI-compatible inference servers."""

import json
import logging
from typing import Any

from openai import AsyncOpenAI

from crudmind.llm.client import CompletionResponse, Message, ToolCall

logger = logging.getLogger(__name__)


class OpenAICompatibleClient:
    """LLM client for OpenAI and any server exposing ``/v1/chat/completions``.

    OpenAI, Ollama and vLLM share this request/response shape, so the
    factory only varies the base URL and API key.
    """

    def __init__(
        self,
        model: str,
        base_url: str | None = None,
        api_key: str = "none",
        timeout: int = 120,
        temperature: float = 0.2,
    ) -> None:
        """Initialise the client.

        Args:
            model: Model name served by the backend.
            base_url: OpenAI-compatible endpoint (must include ``/v1``); None for api.openai.com.
            api_key: API key (many local backends ignore this but the SDK requires one).
            timeout: Request timeout in seconds.
            temperature: Default sampling temperature.
        """
        self.model = model
        self.temperature = temperature
        self.client = AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal Message format to OpenAI format."""
        openai_messages: list[dict[str, Any]] = []

        for msg in messages:
            message_dict: dict[str, Any] = {
                "role": msg.role,
                "content": msg.content,
            }

            if msg.tool_calls:
                message_dict["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                        },
                    }
                    for tc in msg.tool_calls
                ]

            if msg.tool_call_id:
                message_dict["tool_call_id"] = msg.tool_call_id
            if msg.name:
                message_dict["name"] = msg.name

            openai_messages.append(message_dict)

        return openai_messages

    def _parse_tool_calls(self, tool_calls: Any) -> list[ToolCall]:
        """Parse tool calls from an OpenAI-compatible response."""
        if not tool_calls:
            return []

        parsed: list[ToolCall] = []
        for tc in tool_calls:
            raw = tc.function.arguments or "{}"
            try:
                args = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Unparseable arguments for tool '%s': %r", tc.function.name, raw)
                args = {}
            parsed.append(
                ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=args if isinstance(args, dict) else {},
                )
            )
        return parsed

    async def complete(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> CompletionResponse:
        """Generate a completion.

        Args:
            messages: Conversation history.
            tools: Available tools in OpenAI function format.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens to generate.

        Returns:
            CompletionResponse with content and optional tool calls.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "messages": self._convert_messages(messages),
            "temperature": temperature if temperature is not None else self.temperature,
        }

        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        if max_tokens:
            params["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(**params)

        choice = response.choices[0]
        message = choice.message

        tool_calls = self._parse_tool_calls(message.tool_calls)

        return CompletionResponse(
            content=message.content or "",
            tool_calls=tool_calls if tool_calls else None,
            finish_reason=choice.finish_reason or "stop",
        )

    async def chat_with_tools(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict[str, Any]],
    ) -> CompletionResponse:
        """Complete with a leading system message; empty ``tools`` sends none."""
        return await self.complete(
            messages=[Message(role="system", content=system_prompt), *messages],
            tools=tools or None,
        )
