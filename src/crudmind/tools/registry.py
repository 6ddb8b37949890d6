"""Tool registration and dispatch."""

import logging
from collections.abc import Iterable
from typing import Any

from crudmind.tools.base import Tool, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-to-tool mapping the agent uses to describe and dispatch tools."""

    def __init__(self, tools: Iterable[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        if tools:
            self.register_all(tools)

    def register(self, tool_obj: Tool) -> "ToolRegistry":
        """Register a tool. A later registration with the same name wins."""
        if not isinstance(tool_obj, Tool):
            raise TypeError(f"Expected Tool, got {type(tool_obj).__name__}")
        if tool_obj.name in self._tools:
            logger.debug("Replacing registered tool '%s'", tool_obj.name)
        self._tools[tool_obj.name] = tool_obj
        return self

    def register_all(self, tools: Iterable[Tool]) -> "ToolRegistry":
        for tool_obj in tools:
            self.register(tool_obj)
        return self

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def all(self) -> dict[str, Tool]:
        return dict(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def to_function_definitions(self) -> list[dict[str, Any]]:
        """Tool definitions in OpenAI function calling format, in registration order."""
        return [tool_obj.schema.to_openai_format() for tool_obj in self._tools.values()]

    async def execute(self, name: str, params: dict[str, Any]) -> ToolResult:
        """Execute a tool by name.

        Never raises: unknown tools and tool faults become failure results
        so the agent can report them back to the LLM.

        Args:
            name: Tool name
            params: Tool parameters

        Returns:
            Tool result
        """
        tool_obj = self.get(name)
        if tool_obj is None:
            return ToolResult.fail(f"Unknown tool: {name}")

        try:
            return await tool_obj.execute(params)
        except Exception as e:
            logger.warning("Tool '%s' raised: %s", name, e)
            return ToolResult.fail(f"Tool execution failed: {e}")
