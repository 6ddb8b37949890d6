"""Base types for the tool system."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

JSON_SCHEMA_TYPES = frozenset({"string", "integer", "number", "boolean", "array", "object", "null"})


class ToolSchemaError(ValueError):
    """Raised when a tool schema is malformed."""


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    type: str  # JSON Schema type
    description: str
    required: bool = True
    enum: list[str] | None = None
    items: dict[str, Any] | None = None  # Element schema for array parameters

    def __post_init__(self) -> None:
        if not self.name:
            raise ToolSchemaError("Parameter name must not be empty")
        if self.type not in JSON_SCHEMA_TYPES:
            raise ToolSchemaError(f"Unsupported type '{self.type}' for parameter '{self.name}'")

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.enum:
            schema["enum"] = self.enum
        if self.items and self.type == "array":
            schema["items"] = self.items
        return schema


@dataclass
class ToolSchema:
    """JSON Schema representation of a tool for LLM function calling."""

    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)
    requires_confirmation: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ToolSchemaError("Tool name must not be empty")
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ToolSchemaError(f"Duplicate parameter '{param.name}' in tool '{self.name}'")
            seen.add(param.name)

    def parameter_schema(self) -> dict[str, Any]:
        """Build the JSON Schema object describing the parameters.

        Returns:
            Dictionary with ``type``, ``properties`` and ``required`` keys
        """
        return {
            "type": "object",
            "properties": {param.name: param.to_json_schema() for param in self.parameters},
            "required": [param.name for param in self.parameters if param.required],
        }

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format.

        Returns:
            Dictionary matching OpenAI's function schema format
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema(),
            },
        }


@dataclass
class ToolResult:
    """Outcome of a tool execution. This is what the agent observes."""

    success: bool
    message: str
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, data: Any = None, metadata: dict[str, Any] | None = None) -> "ToolResult":
        return cls(success=True, message=message, data=data, metadata=metadata or {})

    @classmethod
    def fail(cls, error: str, metadata: dict[str, Any] | None = None) -> "ToolResult":
        return cls(success=False, message=error, error=error, metadata=metadata or {})

    def to_observation(self) -> str:
        """Render the result as the text block shown to the LLM.

        Failures render as ``Error: <error>``. Successes render the message
        followed by the data, pretty-printed as JSON when it is a container.
        Nothing is truncated here.
        """
        if not self.success:
            return f"Error: {self.error}"

        output = self.message
        if self.data is not None:
            if isinstance(self.data, (dict, list, tuple)):
                output += "\n" + json.dumps(self.data, ensure_ascii=False, indent=4, default=str)
            else:
                output += "\n" + str(self.data)
        return output

    def to_dict(self) -> dict[str, Any]:
        result = {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "error": self.error,
            "metadata": self.metadata or None,
        }
        return {key: value for key, value in result.items() if value is not None}


# Tool function signature: async function returning a ToolResult (or plain text)
ToolFunction = Callable[..., Awaitable["ToolResult | str"]]


@dataclass
class Tool:
    """A capability the agent can invoke by name."""

    schema: ToolSchema
    fn: ToolFunction

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def description(self) -> str:
        return self.schema.description

    @property
    def requires_confirmation(self) -> bool:
        """Whether the tool mutates data and must be approved before running."""
        return self.schema.requires_confirmation

    def parameter_schema(self) -> dict[str, Any]:
        return self.schema.parameter_schema()

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        """Execute the tool with given parameters.

        Args:
            params: Parameters matching the tool schema

        Returns:
            Tool result; plain string returns are wrapped as a success
        """
        result = await self.fn(**params)
        if isinstance(result, ToolResult):
            return result
        return ToolResult.ok(str(result))
