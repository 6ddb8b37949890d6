"""Tools the agent can call.

A tool declares a name, description, structured parameter schema and
whether it requires user confirmation. The registry turns tools into
function definitions for the LLM and dispatches calls by name; tool
failures are converted to failure results instead of propagating.

Built-in database tools live in :mod:`crudmind.tools.crud`:

- **search_records** / **count_records** / **get_sample_data** / **aggregate** - read-only
- **create_record** / **update_record** / **delete_record** - require confirmation
"""

from crudmind.tools.base import Tool, ToolParameter, ToolResult, ToolSchema
from crudmind.tools.registry import ToolRegistry

__all__ = ["Tool", "ToolParameter", "ToolRegistry", "ToolResult", "ToolSchema"]
