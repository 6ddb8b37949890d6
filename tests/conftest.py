"""Pytest configuration and shared fixtures."""

import sqlite3
from pathlib import Path
from typing import Any

import pytest

from crudmind.config.schema import CrudmindConfig
from crudmind.db.executor import SQLiteExecutor
from crudmind.llm.client import CompletionResponse, Message
from crudmind.schema.discovery import discover_sqlite_schema
from crudmind.schema.models import DatabaseSchema
from crudmind.tools.base import Tool, ToolParameter, ToolResult, ToolSchema
from crudmind.tools.crud import build_crud_tools
from crudmind.tools.registry import ToolRegistry


class ScriptedLLM:
    """LLM client returning predefined responses in order.

    Records every call. When no tools are offered, tool calls in the
    scripted response are dropped, as a real model would have to answer.
    """

    def __init__(self, responses: list[CompletionResponse | Exception]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def chat_with_tools(
        self,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict[str, Any]],
    ) -> CompletionResponse:
        self.calls.append(
            {"system_prompt": system_prompt, "messages": list(messages), "tools": list(tools)}
        )
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response

        if not tools and response.tool_calls:
            return CompletionResponse(content=response.content or "Final answer without tools.")
        return response


@pytest.fixture
def make_llm():
    """Factory for scripted LLM clients."""
    return ScriptedLLM


@pytest.fixture
def default_config() -> CrudmindConfig:
    """Provide a default configuration for tests."""
    return CrudmindConfig()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite database with customers and orders."""
    path = tmp_path / "shop.db"
    with sqlite3.connect(path) as conn:
        conn.executescript(
            """
            CREATE TABLE customers (
                id INTEGER PRIMARY KEY,
                name VARCHAR(100) NOT NULL,
                email TEXT,
                active BOOLEAN NOT NULL DEFAULT 1
            );
            CREATE TABLE orders (
                id INTEGER PRIMARY KEY,
                customer_id INTEGER NOT NULL REFERENCES customers(id),
                total DECIMAL(10, 2) NOT NULL,
                status VARCHAR(20) NOT NULL,
                created_at DATETIME
            );
            CREATE TABLE audit_log (
                id INTEGER PRIMARY KEY,
                message TEXT NOT NULL
            );
            INSERT INTO customers (name, email, active) VALUES
                ('Alice', 'alice@example.com', 1),
                ('Bob', 'bob@example.com', 1),
                ('Carol', NULL, 0);
            INSERT INTO orders (customer_id, total, status, created_at) VALUES
                (1, 120.0, 'paid', '2024-01-05 10:00:00'),
                (1, 80.0, 'pending', '2024-01-06 11:00:00'),
                (2, 40.0, 'paid', '2024-01-07 12:00:00');
            INSERT INTO audit_log (message) VALUES ('created');
            """
        )
    return path


@pytest.fixture
def shop_schema(db_path: Path) -> DatabaseSchema:
    return discover_sqlite_schema(db_path, read_only_tables=["audit_log"])


@pytest.fixture
def executor(db_path: Path, shop_schema: DatabaseSchema) -> SQLiteExecutor:
    return SQLiteExecutor(db_path, shop_schema)


@pytest.fixture
def crud_registry(executor: SQLiteExecutor, shop_schema: DatabaseSchema) -> ToolRegistry:
    return ToolRegistry(build_crud_tools(executor, shop_schema))


@pytest.fixture
def fake_registry() -> ToolRegistry:
    """Registry with a read tool, a failing tool and a write tool, all recording calls."""
    executed: list[tuple[str, dict[str, Any]]] = []

    async def count_records(table: str) -> ToolResult:
        executed.append(("count_records", {"table": table}))
        return ToolResult.ok(f"{table}: 3", {"count": 3})

    async def broken(table: str) -> ToolResult:
        executed.append(("broken", {"table": table}))
        raise RuntimeError("disk on fire")

    async def delete_record(table: str, where: dict) -> ToolResult:
        executed.append(("delete_record", {"table": table, "where": where}))
        return ToolResult.ok("Deleted 1 record(s).")

    async def create_record(table: str, data: dict) -> ToolResult:
        executed.append(("create_record", {"table": table, "data": data}))
        return ToolResult.fail("Columns not writable")

    table = ToolParameter(name="table", type="string", description="Table name")
    registry = ToolRegistry(
        [
            Tool(ToolSchema("count_records", "Count rows", [table]), count_records),
            Tool(ToolSchema("broken", "Always raises", [table]), broken),
            Tool(
                ToolSchema(
                    "delete_record",
                    "Delete rows",
                    [table, ToolParameter(name="where", type="object", description="Conditions")],
                    requires_confirmation=True,
                ),
                delete_record,
            ),
            Tool(
                ToolSchema(
                    "create_record",
                    "Insert a row",
                    [table, ToolParameter(name="data", type="object", description="Values")],
                    requires_confirmation=True,
                ),
                create_record,
            ),
        ]
    )
    registry.executed = executed  # type: ignore[attr-defined]
    return registry
