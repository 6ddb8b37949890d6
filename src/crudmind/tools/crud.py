"""Built-in database tools.

Read tools run immediately. Write tools (create/update/delete) declare
``requires_confirmation`` so the agent defers them until the user approves.
Every tool checks the caller's :class:`SecurityContext` before touching
the executor.
"""

import logging
from typing import Any

from crudmind.db.executor import AGGREGATE_FUNCTIONS, ActionExecutor, ExecutorError
from crudmind.schema.models import ActionType, DatabaseSchema
from crudmind.security.context import SecurityContext
from crudmind.tools.base import Tool, ToolParameter, ToolResult, ToolSchema

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 5


def build_crud_tools(
    executor: ActionExecutor,
    schema: DatabaseSchema,
    security: SecurityContext | None = None,
) -> list[Tool]:
    """Create the database tools bound to an executor.

    Args:
        executor: Runs the resolved actions
        schema: Schema the tools describe and validate against
        security: Caller permissions (None allows everything)

    Returns:
        Tools in the order they are offered to the LLM
    """
    security = security or SecurityContext()
    table_names = schema.table_names

    def table_param() -> ToolParameter:
        return ToolParameter(
            name="table",
            type="string",
            description="Table name",
            enum=table_names or None,
        )

    where_param = ToolParameter(
        name="where",
        type="object",
        description=(
            "Conditions as {column: value}. Use a list for IN, or "
            '{column: {"op": value}} with op one of =, !=, >, >=, <, <=, like, in'
        ),
        required=False,
    )

    def denied(table: str, action: ActionType) -> ToolResult | None:
        table_schema = schema.find_table(table)
        if table_schema is None:
            return ToolResult.fail(f"Unknown table: {table}")
        if not table_schema.is_action_allowed(action):
            return ToolResult.fail(f"Action '{action.value}' is not allowed on table '{table}'")
        if not security.can(table, action.value):
            logger.info("Denied %s on %s for role %s", action.value, table, security.user_role)
            return ToolResult.fail(f"Permission denied: cannot {action.value} '{table}'")
        return None

    async def search_records(
        table: str,
        where: dict[str, Any] | None = None,
        select: list[str] | None = None,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> ToolResult:
        if error := denied(table, ActionType.READ):
            return error
        result = await executor.execute(
            table, ActionType.READ, where=where, select=select, limit=limit, order_by=order_by
        )
        if not result.success:
            return ToolResult.fail(result.message)
        return ToolResult.ok(result.message, result.data)

    async def count_records(table: str, where: dict[str, Any] | None = None) -> ToolResult:
        if error := denied(table, ActionType.READ):
            return error
        try:
            total = await executor.count(table, where)
        except ExecutorError as e:
            return ToolResult.fail(str(e))
        return ToolResult.ok(f"{total} record(s) in {table}.", {"count": total})

    async def get_sample_data(table: str) -> ToolResult:
        if error := denied(table, ActionType.READ):
            return error
        result = await executor.execute(table, ActionType.READ, limit=SAMPLE_SIZE)
        if not result.success:
            return ToolResult.fail(result.message)
        return ToolResult.ok(f"Sample rows from {table}.", result.data)

    async def aggregate(
        table: str,
        function: str,
        column: str | None = None,
        where: dict[str, Any] | None = None,
        group_by: str | None = None,
    ) -> ToolResult:
        if error := denied(table, ActionType.READ):
            return error
        try:
            rows = await executor.aggregate(table, function, column, where, group_by)
        except ExecutorError as e:
            return ToolResult.fail(str(e))
        label = f"{function.upper()}({column or '*'})"
        if group_by:
            label += f" grouped by {group_by}"
        return ToolResult.ok(f"{label} on {table}.", rows)

    async def create_record(table: str, data: dict[str, Any]) -> ToolResult:
        if error := denied(table, ActionType.CREATE):
            return error
        result = await executor.execute(table, ActionType.CREATE, data=data)
        if not result.success:
            return ToolResult.fail(result.message)
        return ToolResult.ok(result.message, result.data, {"affected": result.affected})

    async def update_record(table: str, data: dict[str, Any], where: dict[str, Any]) -> ToolResult:
        if error := denied(table, ActionType.UPDATE):
            return error
        result = await executor.execute(table, ActionType.UPDATE, data=data, where=where)
        if not result.success:
            return ToolResult.fail(result.message)
        return ToolResult.ok(result.message, result.data, {"affected": result.affected})

    async def delete_record(table: str, where: dict[str, Any]) -> ToolResult:
        if error := denied(table, ActionType.DELETE):
            return error
        result = await executor.execute(table, ActionType.DELETE, where=where)
        if not result.success:
            return ToolResult.fail(result.message)
        return ToolResult.ok(result.message, metadata={"affected": result.affected})

    data_param = ToolParameter(name="data", type="object", description="Column values to write")

    return [
        Tool(
            schema=ToolSchema(
                name="search_records",
                description="Find records in a table matching optional conditions",
                parameters=[
                    table_param(),
                    where_param,
                    ToolParameter(
                        name="select",
                        type="array",
                        description="Columns to return (all when omitted)",
                        required=False,
                        items={"type": "string"},
                    ),
                    ToolParameter(
                        name="limit",
                        type="integer",
                        description="Maximum rows to return (default 50)",
                        required=False,
                    ),
                    ToolParameter(
                        name="order_by",
                        type="string",
                        description="Column to sort by; prefix with '-' for descending",
                        required=False,
                    ),
                ],
            ),
            fn=search_records,
        ),
        Tool(
            schema=ToolSchema(
                name="count_records",
                description="Count records in a table matching optional conditions",
                parameters=[table_param(), where_param],
            ),
            fn=count_records,
        ),
        Tool(
            schema=ToolSchema(
                name="get_sample_data",
                description="Show a few rows of a table to learn what its values look like",
                parameters=[table_param()],
            ),
            fn=get_sample_data,
        ),
        Tool(
            schema=ToolSchema(
                name="aggregate",
                description="Compute count, sum, avg, min or max over a column, optionally grouped",
                parameters=[
                    table_param(),
                    ToolParameter(
                        name="function",
                        type="string",
                        description="Aggregate function",
                        enum=list(AGGREGATE_FUNCTIONS),
                    ),
                    ToolParameter(
                        name="column",
                        type="string",
                        description="Column to aggregate (optional for count)",
                        required=False,
                    ),
                    where_param,
                    ToolParameter(
                        name="group_by",
                        type="string",
                        description="Column to group results by",
                        required=False,
                    ),
                ],
            ),
            fn=aggregate,
        ),
        Tool(
            schema=ToolSchema(
                name="create_record",
                description="Insert a new record. Requires user confirmation.",
                parameters=[table_param(), data_param],
                requires_confirmation=True,
            ),
            fn=create_record,
        ),
        Tool(
            schema=ToolSchema(
                name="update_record",
                description="Update records matching conditions. Requires user confirmation.",
                parameters=[
                    table_param(),
                    data_param,
                    ToolParameter(name="where", type="object", description="Conditions selecting rows"),
                ],
                requires_confirmation=True,
            ),
            fn=update_record,
        ),
        Tool(
            schema=ToolSchema(
                name="delete_record",
                description="Delete records matching conditions. Requires user confirmation.",
                parameters=[
                    table_param(),
                    ToolParameter(name="where", type="object", description="Conditions selecting rows"),
                ],
                requires_confirmation=True,
            ),
            fn=delete_record,
        ),
    ]
