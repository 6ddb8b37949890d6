"""Execution of resolved CRUD actions against a database."""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from crudmind.schema.models import ActionType, DatabaseSchema, TableSchema

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = {
    "=": "=",
    "!=": "!=",
    ">": ">",
    ">=": ">=",
    "<": "<",
    "<=": "<=",
    "like": "LIKE",
    "in": "IN",
}
AGGREGATE_FUNCTIONS = ("count", "sum", "avg", "min", "max")
DEFAULT_LIMIT = 50


class ExecutorError(ValueError):
    """Raised for actions the executor refuses (unknown table/column, bad operator)."""


@dataclass
class ActionResult:
    """Result of an executed database action."""

    success: bool
    message: str
    data: list[dict[str, Any]] | dict[str, Any] = field(default_factory=list)
    affected: int | None = None

    @classmethod
    def ok(cls, message: str, data: Any = None, affected: int | None = None) -> "ActionResult":
        return cls(success=True, message=message, data=data if data is not None else [], affected=affected)

    @classmethod
    def fail(cls, message: str) -> "ActionResult":
        return cls(success=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "affected": self.affected,
        }


class ActionExecutor(Protocol):
    """Runs CRUD operations for the built-in tools."""

    async def execute(
        self,
        table: str,
        action: ActionType,
        data: dict[str, Any] | None = None,
        where: dict[str, Any] | None = None,
        select: list[str] | None = None,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> ActionResult: ...

    async def count(self, table: str, where: dict[str, Any] | None = None) -> int: ...

    async def aggregate(
        self,
        table: str,
        function: str,
        column: str | None = None,
        where: dict[str, Any] | None = None,
        group_by: str | None = None,
    ) -> list[dict[str, Any]]: ...


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SQLiteExecutor:
    """ActionExecutor for SQLite. Identifiers are checked against the schema."""

    def __init__(self, db_path: str | Path, schema: DatabaseSchema):
        """Initialize the executor.

        Args:
            db_path: Path to the SQLite database
            schema: Schema used to validate table and column names
        """
        self.db_path = Path(db_path)
        self.schema = schema

    # -- validation -------------------------------------------------------

    def _table(self, name: str) -> TableSchema:
        table = self.schema.find_table(name)
        if table is None:
            raise ExecutorError(f"Unknown table: {name}")
        return table

    def _column(self, table: TableSchema, name: str) -> str:
        if table.column(name) is None:
            raise ExecutorError(f"Unknown column '{name}' on table '{table.name}'")
        return _quote(name)

    def _where_clause(self, table: TableSchema, where: dict[str, Any] | None) -> tuple[str, list[Any]]:
        """Build a WHERE clause.

        Values may be scalars (equality), lists (IN) or ``{operator: value}``
        mappings using the operators in ``COMPARISON_OPERATORS``.
        """
        if not where:
            return "", []

        clauses: list[str] = []
        params: list[Any] = []

        for name, condition in where.items():
            column = self._column(table, name)
            if isinstance(condition, dict):
                items = list(condition.items())
            elif isinstance(condition, list):
                items = [("in", condition)]
            elif condition is None:
                clauses.append(f"{column} IS NULL")
                continue
            else:
                items = [("=", condition)]

            for op, value in items:
                sql_op = COMPARISON_OPERATORS.get(str(op).lower())
                if sql_op is None:
                    raise ExecutorError(f"Unsupported operator '{op}' on column '{name}'")
                if sql_op == "IN":
                    values = list(value) if isinstance(value, (list, tuple)) else [value]
                    if not values:
                        clauses.append("0")
                        continue
                    clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
                    params.extend(values)
                else:
                    clauses.append(f"{column} {sql_op} ?")
                    params.append(value)

        return " WHERE " + " AND ".join(clauses), params

    # -- execution --------------------------------------------------------

    def _run(self, sql: str, params: list[Any], write: bool = False) -> tuple[list[dict[str, Any]], int, int | None]:
        logger.debug("SQL: %s %s", sql, params)
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(sql, params)
            rows = [dict(row) for row in cursor.fetchall()] if not write else []
            if write:
                conn.commit()
            return rows, cursor.rowcount, cursor.lastrowid

    async def execute(
        self,
        table: str,
        action: ActionType,
        data: dict[str, Any] | None = None,
        where: dict[str, Any] | None = None,
        select: list[str] | None = None,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> ActionResult:
        """Run one CRUD action.

        UPDATE and DELETE refuse to run without conditions.
        """
        try:
            schema = self._table(table)
            if not schema.is_action_allowed(action):
                return ActionResult.fail(f"Action '{action.value}' is not allowed on table '{table}'")

            if action is ActionType.READ:
                return await asyncio.to_thread(self._read, schema, where, select, limit, order_by)
            if action is ActionType.CREATE:
                return await asyncio.to_thread(self._create, schema, data or {})
            if action is ActionType.UPDATE:
                return await asyncio.to_thread(self._update, schema, data or {}, where)
            return await asyncio.to_thread(self._delete, schema, where)
        except ExecutorError as e:
            return ActionResult.fail(str(e))
        except sqlite3.Error as e:
            logger.warning("SQLite error on %s %s: %s", action.value, table, e)
            return ActionResult.fail(f"Database error: {e}")

    def _read(
        self,
        table: TableSchema,
        where: dict[str, Any] | None,
        select: list[str] | None,
        limit: int | None,
        order_by: str | None,
    ) -> ActionResult:
        columns = ", ".join(self._column(table, name) for name in select) if select else "*"
        clause, params = self._where_clause(table, where)
        sql = f"SELECT {columns} FROM {_quote(table.name)}{clause}"
        if order_by:
            descending = order_by.startswith("-")
            sql += f" ORDER BY {self._column(table, order_by.lstrip('-'))}{' DESC' if descending else ''}"
        sql += " LIMIT ?"
        params.append(limit or DEFAULT_LIMIT)

        rows, _, _ = self._run(sql, params)
        return ActionResult.ok(f"Found {len(rows)} record(s) in {table.name}.", rows, affected=len(rows))

    def _create(self, table: TableSchema, data: dict[str, Any]) -> ActionResult:
        if not data:
            raise ExecutorError("No data given for create")
        writable = {col.name for col in table.writable_columns()}
        rejected = [name for name in data if name not in writable]
        if rejected:
            raise ExecutorError(f"Columns not writable on '{table.name}': {', '.join(rejected)}")

        columns = ", ".join(_quote(name) for name in data)
        placeholders = ", ".join("?" for _ in data)
        sql = f"INSERT INTO {_quote(table.name)} ({columns}) VALUES ({placeholders})"
        _, _, row_id = self._run(sql, list(data.values()), write=True)

        record = dict(data)
        if table.primary_key and row_id is not None:
            record[table.primary_key] = row_id
        return ActionResult.ok(f"Created 1 record in {table.name}.", record, affected=1)

    def _update(self, table: TableSchema, data: dict[str, Any], where: dict[str, Any] | None) -> ActionResult:
        if not data:
            raise ExecutorError("No data given for update")
        if not where:
            raise ExecutorError("Refusing to update without conditions")
        writable = {col.name for col in table.writable_columns()}
        rejected = [name for name in data if name not in writable]
        if rejected:
            raise ExecutorError(f"Columns not writable on '{table.name}': {', '.join(rejected)}")

        assignments = ", ".join(f"{_quote(name)} = ?" for name in data)
        clause, params = self._where_clause(table, where)
        sql = f"UPDATE {_quote(table.name)} SET {assignments}{clause}"
        _, affected, _ = self._run(sql, list(data.values()) + params, write=True)
        return ActionResult.ok(f"Updated {affected} record(s) in {table.name}.", data, affected=affected)

    def _delete(self, table: TableSchema, where: dict[str, Any] | None) -> ActionResult:
        if not where:
            raise ExecutorError("Refusing to delete without conditions")
        clause, params = self._where_clause(table, where)
        _, affected, _ = self._run(f"DELETE FROM {_quote(table.name)}{clause}", params, write=True)
        return ActionResult.ok(f"Deleted {affected} record(s) from {table.name}.", affected=affected)

    async def count(self, table: str, where: dict[str, Any] | None = None) -> int:
        schema = self._table(table)
        clause, params = self._where_clause(schema, where)
        rows, _, _ = await asyncio.to_thread(
            self._run, f"SELECT COUNT(*) AS total FROM {_quote(schema.name)}{clause}", params
        )
        return int(rows[0]["total"])

    async def aggregate(
        self,
        table: str,
        function: str,
        column: str | None = None,
        where: dict[str, Any] | None = None,
        group_by: str | None = None,
    ) -> list[dict[str, Any]]:
        function = function.lower()
        if function not in AGGREGATE_FUNCTIONS:
            raise ExecutorError(f"Unsupported aggregate function: {function}")
        schema = self._table(table)
        if column is None and function != "count":
            raise ExecutorError(f"Aggregate '{function}' needs a column")

        target = self._column(schema, column) if column else "*"
        select = f"{function.upper()}({target}) AS value"
        if group_by:
            group_column = self._column(schema, group_by)
            select = f"{group_column} AS {_quote(group_by)}, {select}"

        clause, params = self._where_clause(schema, where)
        sql = f"SELECT {select} FROM {_quote(schema.name)}{clause}"
        if group_by:
            sql += f" GROUP BY {group_column} ORDER BY value DESC"

        rows, _, _ = await asyncio.to_thread(self._run, sql, params)
        return rows
