"""Pydantic models describing the database the agent works on."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ActionType(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ColumnType(str, Enum):
    """Column data types normalized across databases."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    JSON = "json"
    ENUM = "enum"
    BINARY = "binary"
    UUID = "uuid"
    UNKNOWN = "unknown"


class RelationType(str, Enum):
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"
    BELONGS_TO_MANY = "belongs_to_many"


class ColumnSchema(BaseModel):
    """A single column."""

    name: str
    type: ColumnType = ColumnType.UNKNOWN
    nullable: bool = False
    is_primary: bool = False
    default: Any = None
    max_length: int | None = None
    enum_values: list[str] = Field(default_factory=list)


class RelationSchema(BaseModel):
    """A relationship between two tables."""

    name: str
    type: RelationType
    related_table: str
    foreign_key: str
    local_key: str | None = None


class TableSchema(BaseModel):
    """A table with its columns, relations and permitted actions."""

    name: str
    label: str | None = None
    columns: list[ColumnSchema] = Field(default_factory=list)
    relations: list[RelationSchema] = Field(default_factory=list)
    allowed_actions: list[ActionType] = Field(default_factory=lambda: list(ActionType))
    fillable: list[str] = Field(default_factory=list)
    guarded: list[str] = Field(default_factory=list)

    def is_action_allowed(self, action: ActionType) -> bool:
        return action in self.allowed_actions

    def column(self, name: str) -> ColumnSchema | None:
        return next((col for col in self.columns if col.name == name), None)

    @property
    def primary_key(self) -> str | None:
        return next((col.name for col in self.columns if col.is_primary), None)

    def writable_columns(self) -> list[ColumnSchema]:
        """Columns that can be written: non-primary, fillable (if set), not guarded."""
        return [
            col
            for col in self.columns
            if not col.is_primary
            and (not self.fillable or col.name in self.fillable)
            and col.name not in self.guarded
        ]


class DatabaseSchema(BaseModel):
    """Complete picture of the database sent to the LLM as context."""

    tables: list[TableSchema] = Field(default_factory=list)

    def find_table(self, name: str) -> TableSchema | None:
        return next((table for table in self.tables if table.name == name), None)

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]

    def to_prompt_context(self) -> str:
        """Compact text summary for the system prompt."""
        lines = ["DATABASE SCHEMA:"]

        for table in self.tables:
            actions = ", ".join(action.value for action in table.allowed_actions)
            lines.append(f"\n## {table.label or table.name} (table: {table.name}) [actions: {actions}]")

            for col in table.columns:
                flags = []
                if col.is_primary:
                    flags.append("PK")
                if col.nullable:
                    flags.append("nullable")
                if col.max_length:
                    flags.append(f"max:{col.max_length}")
                if col.enum_values:
                    flags.append("values:" + "|".join(col.enum_values))
                flag_str = f" ({', '.join(flags)})" if flags else ""
                lines.append(f"  - {col.name}: {col.type.value}{flag_str}")

            if table.relations:
                lines.append("  Relations:")
                for rel in table.relations:
                    lines.append(f"    - {rel.name} -> {rel.related_table} ({rel.type.value})")

        return "\n".join(lines)
