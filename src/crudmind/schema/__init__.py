"""Database schema models and discovery."""

from crudmind.schema.discovery import discover_sqlite_schema
from crudmind.schema.models import (
    ActionType,
    ColumnSchema,
    ColumnType,
    DatabaseSchema,
    RelationSchema,
    RelationType,
    TableSchema,
)

__all__ = [
    "ActionType",
    "ColumnSchema",
    "ColumnType",
    "DatabaseSchema",
    "RelationSchema",
    "RelationType",
    "TableSchema",
    "discover_sqlite_schema",
]
