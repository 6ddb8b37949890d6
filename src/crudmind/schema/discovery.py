"""Schema discovery for SQLite databases."""

import logging
import re
import sqlite3
from collections.abc import Iterable
from pathlib import Path

from crudmind.schema.models import (
    ActionType,
    ColumnSchema,
    ColumnType,
    DatabaseSchema,
    RelationSchema,
    RelationType,
    TableSchema,
)

logger = logging.getLogger(__name__)

# Ordered: first matching fragment wins
_TYPE_PATTERNS: list[tuple[str, ColumnType]] = [
    ("bool", ColumnType.BOOLEAN),
    ("int", ColumnType.INTEGER),
    ("uuid", ColumnType.UUID),
    ("char", ColumnType.STRING),
    ("clob", ColumnType.TEXT),
    ("text", ColumnType.TEXT),
    ("json", ColumnType.JSON),
    ("blob", ColumnType.BINARY),
    ("real", ColumnType.FLOAT),
    ("floa", ColumnType.FLOAT),
    ("doub", ColumnType.FLOAT),
    ("dec", ColumnType.DECIMAL),
    ("numeric", ColumnType.DECIMAL),
    ("datetime", ColumnType.DATETIME),
    ("timestamp", ColumnType.TIMESTAMP),
    ("date", ColumnType.DATE),
    ("time", ColumnType.TIME),
]


def normalize_column_type(declared: str) -> tuple[ColumnType, int | None]:
    """Map a declared SQLite type to a ColumnType plus optional max length."""
    lowered = declared.lower()
    max_length = None
    match = re.search(r"\((\d+)\)", lowered)
    if match:
        max_length = int(match.group(1))

    for fragment, column_type in _TYPE_PATTERNS:
        if fragment in lowered:
            return column_type, max_length if column_type is ColumnType.STRING else None
    return ColumnType.UNKNOWN, None


def discover_sqlite_schema(
    db_path: str | Path,
    tables: Iterable[str] | None = None,
    read_only_tables: Iterable[str] = (),
) -> DatabaseSchema:
    """Introspect a SQLite database.

    Args:
        db_path: Path to the database file
        tables: Restrict discovery to these tables (None for all)
        read_only_tables: Tables exposed with the READ action only

    Returns:
        Discovered schema; foreign keys become belongs_to/has_many relations
    """
    wanted = set(tables) if tables else None
    read_only = set(read_only_tables)

    with sqlite3.connect(db_path) as conn:
        names = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' "
                "AND name NOT LIKE 'sqlite_%' ORDER BY name"
            )
        ]
        if wanted is not None:
            names = [name for name in names if name in wanted]

        table_schemas: dict[str, TableSchema] = {}
        foreign_keys: list[tuple[str, str, str, str]] = []

        for name in names:
            columns = []
            for _cid, col_name, declared, notnull, default, pk in conn.execute(
                f'PRAGMA table_info("{name}")'
            ):
                column_type, max_length = normalize_column_type(declared or "")
                columns.append(
                    ColumnSchema(
                        name=col_name,
                        type=column_type,
                        nullable=not notnull and not pk,
                        is_primary=bool(pk),
                        default=default,
                        max_length=max_length,
                    )
                )

            for row in conn.execute(f'PRAGMA foreign_key_list("{name}")'):
                # (id, seq, table, from, to, on_update, on_delete, match)
                foreign_keys.append((name, row[2], row[3], row[4] or "id"))

            actions = [ActionType.READ] if name in read_only else list(ActionType)
            table_schemas[name] = TableSchema(
                name=name,
                label=name.replace("_", " ").title(),
                columns=columns,
                allowed_actions=actions,
            )

    for child, parent, fk_column, parent_key in foreign_keys:
        if child in table_schemas:
            table_schemas[child].relations.append(
                RelationSchema(
                    name=fk_column.removesuffix("_id") or parent,
                    type=RelationType.BELONGS_TO,
                    related_table=parent,
                    foreign_key=fk_column,
                    local_key=parent_key,
                )
            )
        if parent in table_schemas:
            table_schemas[parent].relations.append(
                RelationSchema(
                    name=child,
                    type=RelationType.HAS_MANY,
                    related_table=child,
                    foreign_key=fk_column,
                    local_key=parent_key,
                )
            )

    logger.debug("Discovered %d tables in %s", len(table_schemas), db_path)
    return DatabaseSchema(tables=list(table_schemas.values()))
