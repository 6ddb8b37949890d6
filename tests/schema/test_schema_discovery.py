"""Tests for SQLite schema discovery and schema models."""

import pytest

from crudmind.schema.discovery import discover_sqlite_schema, normalize_column_type
from crudmind.schema.models import ActionType, ColumnSchema, ColumnType, RelationType, TableSchema


@pytest.mark.parametrize(
    "declared, expected",
    [
        ("VARCHAR(100)", (ColumnType.STRING, 100)),
        ("INTEGER", (ColumnType.INTEGER, None)),
        ("BOOLEAN", (ColumnType.BOOLEAN, None)),
        ("DECIMAL(10, 2)", (ColumnType.DECIMAL, None)),
        ("DATETIME", (ColumnType.DATETIME, None)),
        ("DATE", (ColumnType.DATE, None)),
        ("TEXT", (ColumnType.TEXT, None)),
        ("BLOB", (ColumnType.BINARY, None)),
        ("", (ColumnType.UNKNOWN, None)),
    ],
)
def test_normalize_column_type(declared, expected):
    assert normalize_column_type(declared) == expected


def test_discovers_tables_and_columns(shop_schema):
    assert shop_schema.table_names == ["audit_log", "customers", "orders"]

    customers = shop_schema.find_table("customers")
    assert customers.label == "Customers"
    assert customers.primary_key == "id"

    name = customers.column("name")
    assert name.type is ColumnType.STRING
    assert name.max_length == 100
    assert not name.nullable
    assert customers.column("email").nullable
    assert customers.column("active").default == "1"
    assert not customers.column("id").nullable


def test_read_only_tables(shop_schema):
    audit = shop_schema.find_table("audit_log")

    assert audit.label == "Audit Log"
    assert audit.allowed_actions == [ActionType.READ]
    assert shop_schema.find_table("orders").is_action_allowed(ActionType.DELETE)


def test_foreign_keys_become_relations(shop_schema):
    orders = shop_schema.find_table("orders")
    customers = shop_schema.find_table("customers")

    assert len(orders.relations) == 1
    belongs = orders.relations[0]
    assert (belongs.name, belongs.type, belongs.related_table) == ("customer", RelationType.BELONGS_TO, "customers")
    assert belongs.foreign_key == "customer_id"

    has_many = customers.relations[0]
    assert (has_many.name, has_many.type, has_many.related_table) == ("orders", RelationType.HAS_MANY, "orders")


def test_table_filter(db_path):
    schema = discover_sqlite_schema(db_path, tables=["orders"])

    assert schema.table_names == ["orders"]
    # Relation to an undiscovered parent is still described from the child side
    assert schema.find_table("orders").relations[0].related_table == "customers"


def test_writable_columns_respect_fillable_and_guarded():
    table = TableSchema(
        name="users",
        columns=[
            ColumnSchema(name="id", is_primary=True),
            ColumnSchema(name="name"),
            ColumnSchema(name="email"),
            ColumnSchema(name="password"),
        ],
        guarded=["password"],
    )
    assert [c.name for c in table.writable_columns()] == ["name", "email"]

    table.fillable = ["name"]
    assert [c.name for c in table.writable_columns()] == ["name"]


def test_prompt_context(shop_schema):
    context = shop_schema.to_prompt_context()

    assert context.startswith("DATABASE SCHEMA:")
    assert "## Audit Log (table: audit_log) [actions: read]" in context
    assert "  - id: integer (PK)" in context
    assert "  - email: text (nullable)" in context
    assert "    - customer -> customers (belongs_to)" in context
