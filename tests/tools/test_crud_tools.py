"""Tests for the built-in database tools against a real SQLite file."""

import pytest

from crudmind.security.context import SecurityContext
from crudmind.tools.crud import SAMPLE_SIZE, build_crud_tools
from crudmind.tools.registry import ToolRegistry


def test_tool_set(crud_registry):
    definitions = crud_registry.to_function_definitions()
    names = [d["function"]["name"] for d in definitions]

    assert names == [
        "search_records",
        "count_records",
        "get_sample_data",
        "aggregate",
        "create_record",
        "update_record",
        "delete_record",
    ]
    writes = {name for name in names if crud_registry.get(name).requires_confirmation}
    assert writes == {"create_record", "update_record", "delete_record"}

    table_enum = definitions[0]["function"]["parameters"]["properties"]["table"]["enum"]
    assert table_enum == ["audit_log", "customers", "orders"]

    search = definitions[0]["function"]["parameters"]
    assert search["properties"]["select"]["items"] == {"type": "string"}
    assert "select" not in search["required"]


@pytest.mark.asyncio
async def test_search_records(crud_registry):
    result = await crud_registry.execute(
        "search_records",
        {"table": "orders", "where": {"status": "paid"}, "order_by": "-total", "select": ["id", "total"]},
    )

    assert result.success
    assert result.message == "Found 2 record(s) in orders."
    assert result.data == [{"id": 1, "total": 120}, {"id": 3, "total": 40}]


@pytest.mark.asyncio
async def test_count_records(crud_registry):
    result = await crud_registry.execute("count_records", {"table": "customers", "where": {"active": 1}})

    assert result.success
    assert result.data == {"count": 2}
    assert result.message == "2 record(s) in customers."


@pytest.mark.asyncio
async def test_sample_data_is_capped(crud_registry, executor):
    for i in range(SAMPLE_SIZE + 2):
        await crud_registry.execute("create_record", {"table": "customers", "data": {"name": f"c{i}"}})

    result = await crud_registry.execute("get_sample_data", {"table": "customers"})

    assert result.success
    assert len(result.data) == SAMPLE_SIZE


@pytest.mark.asyncio
async def test_aggregate_grouped(crud_registry):
    result = await crud_registry.execute(
        "aggregate", {"table": "orders", "function": "sum", "column": "total", "group_by": "status"}
    )

    assert result.success
    assert result.message == "SUM(total) grouped by status on orders."
    assert result.data == [{"status": "paid", "value": 160}, {"status": "pending", "value": 80}]


@pytest.mark.asyncio
async def test_aggregate_bad_function(crud_registry):
    result = await crud_registry.execute("aggregate", {"table": "orders", "function": "median", "column": "total"})

    assert not result.success
    assert "Unsupported aggregate function" in result.error


@pytest.mark.asyncio
async def test_create_update_delete(crud_registry, executor):
    created = await crud_registry.execute(
        "create_record", {"table": "customers", "data": {"name": "Dave", "email": "dave@example.com"}}
    )
    assert created.success
    assert created.data["id"] == 4
    assert created.metadata == {"affected": 1}

    updated = await crud_registry.execute(
        "update_record", {"table": "customers", "data": {"email": "d@example.com"}, "where": {"id": 4}}
    )
    assert updated.success
    assert updated.message == "Updated 1 record(s) in customers."

    deleted = await crud_registry.execute("delete_record", {"table": "customers", "where": {"name": "Dave"}})
    assert deleted.success
    assert deleted.metadata == {"affected": 1}
    assert await executor.count("customers") == 3


@pytest.mark.asyncio
async def test_read_only_table_refuses_writes(crud_registry):
    result = await crud_registry.execute("delete_record", {"table": "audit_log", "where": {"id": 1}})

    assert not result.success
    assert result.error == "Action 'delete' is not allowed on table 'audit_log'"

    read = await crud_registry.execute("count_records", {"table": "audit_log"})
    assert read.success


@pytest.mark.asyncio
async def test_unknown_table(crud_registry):
    result = await crud_registry.execute("search_records", {"table": "secrets"})
    assert result.error == "Unknown table: secrets"


@pytest.mark.asyncio
async def test_security_context_denies(executor, shop_schema):
    security = SecurityContext(user_id="9", user_role="viewer", permissions={"orders": ["read"]})
    registry = ToolRegistry(build_crud_tools(executor, shop_schema, security))

    assert (await registry.execute("count_records", {"table": "orders"})).success

    result = await registry.execute("delete_record", {"table": "orders", "where": {"id": 1}})
    assert result.error == "Permission denied: cannot delete 'orders'"

    result = await registry.execute("count_records", {"table": "customers"})
    assert result.error == "Permission denied: cannot read 'customers'"
    assert await executor.count("orders") == 3


@pytest.mark.asyncio
async def test_write_errors_become_failures(crud_registry):
    result = await crud_registry.execute("update_record", {"table": "orders", "data": {"id": 9}, "where": {"id": 1}})

    assert not result.success
    assert result.error == "Columns not writable on 'orders': id"
