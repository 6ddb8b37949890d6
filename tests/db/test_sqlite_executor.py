"""Tests for the SQLite action executor."""

import pytest

from crudmind.db.executor import DEFAULT_LIMIT, ActionResult, ExecutorError
from crudmind.schema.models import ActionType


async def _names(executor, where=None, **kwargs) -> list[str]:
    result = await executor.execute("customers", ActionType.READ, where=where, order_by="id", **kwargs)
    assert result.success, result.message
    return [row["name"] for row in result.data]


@pytest.mark.asyncio
async def test_read_all(executor):
    assert await _names(executor) == ["Alice", "Bob", "Carol"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "where, expected",
    [
        ({"name": "Bob"}, ["Bob"]),
        ({"name": ["Alice", "Carol"]}, ["Alice", "Carol"]),
        ({"email": None}, ["Carol"]),
        ({"id": {">=": 2}}, ["Bob", "Carol"]),
        ({"id": {">": 1, "<": 3}}, ["Bob"]),
        ({"name": {"like": "%o%"}}, ["Bob", "Carol"]),
        ({"name": {"!=": "Alice"}}, ["Bob", "Carol"]),
        ({"name": {"in": []}}, []),
    ],
)
async def test_where_operators(executor, where, expected):
    assert await _names(executor, where) == expected


@pytest.mark.asyncio
async def test_order_by_descending_and_limit(executor):
    result = await executor.execute("orders", ActionType.READ, order_by="-total", limit=2)

    assert [row["id"] for row in result.data] == [1, 2]
    assert result.affected == 2


@pytest.mark.asyncio
async def test_default_limit_applies(executor):
    for i in range(DEFAULT_LIMIT):
        await executor.execute("customers", ActionType.CREATE, data={"name": f"c{i}"})

    result = await executor.execute("customers", ActionType.READ)

    assert len(result.data) == DEFAULT_LIMIT
    assert await executor.count("customers") == DEFAULT_LIMIT + 3


@pytest.mark.asyncio
async def test_unknown_column_and_operator(executor):
    result = await executor.execute("customers", ActionType.READ, where={"password": "x"})
    assert not result.success
    assert result.message == "Unknown column 'password' on table 'customers'"

    result = await executor.execute("customers", ActionType.READ, where={"id": {"~": 1}})
    assert result.message == "Unsupported operator '~' on column 'id'"


@pytest.mark.asyncio
async def test_unknown_table(executor):
    result = await executor.execute("secrets", ActionType.READ)
    assert result == ActionResult.fail("Unknown table: secrets")


@pytest.mark.asyncio
async def test_refuses_unconditional_writes(executor):
    update = await executor.execute("orders", ActionType.UPDATE, data={"status": "void"})
    delete = await executor.execute("orders", ActionType.DELETE, where={})

    assert update.message == "Refusing to update without conditions"
    assert delete.message == "Refusing to delete without conditions"
    assert await executor.count("orders") == 3


@pytest.mark.asyncio
async def test_create_requires_data(executor):
    result = await executor.execute("customers", ActionType.CREATE, data={})
    assert result.message == "No data given for create"


@pytest.mark.asyncio
async def test_read_only_table(executor):
    result = await executor.execute("audit_log", ActionType.CREATE, data={"message": "x"})
    assert result.message == "Action 'create' is not allowed on table 'audit_log'"


@pytest.mark.asyncio
async def test_database_error_is_reported(executor):
    result = await executor.execute("customers", ActionType.CREATE, data={"email": "nobody@example.com"})

    assert not result.success
    assert result.message.startswith("Database error:")


@pytest.mark.asyncio
async def test_update_in_place(executor):
    result = await executor.execute(
        "orders", ActionType.UPDATE, data={"status": "refunded"}, where={"status": "paid"}
    )

    assert result.affected == 2
    assert await executor.count("orders", {"status": "refunded"}) == 2


@pytest.mark.asyncio
async def test_count_and_aggregate(executor):
    assert await executor.count("orders", {"customer_id": 1}) == 2

    rows = await executor.aggregate("orders", "avg", "total", where={"status": "paid"})
    assert rows == [{"value": 80}]

    rows = await executor.aggregate("orders", "count", group_by="customer_id")
    assert rows == [{"customer_id": 1, "value": 2}, {"customer_id": 2, "value": 1}]


@pytest.mark.asyncio
async def test_aggregate_needs_column(executor):
    with pytest.raises(ExecutorError, match="needs a column"):
        await executor.aggregate("orders", "max")
