from decimal import Decimal

import pytest
from botocore.exceptions import ClientError

from fintrack.core.exceptions import RemoteServiceError
from fintrack.db import dynamo
from fintrack.db.cache import query_cache


class FakeTable:
    """Serves canned query pages and records calls."""

    name = "fintrack-test"

    def __init__(self, pages=None, error_code=None):
        self.pages = pages or []
        self.error_code = error_code
        self.queries = []
        self.puts = []
        self.updates = []

    def _maybe_fail(self, operation):
        if self.error_code:
            raise ClientError({"Error": {"Code": self.error_code, "Message": "boom"}}, operation)

    def query(self, **kwargs):
        self._maybe_fail("Query")
        self.queries.append(kwargs)
        return self.pages[len(self.queries) - 1]

    def put_item(self, Item):
        self._maybe_fail("PutItem")
        self.puts.append(Item)

    def update_item(self, **kwargs):
        self._maybe_fail("UpdateItem")
        self.updates.append(kwargs)
        return {"Attributes": {"user_id": "user-1", "item_id": "t1", "amount": Decimal("12.5")}}

    def delete_item(self, **kwargs):
        self._maybe_fail("DeleteItem")
        return {}


@pytest.fixture(autouse=True)
def empty_cache():
    query_cache.clear()
    yield
    query_cache.clear()


def test_list_items_follows_pages_and_converts_decimals(monkeypatch):
    table = FakeTable(
        pages=[
            {"Items": [{"item_id": "t1", "amount": Decimal("100")}], "LastEvaluatedKey": {"item_id": "t1"}},
            {"Items": [{"item_id": "t2", "amount": Decimal("12.75")}]},
        ]
    )
    monkeypatch.setitem(dynamo.tables, "transactions", table)

    items = dynamo.list_items("transactions", "user-1", date_from="2025-11-01", date_to="2025-11-30")

    assert items == [{"item_id": "t1", "amount": 100}, {"item_id": "t2", "amount": 12.75}]
    assert len(table.queries) == 2
    assert table.queries[1]["ExclusiveStartKey"] == {"item_id": "t1"}
    assert "FilterExpression" in table.queries[0]


def test_list_items_is_cached_until_mutation(monkeypatch):
    table = FakeTable(pages=[{"Items": [{"item_id": "t1"}]}, {"Items": [{"item_id": "t1"}, {"item_id": "t2"}]}])
    monkeypatch.setitem(dynamo.tables, "transactions", table)

    dynamo.list_items("transactions", "user-1")
    dynamo.list_items("transactions", "user-1")
    assert len(table.queries) == 1

    dynamo.put_item("transactions", {"user_id": "user-1", "item_id": "t2", "amount": 5.5})
    assert table.puts[0]["amount"] == Decimal("5.5")

    assert len(dynamo.list_items("transactions", "user-1")) == 2
    assert len(table.queries) == 2


def test_update_item_returns_none_when_missing(monkeypatch):
    monkeypatch.setitem(dynamo.tables, "transactions", FakeTable(error_code="ConditionalCheckFailedException"))
    assert dynamo.update_item("transactions", "user-1", "missing", {"amount": 1.0}) is None


def test_update_item_converts_values(monkeypatch):
    table = FakeTable()
    monkeypatch.setitem(dynamo.tables, "transactions", table)

    updated = dynamo.update_item("transactions", "user-1", "t1", {"amount": 12.5})

    assert updated["amount"] == 12.5
    values = table.updates[0]["ExpressionAttributeValues"]
    assert Decimal("12.5") in values.values()
    assert table.updates[0]["ConditionExpression"] == "attribute_exists(item_id)"


def test_delete_missing_item(monkeypatch):
    monkeypatch.setitem(dynamo.tables, "budgets", FakeTable())
    assert dynamo.delete_item("budgets", "user-1", "nope") is False


def test_client_errors_surface_as_remote_errors(monkeypatch):
    monkeypatch.setitem(dynamo.tables, "loans", FakeTable(error_code="ResourceNotFoundException"))
    with pytest.raises(RemoteServiceError) as exc_info:
        dynamo.list_items("loans", "user-1")
    assert exc_info.value.status_code == 500


def test_unknown_collection():
    with pytest.raises(ValueError):
        dynamo.get_item("expenses", "user-1", "x")
