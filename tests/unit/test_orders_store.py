from unittest.mock import MagicMock

from teashop.orders.store import SupabaseDocumentStore


def _client(rows):
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = MagicMock(data=rows)
    return client


def test_get_returns_document():
    client = _client([{"data": {"id": "cs_1", "totalAmount": 950}}])
    store = SupabaseDocumentStore(client, "orders")
    assert store.get("cs_1") == {"id": "cs_1", "totalAmount": 950}
    client.table.assert_called_with("orders")
    client.table.return_value.select.assert_called_with("data")
    client.table.return_value.select.return_value.eq.assert_called_with("id", "cs_1")

def test_get_missing():
    assert SupabaseDocumentStore(_client([]), "orders").get("cs_1") is None

def test_set_is_an_upsert_on_id():
    client = MagicMock()
    SupabaseDocumentStore(client, "orders").set("cs_1", {"id": "cs_1"})
    client.table.return_value.upsert.assert_called_once_with(
        {"id": "cs_1", "data": {"id": "cs_1"}}, on_conflict="id"
    )
    client.table.return_value.upsert.return_value.execute.assert_called_once()

def test_exists():
    assert SupabaseDocumentStore(_client([{"id": "cs_1"}]), "orders").exists("cs_1") is True
    assert SupabaseDocumentStore(_client([]), "orders").exists("cs_1") is False
