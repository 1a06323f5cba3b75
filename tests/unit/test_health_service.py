from unittest.mock import MagicMock

from teashop.health import service as health_service


def _client(rows):
    client = MagicMock()
    client.table.return_value.select.return_value.limit.return_value.execute.return_value = MagicMock(data=rows)
    return client


def test_orders_table_is_probed_with_service_client(monkeypatch):
    anon, service = _client([{"id": "A"}]), _client([])
    monkeypatch.setattr(health_service, "SUPABASE_URL", "")
    monkeypatch.setattr(health_service, "get_supabase", lambda: anon)
    monkeypatch.setattr(health_service, "get_service_supabase", lambda: service)

    info = health_service.health_supabase_info()

    assert [c.args[0] for c in anon.table.call_args_list] == ["products", "promotions"]
    assert [c.args[0] for c in service.table.call_args_list] == ["orders"]
    assert info["tables"]["orders"] == {"ok": True, "rows": 0}
    assert info["connect_ok"] is True

def test_missing_service_key_is_reported_not_raised(monkeypatch):
    def _no_service_key():
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant")

    monkeypatch.setattr(health_service, "SUPABASE_URL", "")
    monkeypatch.setattr(health_service, "get_supabase", lambda: _client([]))
    monkeypatch.setattr(health_service, "get_service_supabase", _no_service_key)

    info = health_service.health_supabase_info()

    assert info["tables"]["products"]["ok"] is True
    assert info["tables"]["orders"] == {"ok": False, "error": "SUPABASE_SERVICE_KEY manquant"}
    assert info["connect_ok"] is False
