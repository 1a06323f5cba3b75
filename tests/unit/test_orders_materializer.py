import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from teashop.errors import CorruptSessionMetadata, PaymentNotCompleted, SessionNotFound
from teashop.orders.materializer import OrderMaterializer, build_order
from tests.conftest import InMemoryDocumentStore, make_session


def _retriever(session):
    calls = []

    def _retrieve(session_id):
        calls.append(session_id)
        return session

    _retrieve.calls = calls
    return _retrieve


def test_build_order_is_deterministic():
    session = make_session()
    order = build_order("cs_test_123", session)
    assert order == build_order("cs_test_123", session)
    assert order.to_document() == {
        "id": "cs_test_123",
        "items": [{"productId": "A", "quantity": 3, "size": "reg", "category": "tea", "unitPrice": 350}],
        "totalAmount": 950,
        "status": "paid",
        "createdAt": "2023-11-14T22:13:20+00:00",
        "updatedAt": "2023-11-14T22:13:20+00:00",
    }

def test_build_order_requires_session_timestamp():
    session = make_session()
    del session["created"]
    with pytest.raises(CorruptSessionMetadata):
        build_order("cs_test_123", session)

def test_materialize_creates_then_returns_existing(order_store):
    materializer = OrderMaterializer(order_store, retrieve_session=_retriever(make_session()))
    first = materializer.materialize("cs_test_123")
    second = materializer.materialize("cs_test_123")
    assert first == second
    assert order_store.set_calls == 1
    assert list(order_store.docs) == ["cs_test_123"]

def test_prep_time_is_carried(order_store):
    session = make_session()
    session["metadata"]["prep_time"] = "12"
    order = OrderMaterializer(order_store, retrieve_session=_retriever(session)).materialize("cs_test_123")
    assert order.prep_time == 12
    assert order_store.docs["cs_test_123"]["prepTime"] == 12

def test_existing_order_is_not_rebuilt(order_store):
    order_store.docs["cs_test_123"] = build_order("cs_test_123", make_session()).to_document()
    # métadonnées illisibles: le chemin rapide ne les lit jamais
    session = make_session(metadata={"cart_chunks": "oops"})
    order = OrderMaterializer(order_store, retrieve_session=_retriever(session)).materialize("cs_test_123")
    assert order.total_amount == 950
    assert order_store.set_calls == 0

def test_unpaid_session_writes_nothing(order_store):
    session = make_session(payment_status="unpaid")
    session["payment_intent"] = {"last_payment_error": {"message": "Your card was declined."}}
    materializer = OrderMaterializer(order_store, retrieve_session=_retriever(session))
    with pytest.raises(PaymentNotCompleted) as exc:
        materializer.materialize("cs_test_123")
    assert exc.value.status_code == 409
    assert exc.value.to_dict()["reason"] == "Your card was declined."
    assert order_store.docs == {}

def test_corrupt_metadata_writes_nothing(order_store, caplog):
    session = make_session(metadata={"cart_chunks": "1", "total_amount": "950"})
    materializer = OrderMaterializer(order_store, retrieve_session=_retriever(session))
    with pytest.raises(CorruptSessionMetadata):
        materializer.materialize("cs_test_123")
    assert order_store.set_calls == 0
    assert "DATA INTEGRITY" in caplog.text

def test_invalid_line_in_metadata_is_corrupt(order_store):
    session = make_session(metadata={
        "cart_0": '[{"productId": "A", "quantity": 0, "unitPrice": 350}]',
        "cart_chunks": "1",
        "total_amount": "0",
    })
    with pytest.raises(CorruptSessionMetadata):
        OrderMaterializer(order_store, retrieve_session=_retriever(session)).materialize("cs_test_123")
    assert order_store.docs == {}

def test_unknown_session_propagates(order_store):
    def _missing(session_id):
        raise SessionNotFound(session_id)

    with pytest.raises(SessionNotFound):
        OrderMaterializer(order_store, retrieve_session=_missing).materialize("cs_missing")
    assert order_store.set_calls == 0


class RacingStore(InMemoryDocumentStore):
    """Tous les lecteurs voient 'absent' avant que le premier n'écrive."""

    def __init__(self, parties):
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def get(self, key):
        doc = super().get(key)
        self.barrier.wait()
        return doc


def test_concurrent_materialization_yields_one_document():
    n = 8
    store = RacingStore(n)
    materializer = OrderMaterializer(store, retrieve_session=_retriever(make_session()))
    with ThreadPoolExecutor(max_workers=n) as pool:
        orders = list(pool.map(lambda _: materializer.materialize("cs_test_123"), range(n)))

    assert store.set_calls == n
    assert list(store.docs) == ["cs_test_123"]
    assert all(order == orders[0] for order in orders)
    assert store.docs["cs_test_123"] == orders[0].to_document()
