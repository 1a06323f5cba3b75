import hashlib
import hmac
import json
import os
import threading
import time
from typing import Any, Dict, Generator, Optional

import pytest

# Config lue à l'import de teashop.config: fixer l'environnement de test avant tout import applicatif
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

from fastapi.testclient import TestClient

from teashop.app import app as fastapi_app
from teashop.catalog.repository import load_snapshot
from teashop.orders.deps import get_order_store
from teashop.pricing.models import CatalogSnapshot

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class InMemoryDocumentStore:
    """Magasin clé/valeur en mémoire, même contrat que SupabaseDocumentStore (upsert sur set)."""

    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.set_calls = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        doc = self.docs.get(key)
        return json.loads(json.dumps(doc)) if doc is not None else None

    def set(self, key: str, document: Dict[str, Any]) -> None:
        with self._lock:
            self.set_calls += 1
            self.docs[key] = json.loads(json.dumps(document))

    def exists(self, key: str) -> bool:
        return key in self.docs


def make_session(
    session_id: str = "cs_test_123",
    payment_status: str = "paid",
    metadata: Optional[Dict[str, str]] = None,
    created: int = 1700000000,
) -> Dict[str, Any]:
    if metadata is None:
        metadata = {
            "cart_0": json.dumps([
                {"productId": "A", "quantity": 3, "size": "reg", "category": "tea", "unitPrice": 350},
            ]),
            "cart_chunks": "1",
            "total_amount": "950",
        }
    return {
        "id": session_id,
        "object": "checkout.session",
        "payment_status": payment_status,
        "created": created,
        "metadata": metadata,
    }


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature (schéma v1: HMAC-SHA256 de '<t>.<payload>')."""
    ts = timestamp or int(time.time())
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def completion_event(session_id: str = "cs_test_123", event_type: str = "checkout.session.completed") -> str:
    return json.dumps({
        "id": "evt_test_1",
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": session_id, "object": "checkout.session"}},
    })


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def snapshot() -> CatalogSnapshot:
    return CatalogSnapshot.from_rows(
        products=[
            {"id": "A", "name": "Classic milk tea", "category": "tea", "price": 3.50},
            {"id": "B", "name": "Taro milk tea", "category": "tea", "price": "3.80"},
            {"id": "C", "name": "Mango slush", "category": "slush", "price": 4.25},
        ],
        promotions=[
            {"id": "p1", "category": "tea", "size": "reg", "required_quantity": 2, "price": {"reg": 6.00}, "active": True},
            {"id": "p2", "category": "slush", "size": "large", "required_quantity": 3, "price": {"large": 10}, "active": False},
        ],
    )

@pytest.fixture
def order_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()

# Catalogue et magasin de commandes remplacés pour tous les tests HTTP
@pytest.fixture(autouse=True)
def _override_dependencies(app, snapshot, order_store):
    app.dependency_overrides[load_snapshot] = lambda: snapshot
    app.dependency_overrides[get_order_store] = lambda: order_store
    try:
        yield
    finally:
        app.dependency_overrides.pop(load_snapshot, None)
        app.dependency_overrides.pop(get_order_store, None)

@pytest.fixture
def stripe_sessions(monkeypatch) -> Dict[str, Dict[str, Any]]:
    """Sessions Stripe simulées, lues par stripe_client.get_session."""
    from teashop.errors import SessionNotFound

    sessions: Dict[str, Dict[str, Any]] = {}

    def _fake_get_session(session_id: str) -> Dict[str, Any]:
        if session_id not in sessions:
            raise SessionNotFound(f"Session introuvable: {session_id}")
        return sessions[session_id]

    monkeypatch.setattr("teashop.payments.stripe_client.get_session", _fake_get_session)
    return sessions

@pytest.fixture
def session_factory():
    return make_session

@pytest.fixture
def webhook_post(client):
    """Poste un événement signé sur le webhook (signature valide par défaut)."""
    def _post(payload: str, signature: Optional[str] = None):
        headers = {
            "Content-Type": "application/json",
            "Stripe-Signature": signature if signature is not None else sign_payload(payload),
        }
        return client.post("/api/v1/payments/webhook", content=payload, headers=headers)
    return _post

@pytest.fixture
def sdk_sessions(monkeypatch) -> Dict[str, Dict[str, Any]]:
    """
    Sessions servies par le vrai adaptateur: Session.retrieve renvoie un objet du SDK
    (stripe.checkout.Session), pas un dict, comme en production.
    """
    import stripe

    sessions: Dict[str, Dict[str, Any]] = {}

    def _retrieve(session_id, **kwargs):
        if session_id not in sessions:
            raise stripe.InvalidRequestError(f"No such checkout.session: {session_id}", "id", code="resource_missing")
        return stripe.checkout.Session.construct_from(sessions[session_id], "sk_test_dummy")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", _retrieve)
    return sessions

def with_payment_intent(session: Dict[str, Any], error: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """payment_intent étendu (expand=["payment_intent"])."""
    session["payment_intent"] = {
        "id": "pi_test_1",
        "object": "payment_intent",
        "status": "requires_payment_method" if error else "succeeded",
        "last_payment_error": error,
    }
    return session
