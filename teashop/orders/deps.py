"""
Dépendances FastAPI: construisent explicitement le magasin de commandes et le matérialiseur.
Les tests remplacent get_order_store via app.dependency_overrides.
"""
from fastapi import Depends

from teashop.config import ORDERS_TABLE
from teashop.infra.supabase_client import get_service_supabase
from .materializer import OrderMaterializer
from .store import DocumentStore, SupabaseDocumentStore


def get_order_store() -> DocumentStore:
    return SupabaseDocumentStore(get_service_supabase(), ORDERS_TABLE)


def get_materializer(store: DocumentStore = Depends(get_order_store)) -> OrderMaterializer:
    return OrderMaterializer(store)
