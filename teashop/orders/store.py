"""
Magasin de documents clé/valeur utilisé pour les commandes.
Contrat minimal: get / set / exists par clé, sans transaction.
L'implémentation Supabase stocke chaque document dans une ligne {id, data} et écrit par upsert.
"""
from typing import Any, Dict, Optional, Protocol
import logging

from supabase import Client

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, document: Dict[str, Any]) -> None: ...

    def exists(self, key: str) -> bool: ...


class SupabaseDocumentStore:
    def __init__(self, client: Client, table: str):
        self.client = client
        self.table = table

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        res = (
            self.client
            .table(self.table)
            .select("data")
            .eq("id", key)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        if not rows:
            return None
        return rows[0].get("data")

    def set(self, key: str, document: Dict[str, Any]) -> None:
        """Upsert sur la clé primaire: deux écritures identiques concurrentes restent sans effet de bord."""
        (
            self.client
            .table(self.table)
            .upsert({"id": key, "data": document}, on_conflict="id")
            .execute()
        )
        logger.debug("orders.store.set table=%s id=%s", self.table, key)

    def exists(self, key: str) -> bool:
        res = (
            self.client
            .table(self.table)
            .select("id")
            .eq("id", key)
            .limit(1)
            .execute()
        )
        return bool(res.data)
