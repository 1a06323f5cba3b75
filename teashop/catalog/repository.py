"""
Accès au catalogue (Supabase) pour le calcul de prix.
Tables: products, promotions (lecture seule).
"""
from typing import Any, Dict, List
import logging

import teashop.infra.supabase_client as supabase_client
from teashop.config import PRODUCTS_TABLE, PROMOTIONS_TABLE
from teashop.pricing.models import CatalogSnapshot

logger = logging.getLogger(__name__)

# module teashop.catalog.repository
def _fetch_all(table: str) -> List[Dict[str, Any]]:
    res = supabase_client.get_supabase().table(table).select("*").execute()
    return res.data or []

def fetch_products() -> List[Dict[str, Any]]:
    return _fetch_all(PRODUCTS_TABLE)

def fetch_promotions() -> List[Dict[str, Any]]:
    """
    Promotions dans l'ordre de la table (ordre qui départage deux promotions sur la même clé).
    """
    res = (
        supabase_client.get_supabase()
        .table(PROMOTIONS_TABLE)
        .select("*")
        .order("id", desc=False)
        .execute()
    )
    return res.data or []

def load_snapshot() -> CatalogSnapshot:
    """
    Construit le CatalogSnapshot utilisé par un calcul de prix.
    - Contrairement aux lectures « UX » tolérantes, une erreur Supabase est propagée:
      on ne facture jamais sur un catalogue partiel.
    """
    try:
        products = fetch_products()
        promotions = fetch_promotions()
    except Exception:
        logger.exception("catalog.repository.load_snapshot failed")
        raise
    logger.debug("catalog.repository.load_snapshot products=%s promotions=%s", len(products), len(promotions))
    return CatalogSnapshot.from_rows(products, promotions)
