"""
Clients Supabase partagés (instanciés à la demande, une fois par process).
- anon: lecture du catalogue (products, promotions)
- service-role: écriture des commandes, jamais exposé au client
"""
from typing import Optional
import logging

from supabase import create_client, Client
from teashop.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

logger = logging.getLogger(__name__)

_catalog_client: Optional[Client] = None
_orders_client: Optional[Client] = None

def get_supabase() -> Client:
    global _catalog_client
    if _catalog_client is None:
        if not SUPABASE_URL:
            raise RuntimeError("SUPABASE_URL manquant")
        _catalog_client = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _catalog_client

def get_service_supabase() -> Client:
    global _orders_client
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _orders_client is None:
        _orders_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
        logger.debug("infra.supabase service client created url=%s", SUPABASE_URL)
    return _orders_client
