"""
Sonde Supabase pour /health/supabase.
Chaque table est lue avec le client qui l'utilise en production:
catalogue (products, promotions) en anon, commandes avec le client service-role (RLS).
"""
from typing import Any, Callable, Dict
from urllib.parse import urlparse
import logging
import socket

from supabase import Client

from teashop.config import SUPABASE_URL, ORDERS_TABLE, PRODUCTS_TABLE, PROMOTIONS_TABLE
from teashop.infra.supabase_client import get_service_supabase, get_supabase

logger = logging.getLogger(__name__)

# module teashop.health.service
def _resolve_host(hostname: str) -> Dict[str, Any]:
    try:
        socket.getaddrinfo(hostname, 443)
        return {"dns_ok": True, "dns_error": None}
    except OSError as e:
        return {"dns_ok": False, "dns_error": str(e)}

def _probe_table(get_client: Callable[[], Client], name: str) -> Dict[str, Any]:
    # sonde: l'échec d'une table est rapporté, pas propagé
    try:
        res = get_client().table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        logger.warning("health.supabase table=%s unreachable: %s", name, e)
        return {"ok": False, "error": str(e)}

def health_supabase_info() -> Dict[str, Any]:
    hostname = urlparse(SUPABASE_URL).hostname if SUPABASE_URL else None
    info: Dict[str, Any] = {"supabase_url": SUPABASE_URL, "hostname": hostname, "dns_ok": None, "dns_error": None}
    if hostname:
        info.update(_resolve_host(hostname))

    probes = (
        (get_supabase, PRODUCTS_TABLE),
        (get_supabase, PROMOTIONS_TABLE),
        (get_service_supabase, ORDERS_TABLE),
    )
    info["tables"] = {name: _probe_table(get_client, name) for get_client, name in probes}
    info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    return info
