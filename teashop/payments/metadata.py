"""
Sérialisation/désérialisation des métadonnées Stripe (panier figé, total, prepTime).

Stripe limite chaque valeur de metadata à 500 caractères et 50 clés par objet:
le panier JSON est découpé en cart_0..cart_{n-1} avec cart_chunks = n.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from teashop.errors import CorruptSessionMetadata, InvalidCart
from teashop.pricing.models import CartLine

METADATA_VALUE_MAX = 500
METADATA_KEYS_MAX = 50
# total_amount, cart_chunks, prep_time
_RESERVED_KEYS = 3
MAX_CART_CHUNKS = METADATA_KEYS_MAX - _RESERVED_KEYS

# module teashop.payments.metadata
def _chunk(text: str, size: int) -> List[str]:
    return [text[i:i + size] for i in range(0, len(text), size)] or [""]

def make_metadata(lines: List[CartLine], total_amount: int, prep_time: Optional[int] = None) -> Dict[str, str]:
    """
    Construit les métadonnées de session à partir des lignes résolues.
    - Les prix unitaires (pence) sont figés au moment du checkout.
    - Soulève InvalidCart si le panier ne tient pas dans le budget de clés Stripe.
    """
    cart_json = json.dumps([line.to_dict() for line in lines], separators=(",", ":"))
    chunks = _chunk(cart_json, METADATA_VALUE_MAX)
    if len(chunks) > MAX_CART_CHUNKS:
        raise InvalidCart("Panier trop volumineux")
    meta = {f"cart_{i}": chunk for i, chunk in enumerate(chunks)}
    meta["cart_chunks"] = str(len(chunks))
    meta["total_amount"] = str(int(total_amount))
    if prep_time is not None:
        meta["prep_time"] = str(int(prep_time))
    return meta

def _read_cart(meta: Mapping[str, Any]) -> List[Dict[str, Any]]:
    try:
        n = int(meta.get("cart_chunks"))
    except (TypeError, ValueError):
        raise CorruptSessionMetadata("cart_chunks manquant ou invalide")
    if n < 1 or n > MAX_CART_CHUNKS:
        raise CorruptSessionMetadata(f"cart_chunks hors bornes: {n}")
    parts = []
    for i in range(n):
        part = meta.get(f"cart_{i}")
        if part is None:
            raise CorruptSessionMetadata(f"cart_{i} manquant")
        parts.append(part)
    try:
        cart = json.loads("".join(parts))
    except ValueError:
        raise CorruptSessionMetadata("Panier JSON illisible")
    if not isinstance(cart, list) or not cart:
        raise CorruptSessionMetadata("Panier vide ou mal formé")
    return cart

def _read_total(meta: Mapping[str, Any]) -> int:
    raw = meta.get("total_amount")
    try:
        total = int(str(raw).strip())
    except (TypeError, ValueError):
        raise CorruptSessionMetadata(f"total_amount invalide: {raw!r}")
    if total < 0:
        raise CorruptSessionMetadata(f"total_amount négatif: {total}")
    return total

def _read_prep_time(meta: Mapping[str, Any]) -> Optional[int]:
    raw = meta.get("prep_time")
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise CorruptSessionMetadata(f"prep_time invalide: {raw!r}")

def extract_metadata_from_session(session: Mapping[str, Any]) -> Tuple[List[Dict[str, Any]], int, Optional[int]]:
    """
    Extrait (items, total_amount, prep_time) depuis une session Stripe Checkout.
    - Strict: toute incohérence lève CorruptSessionMetadata (aucune commande partielle).
    """
    meta = (session or {}).get("metadata") if isinstance(session, Mapping) else None
    if not isinstance(meta, Mapping) or not meta:
        raise CorruptSessionMetadata("Métadonnées absentes")
    return _read_cart(meta), _read_total(meta), _read_prep_time(meta)
