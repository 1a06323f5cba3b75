"""
Logique panier pure (pas de Stripe, pas de DB).
"""
from typing import Any, Dict, List, Optional

from teashop.errors import InvalidCart
from .models import CartItem

# module teashop.pricing.cart
def _clean_str(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None

def parse_quantity(raw: Any) -> int:
    """
    Quantité entière strictement positive.
    - Accepte int ou chaîne numérique ("2"), refuse bool, flottants non entiers, <= 0.
    """
    if isinstance(raw, bool):
        raise InvalidCart(f"Quantité invalide: {raw!r}")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidCart(f"Quantité invalide: {raw!r}")
        raw = int(raw)
    try:
        qty = int(raw)
    except (TypeError, ValueError):
        raise InvalidCart(f"Quantité invalide: {raw!r}")
    if qty <= 0:
        raise InvalidCart(f"Quantité invalide: {raw!r}")
    return qty

def parse_cart(items: List[Dict[str, Any]]) -> List[CartItem]:
    """
    Transforme un panier brut [{productId, quantity, size, category?}, ...] en CartItem.
    - L'ordre du panier est conservé (il fixe l'ordre de facturation des unités restantes).
    - Aucune ligne n'est ignorée silencieusement: une ligne invalide rejette tout le panier.
    - Soulève InvalidCart si le panier est vide ou si une ligne est malformée.
    """
    if not items:
        raise InvalidCart("Panier vide")
    cart: List[CartItem] = []
    for index, it in enumerate(items):
        if not isinstance(it, dict):
            raise InvalidCart(f"Ligne {index} invalide")
        product_id = _clean_str(it.get("productId") or it.get("id"))
        if not product_id:
            raise InvalidCart(f"Ligne {index}: productId manquant")
        cart.append(CartItem(
            product_id=product_id,
            quantity=parse_quantity(it.get("quantity")),
            size=_clean_str(it.get("size")),
            category=_clean_str(it.get("category")),
        ))
    return cart
