"""
Cas d'usage 'payments': orchestre pricing, metadata et stripe.
"""
import logging
from typing import Any, Dict, List, Optional

from teashop import config
from teashop.errors import InvalidCart
from teashop.pricing import price_cart
from teashop.pricing.models import CartLine, CatalogSnapshot
from teashop.pricing.money import to_major_string

from . import metadata as meta
from . import stripe_client

logger = logging.getLogger(__name__)

def to_line_items(amount: int) -> List[Dict[str, Any]]:
    """
    Une seule ligne Stripe au montant total: les promotions sont déjà appliquées côté serveur.
    """
    return [{
        "quantity": 1,
        "price_data": {
            "currency": config.CURRENCY,
            "unit_amount": amount,
            "product_data": {"name": config.CHECKOUT_PRODUCT_NAME},
        },
    }]

def checkout_urls(base_url: Optional[str] = None) -> Dict[str, str]:
    base = (base_url or config.BASE_URL).rstrip("/")
    sep = "&" if "?" in config.CHECKOUT_SUCCESS_PATH else "?"
    return {
        "success_url": f"{base}{config.CHECKOUT_SUCCESS_PATH}{sep}session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{base}{config.CHECKOUT_CANCEL_PATH}",
    }

def open_checkout_session(
    amount: int,
    lines: List[CartLine],
    *,
    prep_time: Optional[int] = None,
    base_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ouvre une session Stripe Checkout pour un montant déjà calculé.
    - Le panier résolu est figé dans les métadonnées (prix au moment de l'achat).
    - InvalidCart si le montant n'est pas strictement positif.
    - ProviderUnavailable si Stripe échoue (pas de retry ici).
    Retour: {"id", "url", "amount"}
    """
    if amount <= 0:
        raise InvalidCart("Invalid amount")
    metadata = meta.make_metadata(lines, amount, prep_time=prep_time)
    session = stripe_client.create_session(
        line_items=to_line_items(amount),
        metadata=metadata,
        **checkout_urls(base_url),
    )
    logger.info(
        "payments.checkout session opened id=%s amount=%s (%s %s)",
        session.get("id"), amount, to_major_string(amount), config.CURRENCY,
    )
    return {"id": session.get("id"), "url": session.get("url"), "amount": amount}

def process_cart_purchase(
    items: List[Dict[str, Any]],
    snapshot: CatalogSnapshot,
    *,
    prep_time: Optional[int] = None,
    base_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Point d'entrée du checkout: calcule le total promotions comprises puis ouvre la session.
    Toute erreur de pricing bloque le checkout avant tout appel Stripe.
    """
    amount, lines = price_cart(items, snapshot)
    return open_checkout_session(amount, lines, prep_time=prep_time, base_url=base_url)
