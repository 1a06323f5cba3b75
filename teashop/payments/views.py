# module teashop.payments.views
"""Endpoints Paiements.
- /checkout: calcule le total (promotions comprises) et ouvre une session Stripe Checkout.
- /quote: même calcul, sans ouvrir de session (affichage du total côté client).
- /webhook: reçoit les événements Stripe signés et matérialise la commande.
- /confirm: polling client (sans webhook): matérialise et renvoie la commande.
Le webhook et /confirm peuvent s'exécuter dans n'importe quel ordre pour une même session:
OrderMaterializer garantit une seule commande par session.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from teashop.catalog.repository import load_snapshot
from teashop.errors import CheckoutError
from teashop.orders.deps import get_materializer
from teashop.orders.materializer import OrderMaterializer
from teashop.pricing import price_cart
from teashop.pricing.models import CatalogSnapshot
from teashop.utils.rate_limit import optional_rate_limit

from . import service as payments_service
from . import stripe_client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])

COMPLETION_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # lignes validées par teashop.pricing.cart.parse_cart (erreurs métier 400, pas 422)
    items: List[Dict[str, Any]] = Field(default_factory=list)
    prep_time: Optional[int] = Field(default=None, alias="prepTime", ge=0)


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(body: CheckoutRequest, snapshot: CatalogSnapshot = Depends(load_snapshot)):
    """
    Crée une session Checkout Stripe pour le panier.
    - Entrée JSON: { "items": [ { "productId", "quantity", "size", "category"? }, ... ], "prepTime"? }
    - Le prix vient toujours du catalogue, jamais du client.
    - Réponse: {id, url, amount} (amount en pence)
    - Erreurs: 400 panier/produit invalide, 500 promotion mal configurée, 502 Stripe indisponible
    """
    return payments_service.process_cart_purchase(body.items, snapshot, prep_time=body.prep_time)


@router.post("/quote")
def quote_cart(body: CheckoutRequest, snapshot: CatalogSnapshot = Depends(load_snapshot)):
    """Calcule le total du panier sans ouvrir de session Stripe."""
    amount, _ = price_cart(body.items, snapshot)
    return {"amount": amount}


@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(
    event: Dict[str, Any] = Depends(stripe_client.parse_event),
    materializer: OrderMaterializer = Depends(get_materializer),
):
    """
    Webhook Stripe: matérialise la commande sur checkout.session.completed / async_payment_succeeded.
    - Signature vérifiée avant toute action (400 sinon), y compris avant la construction du magasin:
      les dépendances sont résolues dans l'ordre des paramètres.
    - Réponse {"received": true} quel que soit le résultat métier, pour éviter les re-livraisons en boucle.
    - Les erreurs d'infrastructure (magasin indisponible) remontent en 500: Stripe re-livrera.
    """
    event_type = event.get("type")
    if event_type not in COMPLETION_EVENTS:
        logger.info("payments.webhook ignored type=%s", event_type)
        return {"received": True}

    session_ref = ((event.get("data") or {}).get("object") or {}).get("id")
    if not session_ref:
        logger.warning("payments.webhook %s without session id", event_type)
        return {"received": True}
    try:
        order = await run_in_threadpool(materializer.materialize, session_ref)
        logger.info("payments.webhook materialized session=%s total=%s", session_ref, order.total_amount)
    except CheckoutError as e:
        logger.warning("payments.webhook session=%s not materialized: %s (%s)", session_ref, e.detail, e.code)
    return {"received": True}


@router.get("/confirm")
def confirm_checkout_get(session_id: str, materializer: OrderMaterializer = Depends(get_materializer)):
    """
    Alternative sans webhook: vérifie la session Stripe et renvoie la commande (créée au besoin).
    - 409 si le paiement n'est pas encore confirmé, 404 si la session est inconnue de Stripe.
    """
    order = materializer.materialize(session_id)
    return order.to_document()


@router.post("/confirm")
async def confirm_checkout_post(request: Request, materializer: OrderMaterializer = Depends(get_materializer)):
    """
    Variante POST: accepte session_id en query ou JSON body {"session_id": "..."}.
    - Erreurs: 400 si session_id manquant.
    """
    session_id = request.query_params.get("session_id")
    if not session_id:
        try:
            body = await request.json()
            session_id = body.get("session_id") if isinstance(body, dict) else None
        except ValueError:
            session_id = None
    if not session_id:
        raise HTTPException(status_code=400, detail="session_id manquant")
    order = await run_in_threadpool(materializer.materialize, session_id)
    return order.to_document()
