"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Les erreurs du SDK sont traduites en erreurs métier (ProviderUnavailable, SessionNotFound,
SignatureVerificationFailed); aucun retry ici.
"""
import logging
from typing import Any, Dict, List

import stripe
from fastapi import Request

from teashop import config
from teashop.errors import ProviderUnavailable, SessionNotFound, SignatureVerificationFailed

logger = logging.getLogger(__name__)

# module teashop.payments.stripe_client
def to_plain(value: Any) -> Any:
    """
    Objet du SDK Stripe -> dict Python, objets imbriqués compris (metadata, payment_intent).
    Les versions récentes du SDK ne dérivent plus StripeObject de dict: on convertit à la frontière.
    """
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict) and not isinstance(value, dict):
        value = to_dict()
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_plain(v) for v in value]
    return value

def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - Sans clé, aucun appel n'est tenté: ProviderUnavailable.
    """
    if not config.STRIPE_SECRET_KEY:
        raise ProviderUnavailable("STRIPE_SECRET_KEY manquant")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def create_session(
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, str],
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (mode paiement, carte).
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://...", "amount_total": 950})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(
            line_items=line_items,
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            payment_method_types=["card"],
        )
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.create_session failed")
        raise ProviderUnavailable(f"Création de session impossible: {e.user_message or e}") from e
    return to_plain(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "payment_status", "metadata", "created", etc.
    """
    if not session_id:
        raise SessionNotFound("session_id manquant")
    require_stripe()
    try:
        session = stripe.checkout.Session.retrieve(session_id, expand=["payment_intent"])
    except stripe.InvalidRequestError as e:
        if getattr(e, "code", None) == "resource_missing":
            raise SessionNotFound(f"Session introuvable: {session_id}") from e
        logger.exception("payments.stripe_client.get_session failed session_id=%s", session_id)
        raise ProviderUnavailable(f"Lecture de session impossible: {e.user_message or e}") from e
    except stripe.StripeError as e:
        logger.exception("payments.stripe_client.get_session failed session_id=%s", session_id)
        raise ProviderUnavailable(f"Lecture de session impossible: {e.user_message or e}") from e
    return to_plain(session)

def last_payment_error(session: Dict[str, Any]) -> str | None:
    """Raison du dernier échec de paiement (payment_intent étendu), si Stripe la fournit."""
    intent = session.get("payment_intent")
    if not hasattr(intent, "get"):
        return None
    error = intent.get("last_payment_error")
    if not hasattr(error, "get"):
        return None
    return error.get("message") or error.get("code")

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    - Sans secret configuré, tout événement est refusé (pas de mode non signé)
    Retour: l’événement en dict (objets imbriqués compris) si la signature est valide.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    if not config.STRIPE_WEBHOOK_SECRET:
        logger.error("payments.webhook rejected: STRIPE_WEBHOOK_SECRET manquant")
        raise SignatureVerificationFailed("Webhook secret non configuré")
    if not sig_header:
        raise SignatureVerificationFailed("En-tête Stripe-Signature manquant")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, config.STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        raise SignatureVerificationFailed(f"Payload invalide: {e}") from e
    except stripe.SignatureVerificationError as e:
        raise SignatureVerificationFailed(f"Signature invalide: {e}") from e
    return to_plain(event)
