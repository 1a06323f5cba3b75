"""
Matérialisation idempotente des commandes.

Pour une référence de session Stripe, deux états seulement: absente -> matérialisée (terminal).
Le webhook et le polling client appellent materialize() avec la même référence, dans n'importe
quel ordre et autant de fois que nécessaire. Il n'y a ni verrou ni transaction: la lecture puis
l'écriture ne sont pas atomiques, mais chaque écrivain calcule exactement le même document à partir
des métadonnées figées de la session, et l'écriture est un upsert sur la référence. Deux écrivains
concurrents produisent donc un seul document, identique quel que soit le dernier à écrire.

Conséquence: rien dans la commande ne doit dépendre de l'horloge locale ni du catalogue courant.
createdAt/updatedAt viennent de l'horodatage `created` de la session Stripe.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from teashop.errors import CorruptSessionMetadata, PaymentNotCompleted
from teashop.payments import metadata as meta
from teashop.payments import stripe_client
from .models import Order
from .store import DocumentStore

logger = logging.getLogger(__name__)

PAID = "paid"


def _session_timestamp(session: Mapping[str, Any]) -> str:
    created = session.get("created")
    if isinstance(created, bool) or not isinstance(created, (int, float)):
        raise CorruptSessionMetadata("Horodatage de session manquant")
    return datetime.fromtimestamp(int(created), tz=timezone.utc).isoformat()


def build_order(session_ref: str, session: Mapping[str, Any]) -> Order:
    """Construit la commande de façon déterministe depuis la session (jamais depuis le catalogue)."""
    items, total_amount, prep_time = meta.extract_metadata_from_session(session)
    stamp = _session_timestamp(session)
    try:
        return Order(
            id=session_ref,
            items=items,
            total_amount=total_amount,
            status=PAID,
            prep_time=prep_time,
            created_at=stamp,
            updated_at=stamp,
        )
    except ValidationError as e:
        raise CorruptSessionMetadata(f"Panier de session invalide: {e.error_count()} erreur(s)") from e


class OrderMaterializer:
    def __init__(
        self,
        store: DocumentStore,
        retrieve_session: Optional[Callable[[str], Dict[str, Any]]] = None,
    ):
        self.store = store
        self.retrieve_session = retrieve_session or stripe_client.get_session

    def materialize(self, session_ref: str) -> Order:
        """
        Garantit qu'une commande existe pour une session payée et la retourne.
        - PaymentNotCompleted si la session n'est pas payée (aucune écriture).
        - Chemin rapide: commande déjà présente -> retournée telle quelle.
        - Sinon: reconstruction depuis les métadonnées (CorruptSessionMetadata si illisibles), upsert.
        """
        session = self.retrieve_session(session_ref)
        payment_status = session.get("payment_status") or ""
        if payment_status != PAID:
            reason = stripe_client.last_payment_error(session)
            logger.warning(
                "orders.materialize not paid session=%s payment_status=%s reason=%s",
                session_ref, payment_status, reason,
            )
            raise PaymentNotCompleted(
                f"Paiement non confirmé (payment_status={payment_status or 'inconnu'})",
                reason=reason,
            )

        existing = self.store.get(session_ref)
        if existing is not None:
            logger.info("orders.materialize already present session=%s", session_ref)
            return Order.model_validate(existing)

        try:
            order = build_order(session_ref, session)
        except CorruptSessionMetadata as e:
            logger.critical("orders.materialize DATA INTEGRITY session=%s detail=%s", session_ref, e.detail)
            raise

        self.store.set(session_ref, order.to_document())
        logger.info(
            "orders.materialize created session=%s total=%s items=%s",
            session_ref, order.total_amount, len(order.items),
        )
        return order
