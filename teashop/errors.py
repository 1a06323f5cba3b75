"""
Erreurs métier du checkout (pricing, session Stripe, matérialisation des commandes).

Chaque erreur porte un status_code HTTP et un code stable, rendus par
teashop.app_setup.exceptions sous la forme {"detail": ..., "code": ...}.
"""
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    status_code = 400
    code = "checkout_error"
    default_detail = "Erreur de checkout"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "code": self.code}


class InvalidCart(CheckoutError):
    """Panier vide ou ligne malformée (quantité <= 0, productId manquant...)."""
    status_code = 400
    code = "invalid_cart"
    default_detail = "Panier invalide"


class InvalidProduct(CheckoutError):
    """Produit inconnu du catalogue: bloque tout le calcul (aucun total partiel)."""
    status_code = 400
    code = "invalid_product"
    default_detail = "Produit introuvable"

    def __init__(self, product_id: str, detail: Optional[str] = None):
        self.product_id = product_id
        super().__init__(detail or f"Produit introuvable: {product_id}")


class InvalidPromotionConfiguration(CheckoutError):
    status_code = 500
    code = "invalid_promotion_configuration"
    default_detail = "Promotion mal configurée"


class ProviderUnavailable(CheckoutError):
    """Appel Stripe en échec (pas de retry dans le core)."""
    status_code = 502
    code = "provider_unavailable"
    default_detail = "Fournisseur de paiement indisponible"


class SessionNotFound(CheckoutError):
    status_code = 404
    code = "session_not_found"
    default_detail = "Session de paiement introuvable"


class CorruptSessionMetadata(CheckoutError):
    status_code = 500
    code = "corrupt_session_metadata"
    default_detail = "Métadonnées de session illisibles"


class PaymentNotCompleted(CheckoutError):
    """Session pas encore payée: le client peut réessayer plus tard."""
    status_code = 409
    code = "payment_not_completed"
    default_detail = "Paiement non vérifié pour le moment"

    def __init__(self, detail: Optional[str] = None, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(detail)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.reason:
            body["reason"] = self.reason
        return body


class SignatureVerificationFailed(CheckoutError):
    status_code = 400
    code = "signature_verification_failed"
    default_detail = "Invalid Stripe webhook payload"
