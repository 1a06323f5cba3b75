"""
Module 'payments' (feature-first): point d'entrée public.
Réunit metadata Stripe, client Stripe et services de checkout.
"""

from .metadata import make_metadata, extract_metadata_from_session
from .stripe_client import require_stripe, create_session, get_session, parse_event
from .service import to_line_items, checkout_urls, open_checkout_session, process_cart_purchase

__all__ = [
    # metadata
    "make_metadata",
    "extract_metadata_from_session",
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "parse_event",
    # services
    "to_line_items",
    "checkout_urls",
    "open_checkout_session",
    "process_cart_purchase",
]
