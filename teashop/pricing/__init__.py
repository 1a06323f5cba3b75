"""
Module 'pricing' (feature-first): point d'entrée public.
Réunit parsing du panier, appariement des promotions et agrégation du total en pence.
"""
from typing import Any, Dict, List, Tuple

from .models import CartItem, CartLine, CatalogSnapshot, MatchResult, Product, Promotion, PromotionGroup
from .cart import parse_cart
from .matcher import index_promotions, match_promotions
from .aggregator import aggregate_total
from .money import to_minor_units


def price_cart(items: List[Dict[str, Any]], snapshot: CatalogSnapshot) -> Tuple[int, List[CartLine]]:
    """
    Calcule le total (pence) d'un panier brut contre un catalogue figé.
    Retour: (total, lignes résolues dans l'ordre du panier).
    Toute erreur interrompt le calcul (aucun total partiel).
    """
    match = match_promotions(parse_cart(items), snapshot)
    return aggregate_total(match), match.lines


__all__ = [
    # models
    "CartItem",
    "CartLine",
    "CatalogSnapshot",
    "MatchResult",
    "Product",
    "Promotion",
    "PromotionGroup",
    # steps
    "parse_cart",
    "index_promotions",
    "match_promotions",
    "aggregate_total",
    "to_minor_units",
    "price_cart",
]
