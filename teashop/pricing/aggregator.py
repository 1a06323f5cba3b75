"""
Agrégation du prix final en pence à partir du résultat d'appariement.
"""
import logging
from typing import Any, Mapping

from teashop.errors import InvalidPromotionConfiguration
from .models import MatchResult, Promotion, PromotionGroup
from .money import to_minor_units

logger = logging.getLogger(__name__)

# module teashop.pricing.aggregator
def required_quantity(promo: Promotion) -> int:
    raw = promo.required_quantity
    if isinstance(raw, bool) or raw is None:
        raise InvalidPromotionConfiguration(f"Quantité requise invalide pour la promotion {promo.id or promo.key}")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if not isinstance(raw, int):
        try:
            raw = int(str(raw).strip())
        except ValueError:
            raise InvalidPromotionConfiguration(f"Quantité requise invalide pour la promotion {promo.id or promo.key}")
    if raw < 1:
        raise InvalidPromotionConfiguration(f"Quantité requise invalide pour la promotion {promo.id or promo.key}")
    return raw

def bundle_price(promo: Promotion) -> int:
    """
    Prix du lot en pence pour la taille de la promotion.
    - promo.price peut être un dict {taille: prix} ou un prix unique.
    """
    raw: Any = promo.price
    if isinstance(raw, Mapping):
        if promo.size not in raw:
            raise InvalidPromotionConfiguration(f"Pas de prix pour la taille {promo.size!r} (promotion {promo.id or promo.key})")
        raw = raw[promo.size]
    try:
        price = to_minor_units(raw)
    except ValueError:
        raise InvalidPromotionConfiguration(f"Prix invalide pour la promotion {promo.id or promo.key}")
    if price < 0:
        raise InvalidPromotionConfiguration(f"Prix négatif pour la promotion {promo.id or promo.key}")
    return price

def group_total(group: PromotionGroup) -> int:
    """
    n = quantité totale du groupe, r = quantité requise.
    - n // r lots au prix du lot, puis n % r unités au prix unitaire de leur ligne,
      consommées dans l'ordre du panier.
    - Aucun lot complet: chaque unité à son propre prix.
    """
    r = required_quantity(group.promotion)
    n = group.total_quantity
    sets = n // r
    if sets == 0:
        return sum(line.subtotal for line in group.lines)

    if len({line.unit_price for line in group.lines}) > 1:
        logger.warning(
            "pricing.aggregator mixed unit prices in group key=%s, leftover units charged in cart order",
            group.promotion.key,
        )
    total = sets * bundle_price(group.promotion)
    remainder = n % r
    for line in group.lines:
        if remainder <= 0:
            break
        take = min(line.quantity, remainder)
        total += take * line.unit_price
        remainder -= take
    return total

def aggregate_total(match: MatchResult) -> int:
    total = sum(line.subtotal for line in match.residual)
    for group in match.groups.values():
        total += group_total(group)
    return total
