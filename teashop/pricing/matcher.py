"""
Appariement panier / promotions.

Chaque ligne est résolue contre le catalogue (prix figé en pence), puis rangée
soit dans le groupe (catégorie, taille) d'une promotion active, soit dans le
résiduel payé plein tarif.
"""
import logging
from typing import Dict, Iterable, List

from teashop.errors import InvalidProduct
from .models import CartItem, CartLine, CatalogSnapshot, GroupKey, MatchResult, Promotion, PromotionGroup
from .money import to_minor_units

logger = logging.getLogger(__name__)

# module teashop.pricing.matcher
def index_promotions(promotions: Iterable[Promotion]) -> Dict[GroupKey, Promotion]:
    """
    Construit {(catégorie, taille): promotion} une fois par calcul.
    - Seules les promotions actives participent.
    - En cas de doublon sur une clé, la première dans l'ordre du catalogue gagne.
    """
    index: Dict[GroupKey, Promotion] = {}
    for promo in promotions:
        if not promo.active:
            continue
        if promo.key in index:
            logger.warning(
                "pricing.matcher duplicate active promotion key=%s kept=%s ignored=%s",
                promo.key, index[promo.key].id, promo.id,
            )
            continue
        index[promo.key] = promo
    return index

def resolve_line(item: CartItem, snapshot: CatalogSnapshot) -> CartLine:
    product = snapshot.get_product(item.product_id)
    if product is None:
        raise InvalidProduct(item.product_id)
    try:
        unit_price = to_minor_units(product.price)
    except ValueError:
        raise InvalidProduct(item.product_id, f"Prix invalide pour le produit {item.product_id}")
    if unit_price < 0:
        raise InvalidProduct(item.product_id, f"Prix négatif pour le produit {item.product_id}")
    return CartLine(
        product_id=item.product_id,
        quantity=item.quantity,
        category=item.category or product.category,
        size=item.size,
        unit_price=unit_price,
    )

def match_promotions(cart: List[CartItem], snapshot: CatalogSnapshot) -> MatchResult:
    """
    Range les lignes du panier par groupe de promotion.
    - InvalidProduct si une ligne référence un produit absent du snapshot (fatal).
    - Catégorie effective: celle de la ligne si fournie, sinon celle du produit.
    """
    promotions = index_promotions(snapshot.promotions)
    result = MatchResult()
    for item in cart:
        line = resolve_line(item, snapshot)
        result.lines.append(line)
        promo = promotions.get(line.key)
        if promo is None:
            result.residual.append(line)
            continue
        group = result.groups.get(line.key)
        if group is None:
            group = result.groups[line.key] = PromotionGroup(promotion=promo)
        group.lines.append(line)
    return result
