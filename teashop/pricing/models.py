"""
Structures du calcul de prix: catalogue figé, lignes de panier résolues, groupes de promotion.
Tous les montants résolus sont en unités mineures (pence) et entiers.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

GroupKey = Tuple[Optional[str], Optional[str]]


@dataclass(frozen=True)
class Product:
    id: str
    category: Optional[str]
    price: Any
    name: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        return cls(
            id=str(row.get("id") or ""),
            category=row.get("category"),
            price=row.get("price"),
            name=row.get("name") or "",
        )


@dataclass(frozen=True)
class Promotion:
    category: Optional[str]
    size: Optional[str]
    required_quantity: Any
    price: Any
    active: bool = False
    id: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Promotion":
        required = row.get("required_quantity")
        if required is None:
            required = row.get("requiredQuantity")
        return cls(
            id=str(row.get("id") or ""),
            category=row.get("category"),
            size=row.get("size"),
            required_quantity=required,
            price=row.get("price"),
            active=row.get("active") is True,
        )

    @property
    def key(self) -> GroupKey:
        return (self.category, self.size)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Vue en lecture seule du catalogue pour un calcul de prix."""
    products: Dict[str, Product]
    promotions: Tuple[Promotion, ...] = ()

    @classmethod
    def from_rows(cls, products: List[Dict[str, Any]], promotions: List[Dict[str, Any]]) -> "CatalogSnapshot":
        prods = {}
        for row in products or []:
            product = Product.from_row(row)
            if product.id:
                prods[product.id] = product
        return cls(products=prods, promotions=tuple(Promotion.from_row(r) for r in promotions or []))

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)


@dataclass(frozen=True)
class CartItem:
    """Ligne brute envoyée par le client (prix jamais accepté du client)."""
    product_id: str
    quantity: int
    size: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    category: Optional[str]
    size: Optional[str]
    unit_price: int

    @property
    def key(self) -> GroupKey:
        return (self.category, self.size)

    @property
    def subtotal(self) -> int:
        return self.quantity * self.unit_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "size": self.size,
            "category": self.category,
            "unitPrice": self.unit_price,
        }


@dataclass
class PromotionGroup:
    promotion: Promotion
    lines: List[CartLine] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass
class MatchResult:
    groups: Dict[GroupKey, PromotionGroup] = field(default_factory=dict)
    residual: List[CartLine] = field(default_factory=list)
    # toutes les lignes résolues, dans l'ordre du panier
    lines: List[CartLine] = field(default_factory=list)
