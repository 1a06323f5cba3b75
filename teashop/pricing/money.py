# teashop.pricing.money

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

Money = Decimal

def D(x: Any) -> Money:
    if isinstance(x, bool):
        raise ValueError("montant booléen")
    return x if isinstance(x, Decimal) else Decimal(str(x if x is not None else "0"))

def to_minor_units(major: Any) -> int:
    """
    Convertit un prix en unités majeures (3.50) en unités mineures entières (350).
    - Arrondi au plus proche, moitiés loin de zéro (ROUND_HALF_UP de Decimal).
    - Lève ValueError si la valeur n'est pas un nombre fini.
    """
    if major is None or major == "":
        raise ValueError("Montant manquant")
    try:
        value = D(major)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Montant invalide: {major!r}") from e
    if not value.is_finite():
        raise ValueError(f"Montant invalide: {major!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def to_major_string(minor: int) -> str:
    return str((Decimal(minor) / 100).quantize(Decimal("0.01")))
