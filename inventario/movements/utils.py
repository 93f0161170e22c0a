"""
Utilitaires de parsing pour les quantités saisies et les valeurs de stock.
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

THREE_PLACES = Decimal("0.001")

# Nombre décimal simple: signe, chiffres, point, exposant (pas de "_", ni "NaN"/"Infinity")
NUMERIC_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def normalize_quantity(value: Optional[str]) -> str:
    """Accepte la virgule comme séparateur décimal et retire les espaces."""
    return (value or "").replace(",", ".").strip()


def parse_decimal(value: Union[str, int, float, None]) -> Optional[Decimal]:
    """
    Convertit une saisie (texte, entier ou flottant) en Decimal fini.

    Returns:
        Decimal ou None si la valeur est vide, non numérique ou hors de la
        plage d'un float.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        raw = str(value)
    else:
        raw = normalize_quantity(value)
    if not raw or not NUMERIC_PATTERN.match(raw):
        return None
    try:
        parsed = Decimal(raw)
    except InvalidOperation:
        return None
    if not parsed.is_finite() or not math.isfinite(float(parsed)):
        return None
    return parsed


def count_decimals(value: Decimal) -> int:
    """Nombre de décimales significatives ("1.2340" -> 3)."""
    exponent = value.normalize().as_tuple().exponent
    return -exponent if exponent < 0 else 0


def parse_stock_value(raw: Union[str, int, float, None]) -> Optional[float]:
    """Valeur de stock renvoyée par le backend: nombre ou texte localisé ("12,5")."""
    parsed = parse_decimal(raw)
    return float(parsed) if parsed is not None else None


def round_quantity(quantity: float) -> float:
    """Canonise une quantité sur 3 décimales."""
    return float(Decimal(str(quantity)).quantize(THREE_PLACES, rounding=ROUND_HALF_UP))
