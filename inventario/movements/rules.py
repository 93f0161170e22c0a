import logging
from typing import Dict

from .exceptions import UnknownMovementTypeError
from .models import MovementRules, MovementType

logger = logging.getLogger(__name__)

# Table exhaustive: une entrée par type, aucune valeur par défaut
MOVEMENT_RULES: Dict[MovementType, MovementRules] = {
    # from interdit, to forcé sur la bodega central
    MovementType.INGRESO: MovementRules(
        allow_from=False,
        allow_to=True,
        requires_from=False,
        requires_to=True,
        requires_any_location=True,
        requires_both_distinct=False,
        forbid_from=True,
        forbid_to=False,
    ),
    # from forcé sur la bodega central, to optionnel
    MovementType.USO: MovementRules(
        allow_from=True,
        allow_to=True,
        requires_from=True,
        requires_to=False,
        requires_any_location=True,
        requires_both_distinct=False,
        forbid_from=False,
        forbid_to=False,
    ),
    MovementType.TRASPASO: MovementRules(
        allow_from=True,
        allow_to=True,
        requires_from=True,
        requires_to=True,
        requires_any_location=True,
        requires_both_distinct=True,
        forbid_from=False,
        forbid_to=False,
    ),
    MovementType.AJUSTE: MovementRules(
        allow_from=True,
        allow_to=True,
        requires_from=False,
        requires_to=False,
        requires_any_location=True,
        requires_both_distinct=False,
        forbid_from=False,
        forbid_to=False,
    ),
}


def coerce_movement_type(tipo) -> MovementType:
    """Convertit une valeur brute en MovementType ou lève UnknownMovementTypeError."""
    if isinstance(tipo, MovementType):
        return tipo
    try:
        return MovementType(tipo)
    except ValueError:
        raise UnknownMovementTypeError(tipo) from None


def resolve_movement_rules(tipo) -> MovementRules:
    """Retourne les contraintes de locaciones du type donné.

    Un type inconnu est une erreur (pas de repli silencieux sur `ajuste`).
    """
    return MOVEMENT_RULES[coerce_movement_type(tipo)]
