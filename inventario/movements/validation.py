import logging
from typing import Optional

from . import constants
from .exceptions import UnknownMovementTypeError
from .models import (
    MovementFormErrors,
    MovementFormState,
    MovementType,
    StockSnapshot,
    ValidationResult,
)
from .rules import coerce_movement_type, resolve_movement_rules
from .utils import count_decimals, parse_decimal

logger = logging.getLogger(__name__)


def _validate_quantity(raw: str, errors: dict) -> Optional[float]:
    parsed = parse_decimal(raw)
    if not (raw or "").strip():
        errors["quantity"] = constants.ERROR_QUANTITY_REQUIRED
    elif parsed is None:
        errors["quantity"] = constants.ERROR_QUANTITY_NOT_NUMERIC
    elif parsed <= 0:
        errors["quantity"] = constants.ERROR_QUANTITY_NOT_POSITIVE
    elif count_decimals(parsed) > constants.MAX_QUANTITY_DECIMALS:
        errors["quantity"] = constants.ERROR_QUANTITY_PRECISION
    return float(parsed) if parsed is not None else None


def _apply_location_rules(form: MovementFormState, tipo: MovementType, errors: dict) -> None:
    rules = resolve_movement_rules(tipo)
    from_id = form.from_location_id
    to_id = form.to_location_id

    if rules.forbid_from and from_id is not None:
        errors["from_location_id"] = constants.ERROR_FROM_FORBIDDEN
    if rules.forbid_to and to_id is not None:
        errors["to_location_id"] = constants.ERROR_TO_FORBIDDEN

    if rules.requires_from and not from_id:
        errors["from_location_id"] = constants.ERROR_FROM_REQUIRED
    if rules.requires_to and not to_id:
        errors["to_location_id"] = constants.ERROR_TO_REQUIRED

    if rules.requires_any_location and not from_id and not to_id:
        errors.setdefault("from_location_id", constants.ERROR_ANY_LOCATION)
        errors.setdefault("to_location_id", constants.ERROR_ANY_LOCATION)

    if rules.requires_both_distinct and from_id and to_id and from_id == to_id:
        errors["to_location_id"] = constants.ERROR_SAME_LOCATION


def _apply_central_overrides(
    form: MovementFormState, tipo: MovementType, central_location_id: int, errors: dict
) -> None:
    # Messages plus précis que les règles génériques pour ingreso/uso
    from_id = form.from_location_id
    to_id = form.to_location_id

    if tipo == MovementType.INGRESO:
        if to_id != central_location_id:
            errors["to_location_id"] = constants.ERROR_INGRESO_TO_CENTRAL
        if from_id is not None and from_id != central_location_id:
            errors["from_location_id"] = constants.ERROR_INGRESO_FROM_NOT_CENTRAL
    elif tipo == MovementType.USO:
        if from_id != central_location_id:
            errors["from_location_id"] = constants.ERROR_USO_FROM_CENTRAL
        if to_id is not None and to_id == central_location_id:
            errors["to_location_id"] = constants.ERROR_USO_TO_CENTRAL


def validate_movement_form(form: MovementFormState, central_location_id: int) -> ValidationResult:
    """
    Valide un instantané du formulaire sans effet de bord.

    Toutes les erreurs sont accumulées (un message par champ fautif) et la
    quantité analysée est renvoyée même si elle est invalide.

    Args:
        form: État courant du formulaire.
        central_location_id: ID de la bodega central.

    Returns:
        ValidationResult: is_valid, erreurs par champ, quantité analysée.
    """
    errors: dict = {}
    tipo: Optional[MovementType] = None

    if not form.tipo:
        errors["tipo"] = constants.ERROR_TIPO_REQUIRED
    else:
        try:
            tipo = coerce_movement_type(form.tipo)
        except UnknownMovementTypeError as e:
            errors["tipo"] = e.message

    if not form.producto_id:
        errors["producto_id"] = constants.ERROR_PRODUCTO_REQUIRED

    quantity = _validate_quantity(form.quantity, errors)

    if form.producto_id and not form.confirm_unit:
        errors["confirm_unit"] = constants.ERROR_CONFIRM_UNIT

    if tipo is not None:
        _apply_location_rules(form, tipo, errors)
        _apply_central_overrides(form, tipo, central_location_id, errors)

    result = ValidationResult(
        is_valid=not errors,
        errors=MovementFormErrors(**errors),
        quantity=quantity,
    )
    logger.debug(f"[FormValidator] tipo={form.tipo} valid={result.is_valid} errors={list(errors)}")
    return result


def _format_amount(value: float) -> str:
    return f"{value:g}"


def check_stock(tipo, snapshot: StockSnapshot, quantity: Optional[float]) -> MovementFormErrors:
    """
    Vérifie la suffisance du stock central pour un `uso`.

    Les autres types ne produisent jamais d'erreur.
    """
    if tipo != MovementType.USO:
        return MovementFormErrors()

    if snapshot.status != "ready" or snapshot.value is None:
        return MovementFormErrors(form=constants.ERROR_STOCK_UNVERIFIABLE)

    available = snapshot.value
    if available <= constants.USO_MIN_STOCK_EXCLUSIVE:
        return MovementFormErrors(
            quantity=constants.ERROR_STOCK_TOO_LOW.format(available=_format_amount(available))
        )
    if quantity is not None and quantity > available:
        return MovementFormErrors(
            quantity=constants.ERROR_STOCK_INSUFFICIENT.format(
                requested=_format_amount(quantity), available=_format_amount(available)
            )
        )
    return MovementFormErrors()
