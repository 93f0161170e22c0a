"""
Module Movements - validation et enregistrement des mouvements de stock.
"""

from inventario.movements.models import (
    MovementType, MovementRules, MovementFormState, MovementFormErrors,
    StockSnapshot, SubmitState, ValidationResult, initial_form_state,
)
from inventario.movements.rules import resolve_movement_rules
from inventario.movements.validation import validate_movement_form, check_stock
from inventario.movements.payload import build_movimiento_payload
from inventario.movements.stock_guard import StockGuard
from inventario.movements.service import MovementSubmissionController

__all__ = [
    "MovementType", "MovementRules", "MovementFormState", "MovementFormErrors",
    "StockSnapshot", "SubmitState", "ValidationResult", "initial_form_state",
    "resolve_movement_rules", "validate_movement_form", "check_stock",
    "build_movimiento_payload", "StockGuard", "MovementSubmissionController",
]
