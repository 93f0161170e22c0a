import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from inventario.api.models import MovimientoOut
from inventario.catalogs.service import CatalogStore

from .alerts import build_movement_alert, resolve_unit_label
from .constants import MOVEMENT_TYPE_DEFINITIONS
from .dependencies import (
    CatalogStoreDep,
    SettingsDep,
    StockGuardDep,
    SubmissionControllerDep,
)
from .exceptions import UnknownMovementTypeError
from .models import (
    MovementAlertData,
    MovementFormErrors,
    MovementFormState,
    MovementRules,
    MovementType,
    StockSnapshot,
    SubmitState,
)
from .payload import build_movimiento_payload
from .rules import resolve_movement_rules
from .validation import check_stock, validate_movement_form

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Movimientos"])


# --- Schémas de réponse ---

class MovementTypeDefinition(BaseModel):
    value: MovementType
    label: str
    description: str
    rules: MovementRules


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: MovementFormErrors
    quantity: Optional[float] = None
    stock: Optional[StockSnapshot] = None
    payload: Optional[Dict[str, Any]] = None


class SubmissionResponse(BaseModel):
    movimiento: Optional[MovimientoOut] = None
    payload: Dict[str, Any]
    alerta: Optional[MovementAlertData] = None


# --- Error Handling Helper ---
def handle_movement_errors(e: Exception):
    if isinstance(e, UnknownMovementTypeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.error(f"[Movimientos API] Unexpected error: {e}", exc_info=True)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error processing movement request.",
    )


async def _alert_for(movimiento: MovimientoOut, catalogs: CatalogStore) -> Optional[MovementAlertData]:
    names = {}
    for kind in ("productos", "locaciones", "personas", "proveedores", "uoms"):
        await catalogs.ensure(kind)
        names[kind] = catalogs.names_by_id(kind)
    productos = catalogs.get("productos").data or []
    producto = next((p for p in productos if p.id == movimiento.producto_id), None)
    unit_label = resolve_unit_label(producto, names["uoms"])
    return build_movement_alert(movimiento, names, unit_label)


# --- Endpoints --- #

@router.get("/tipos", response_model=List[MovementTypeDefinition])
async def list_movement_types():
    """Liste les types de mouvement avec leurs contraintes de locaciones."""
    return [
        MovementTypeDefinition(rules=resolve_movement_rules(definition["value"]), **definition)
        for definition in MOVEMENT_TYPE_DEFINITIONS
    ]


@router.get("/stock", response_model=StockSnapshot)
async def read_stock(
    stock_guard: StockGuardDep,
    producto_id: int = Query(..., ge=1),
    tipo: MovementType = Query(MovementType.INGRESO),
    from_locacion_id: Optional[int] = Query(None, ge=1),
):
    """Stock courant du produit dans la locación effective du type donné."""
    logger.info(f"API read_stock: producto={producto_id}, tipo={tipo.value}, from={from_locacion_id}")
    form = MovementFormState(tipo=tipo, producto_id=producto_id, from_location_id=from_locacion_id)
    try:
        stock_guard.sync(form)
        return await stock_guard.wait()
    finally:
        stock_guard.close()


@router.post("/validar", response_model=ValidationResponse)
async def validate_movement(
    form: MovementFormState,
    stock_guard: StockGuardDep,
    settings: SettingsDep,
):
    """Valide un formulaire sans rien enregistrer (contrôle de stock inclus pour les usos)."""
    logger.info(f"API validate_movement: tipo={form.tipo}, producto={form.producto_id}")
    try:
        validation = validate_movement_form(form, settings.CENTRAL_LOCATION_ID)
        errors = validation.errors
        snapshot = None
        if validation.is_valid and form.tipo == MovementType.USO:
            stock_guard.sync(form)
            snapshot = await stock_guard.wait()
            errors = errors.merge(check_stock(form.tipo, snapshot, validation.quantity))
        stock_guard.close()

        payload = None
        if not errors.has_errors():
            payload = build_movimiento_payload(
                form, settings.CENTRAL_LOCATION_ID, validation.quantity
            ).to_request_body()
        return ValidationResponse(
            is_valid=not errors.has_errors(),
            errors=errors,
            quantity=validation.quantity,
            stock=snapshot,
            payload=payload,
        )
    except HTTPException:
        raise
    except Exception as e:
        handle_movement_errors(e)


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_movement(
    form: MovementFormState,
    controller: SubmissionControllerDep,
    catalogs: CatalogStoreDep,
):
    """Valide, contrôle le stock puis enregistre le mouvement auprès du backend."""
    logger.info(f"API create_movement: tipo={form.tipo}, producto={form.producto_id}")
    try:
        controller.form = form
        if form.tipo == MovementType.USO:
            controller.stock_guard.sync(form)
            await controller.stock_guard.wait()
        outcome = await controller.submit()
    except HTTPException:
        raise
    except Exception as e:
        handle_movement_errors(e)
    finally:
        controller.close()

    if outcome.state == SubmitState.ERROR:
        error = outcome.api_error
        status_code = error.status if error.status >= 400 else status.HTTP_502_BAD_GATEWAY
        return JSONResponse(status_code=status_code, content={"error": error.model_dump()})

    if outcome.state != SubmitState.SUCCESS:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"errors": outcome.errors.as_dict()},
        )

    alerta = None
    if outcome.movimiento is not None:
        alerta = await _alert_for(outcome.movimiento, catalogs)
    return SubmissionResponse(
        movimiento=outcome.movimiento,
        payload=outcome.payload.to_request_body(),
        alerta=alerta,
    )
