from typing import Optional

from inventario.api.models import MovimientoCreatePayload

from .models import MovementFormState, MovementType
from .rules import coerce_movement_type
from .utils import normalize_quantity, parse_decimal, round_quantity


def build_movimiento_payload(
    form: MovementFormState,
    central_location_id: int,
    parsed_quantity: Optional[float] = None,
) -> MovimientoCreatePayload:
    """
    Construit le payload canonique à partir d'un formulaire déjà validé.

    Les locaciones des types ingreso/uso sont forcées sur la bodega central,
    quelle que soit la saisie.
    """
    tipo = coerce_movement_type(form.tipo)
    if parsed_quantity is None:
        parsed = parse_decimal(normalize_quantity(form.quantity))
        parsed_quantity = float(parsed) if parsed is not None else 0.0

    nota = form.nota.strip()
    fields = {
        "tipo": tipo.value,
        "producto_id": form.producto_id,
        "cantidad": round_quantity(parsed_quantity),
        "persona_id": form.persona_id,
        "proveedor_id": form.proveedor_id,
        "nota": nota or None,
    }

    if tipo == MovementType.INGRESO:
        fields["from_locacion_id"] = None
        fields["to_locacion_id"] = central_location_id
    elif tipo == MovementType.USO:
        fields["from_locacion_id"] = central_location_id
        # Destination purement informative: omise si non fournie
        if form.to_location_id is not None:
            fields["to_locacion_id"] = form.to_location_id
    else:
        fields["from_locacion_id"] = form.from_location_id
        fields["to_locacion_id"] = form.to_location_id

    return MovimientoCreatePayload(**fields)
