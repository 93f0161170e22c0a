"""
Traduction d'un mouvement créé en données d'affichage (noms au lieu d'ids).
"""
from typing import Dict, Mapping, Optional

from inventario.api.models import MovimientoOut, ProductoCatalogItem

from .models import MovementAlertData


def format_uom(producto: Optional[ProductoCatalogItem]) -> str:
    """Libellé d'unité d'un produit, du plus précis au plus générique."""
    if producto is None:
        return ""
    if producto.uom is not None and (producto.uom.abreviatura or producto.uom.nombre):
        return producto.uom.abreviatura or producto.uom.nombre
    if producto.uom_abreviatura or producto.uom_nombre:
        return producto.uom_abreviatura or producto.uom_nombre
    if producto.uom_id:
        return f"UOM {producto.uom_id}"
    return "unidad"


def resolve_unit_label(
    producto: Optional[ProductoCatalogItem], uom_names: Mapping[int, str]
) -> str:
    """Comme format_uom, mais remplace le libellé "UOM n" par le nom du catalogue d'unités."""
    if producto is None:
        return ""
    inline = format_uom(producto)
    if inline and not inline.startswith("UOM "):
        return inline
    if producto.uom_id and uom_names.get(producto.uom_id):
        return uom_names[producto.uom_id]
    return inline


def _name(names: Mapping[int, str], item_id: Optional[int]) -> Optional[str]:
    if not item_id:
        return None
    return names.get(item_id) or f"ID {item_id}"


def build_movement_alert(
    movimiento: MovimientoOut,
    names: Dict[str, Mapping[int, str]],
    unit_label: Optional[str] = None,
) -> Optional[MovementAlertData]:
    """
    Construit l'alerte de confirmation pour un ingreso ou un uso.

    Args:
        movimiento: Enregistrement brut renvoyé par le backend.
        names: Maps id -> nom par catalogue ("productos", "locaciones", "personas", "proveedores").
        unit_label: Unité affichée du produit.

    Returns:
        MovementAlertData, ou None pour les traspasos et ajustes.
    """
    if movimiento.tipo not in ("ingreso", "uso"):
        return None

    locaciones = names.get("locaciones", {})
    return MovementAlertData(
        tipo=movimiento.tipo,
        producto=_name(names.get("productos", {}), movimiento.producto_id) or f"ID {movimiento.producto_id}",
        cantidad=movimiento.cantidad,
        unidad=unit_label or None,
        locacion_destino=_name(locaciones, movimiento.to_locacion_id),
        locacion_origen=_name(locaciones, movimiento.from_locacion_id),
        persona=_name(names.get("personas", {}), movimiento.persona_id),
        proveedor=_name(names.get("proveedores", {}), movimiento.proveedor_id),
        nota=movimiento.nota or None,
        fecha_iso=movimiento.created_at.isoformat(),
    )
