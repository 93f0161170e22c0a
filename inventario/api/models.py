"""
Schémas d'échange avec l'API d'inventaire distante.
"""
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MovementTypeLiteral = Literal["ingreso", "uso", "traspaso", "ajuste"]


class ApiBaseModel(BaseModel):
    # Les réponses du backend contiennent souvent des champs supplémentaires
    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ======================================================
# Catalogues
# ======================================================

class UomRef(ApiBaseModel):
    id: int
    nombre: str
    abreviatura: Optional[str] = None


class ProductoCatalogItem(ApiBaseModel):
    id: int
    nombre: str
    sku: Optional[str] = None
    uom: Optional[UomRef] = None
    uom_id: Optional[int] = None
    uom_nombre: Optional[str] = None
    uom_abreviatura: Optional[str] = None


class UomCatalogItem(ApiBaseModel):
    id: int
    nombre: str
    abreviatura: Optional[str] = None
    descripcion: Optional[str] = None


class LocacionCatalogItem(ApiBaseModel):
    id: int
    nombre: str
    codigo: Optional[str] = None


class PersonaCatalogItem(ApiBaseModel):
    id: int
    nombre: str
    apellidos: Optional[str] = None
    area: Optional[str] = None


class ProveedorCatalogItem(ApiBaseModel):
    id: int
    nombre: str
    razon_social: Optional[str] = None


CatalogItem = Union[
    ProductoCatalogItem,
    LocacionCatalogItem,
    PersonaCatalogItem,
    ProveedorCatalogItem,
    UomCatalogItem,
]


# ======================================================
# Stock et mouvements
# ======================================================

class StockItem(ApiBaseModel):
    producto_id: int
    locacion_id: Optional[int] = None
    # Le backend renvoie parfois un décimal formaté ("12,500")
    stock: Union[float, int, str, None] = None


class MovimientoCreatePayload(BaseModel):
    """Corps de la requête POST /movimientos."""
    tipo: MovementTypeLiteral
    producto_id: int
    cantidad: float
    from_locacion_id: Optional[int] = None
    to_locacion_id: Optional[int] = None
    persona_id: Optional[int] = None
    proveedor_id: Optional[int] = None
    nota: Optional[str] = None

    def to_request_body(self) -> dict:
        # exclude_unset: un uso sans destination n'envoie pas la clé to_locacion_id
        return self.model_dump(exclude_unset=True)


class MovimientoOut(ApiBaseModel):
    id: int
    created_at: datetime
    tipo: MovementTypeLiteral
    producto_id: int
    cantidad: float
    from_locacion_id: Optional[int] = None
    to_locacion_id: Optional[int] = None
    persona_id: Optional[int] = None
    proveedor_id: Optional[int] = None
    nota: Optional[str] = None


class ApiErrorDetail(BaseModel):
    """Erreur structurée renvoyée (ou reconstruite) pour un appel distant."""
    status: int
    message: str
    detail: Optional[str] = None
    error_detail: Optional[str] = None
    field_errors: Optional[Dict[str, List[str]]] = Field(default=None)
