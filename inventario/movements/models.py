from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from inventario.api.models import ApiErrorDetail, MovimientoCreatePayload, MovimientoOut


# --- Type de mouvement ---

class MovementType(str, Enum):
    INGRESO = "ingreso"
    USO = "uso"
    TRASPASO = "traspaso"
    AJUSTE = "ajuste"


class MovementRules(BaseModel):
    """Contraintes de locaciones dérivées du type (jamais stockées)."""
    model_config = ConfigDict(frozen=True)

    allow_from: bool
    allow_to: bool
    requires_from: bool
    requires_to: bool
    requires_any_location: bool
    requires_both_distinct: bool
    forbid_from: bool
    forbid_to: bool


# --- État du formulaire ---

class MovementFormState(BaseModel):
    """Saisie utilisateur brute (quantité en texte)."""
    model_config = ConfigDict(validate_assignment=True)

    # str pour accepter aussi une valeur inconnue, rejetée par le RuleResolver
    tipo: Optional[Union[MovementType, str]] = Field(
        default=MovementType.INGRESO, union_mode="left_to_right"
    )
    producto_id: Optional[int] = None
    quantity: str = ""
    from_location_id: Optional[int] = None
    to_location_id: Optional[int] = None
    persona_id: Optional[int] = None
    proveedor_id: Optional[int] = None
    nota: str = ""
    confirm_unit: bool = False


def initial_form_state() -> MovementFormState:
    return MovementFormState()


class MovementFormErrors(BaseModel):
    """Message optionnel par champ, plus un message global (`form`)."""
    tipo: Optional[str] = None
    producto_id: Optional[str] = None
    quantity: Optional[str] = None
    from_location_id: Optional[str] = None
    to_location_id: Optional[str] = None
    confirm_unit: Optional[str] = None
    nota: Optional[str] = None
    form: Optional[str] = None

    def has_errors(self) -> bool:
        return bool(self.as_dict())

    def as_dict(self) -> dict:
        return self.model_dump(exclude_none=True)

    def merge(self, other: "MovementFormErrors") -> "MovementFormErrors":
        """Fusionne `other` par-dessus les erreurs courantes."""
        return self.model_copy(update=other.as_dict())


class ValidationResult(BaseModel):
    is_valid: bool
    errors: MovementFormErrors = Field(default_factory=MovementFormErrors)
    # Quantité analysée au mieux, même en cas d'erreur
    quantity: Optional[float] = None


# --- Snapshot de stock ---

StockStatus = Literal["idle", "loading", "ready", "error"]


class StockSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: StockStatus = "idle"
    producto_id: Optional[int] = None
    locacion_id: Optional[int] = None
    value: Optional[float] = None
    error: Optional[str] = None


# --- Soumission ---

class SubmitState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class MovementAlertData(BaseModel):
    """Données d'affichage de la confirmation (ids traduits en noms)."""
    tipo: Literal["ingreso", "uso"]
    producto: str
    cantidad: float
    unidad: Optional[str] = None
    locacion_destino: Optional[str] = None
    locacion_origen: Optional[str] = None
    persona: Optional[str] = None
    proveedor: Optional[str] = None
    nota: Optional[str] = None
    fecha_iso: Optional[str] = None


class SubmissionOutcome(BaseModel):
    """Résultat d'un appel à `submit()`."""
    state: SubmitState
    errors: MovementFormErrors = Field(default_factory=MovementFormErrors)
    payload: Optional[MovimientoCreatePayload] = None
    movimiento: Optional[MovimientoOut] = None
    api_error: Optional[ApiErrorDetail] = None
