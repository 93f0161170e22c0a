import asyncio
import logging
from typing import Callable, Optional

from inventario.api.domain.exceptions import ApiRequestError, UNEXPECTED_ERROR_MESSAGE
from inventario.api.domain.interfaces import AbstractInventoryApi
from inventario.api.models import ApiErrorDetail, MovimientoOut

from .models import (
    MovementFormErrors,
    MovementFormState,
    MovementType,
    StockSnapshot,
    SubmissionOutcome,
    SubmitState,
    initial_form_state,
)
from .payload import build_movimiento_payload
from .rules import coerce_movement_type, resolve_movement_rules
from .stock_guard import StockGuard
from .validation import check_stock, validate_movement_form

logger = logging.getLogger(__name__)


class MovementSubmissionController:
    """Orchestre validation -> contrôle de stock -> payload -> envoi.

    Compose trois états indépendants: le formulaire (écrit par la saisie),
    le snapshot de stock (écrit par le StockGuard) et l'état de soumission.
    """

    def __init__(
        self,
        api: AbstractInventoryApi,
        central_location_id: int,
        stock_guard: Optional[StockGuard] = None,
        on_created: Optional[Callable[[MovimientoOut], None]] = None,
    ):
        self.api = api
        self.central_location_id = central_location_id
        self.stock_guard = stock_guard or StockGuard(api, central_location_id)
        self.on_created = on_created

        self.form: MovementFormState = initial_form_state()
        self.errors = MovementFormErrors()
        self.state = SubmitState.IDLE
        self.api_error: Optional[ApiErrorDetail] = None
        self.last_movement: Optional[MovimientoOut] = None
        logger.info("[SubmissionController] Initialisé.")

    @property
    def stock(self) -> StockSnapshot:
        return self.stock_guard.snapshot

    @property
    def is_submitting(self) -> bool:
        return self.state == SubmitState.SUBMITTING

    # --- Saisie ---

    def update(self, **changes) -> MovementFormState:
        """Modifie un ou plusieurs champs puis resynchronise le stock."""
        for field, value in changes.items():
            setattr(self.form, field, value)
        self.stock_guard.sync(self.form)
        return self.form

    def change_tipo(self, tipo) -> MovementFormState:
        """Change le type et efface les locaciones que le nouveau type interdit."""
        tipo = coerce_movement_type(tipo)
        rules = resolve_movement_rules(tipo)
        self.form.tipo = tipo
        if rules.forbid_from:
            self.form.from_location_id = None
        if rules.forbid_to:
            self.form.to_location_id = None
        self.errors = self.errors.model_copy(update={"tipo": None, "form": None})
        self.stock_guard.sync(self.form)
        return self.form

    def reset(self) -> None:
        self.form = initial_form_state()
        self.errors = MovementFormErrors()
        self.api_error = None
        self.stock_guard.sync(self.form)

    def close(self) -> None:
        self.stock_guard.close()

    # --- Soumission ---

    async def submit(self) -> SubmissionOutcome:
        """
        Valide puis envoie le mouvement.

        Un envoi déjà en cours ignore les déclenchements supplémentaires.
        Aucune requête réseau n'est émise si le formulaire est invalide.
        Toute erreur pendant l'envoi termine dans l'état `error`.
        """
        if self.is_submitting:
            logger.warning("[SubmissionController] Envoi déjà en cours, déclenchement ignoré.")
            return SubmissionOutcome(state=self.state, errors=self.errors)

        self.state = SubmitState.VALIDATING
        self.api_error = None

        validation = validate_movement_form(self.form, self.central_location_id)
        errors = validation.errors
        if validation.is_valid and self.form.tipo == MovementType.USO:
            errors = errors.merge(check_stock(self.form.tipo, self._stock_for_form(), validation.quantity))
        self.errors = errors

        if errors.has_errors():
            self.state = SubmitState.IDLE
            logger.info(f"[SubmissionController] Formulaire invalide: {list(errors.as_dict())}")
            return SubmissionOutcome(state=self.state, errors=errors)

        self.state = SubmitState.SUBMITTING
        payload = None
        try:
            payload = build_movimiento_payload(self.form, self.central_location_id, validation.quantity)
            logger.info(f"[SubmissionController] Envoi {payload.tipo} produit={payload.producto_id} cantidad={payload.cantidad}")
            movimiento = await self.api.create_movimiento(payload)
        except asyncio.CancelledError:
            self.state = SubmitState.IDLE
            raise
        except ApiRequestError as e:
            return self._fail(e.error, payload)
        except Exception as e:
            logger.error(f"[SubmissionController] Erreur inattendue à l'envoi: {e}", exc_info=True)
            return self._fail(ApiErrorDetail(status=0, message=UNEXPECTED_ERROR_MESSAGE, detail=str(e)), payload)

        self.last_movement = movimiento
        self.form = initial_form_state()
        self.errors = MovementFormErrors()
        self.state = SubmitState.SUCCESS
        self.stock_guard.sync(self.form)
        if movimiento is not None:
            logger.info(f"[SubmissionController] Mouvement #{movimiento.id} créé.")
            if self.on_created is not None:
                self.on_created(movimiento)
        return SubmissionOutcome(state=self.state, payload=payload, movimiento=movimiento)

    def _stock_for_form(self) -> StockSnapshot:
        """Snapshot de stock, seulement s'il correspond à la paire (produit, locación) du formulaire."""
        # Le formulaire peut avoir été remplacé sans passer par update()
        self.stock_guard.sync(self.form)
        if not self.stock_guard.matches(self.form):
            logger.warning("[SubmissionController] Snapshot de stock sans rapport avec le formulaire, ignoré.")
            return StockSnapshot()
        return self.stock

    def _fail(self, error: ApiErrorDetail, payload) -> SubmissionOutcome:
        # Le formulaire est conservé tel quel pour une nouvelle tentative manuelle
        self.api_error = error
        self.state = SubmitState.ERROR
        logger.warning(f"[SubmissionController] Échec envoi ({error.status}): {error.message}")
        return SubmissionOutcome(state=self.state, payload=payload, api_error=error)
