import asyncio
import logging
from typing import Callable, Optional, Tuple

from inventario.api.domain.exceptions import ApiRequestError
from inventario.api.domain.interfaces import AbstractInventoryApi

from . import constants
from .models import MovementFormState, MovementType, StockSnapshot
from .utils import parse_stock_value

logger = logging.getLogger(__name__)

StockKey = Tuple[int, int]


class StockGuard:
    """Suit le stock de la paire (producto, locación effective) du formulaire.

    Chaque changement de paire incrémente une génération, annule la requête en
    cours et en lance une nouvelle. Un résultat n'est appliqué que si sa
    génération est toujours la courante: le snapshot reflète donc toujours la
    dernière paire *demandée*, quel que soit l'ordre d'arrivée des réponses.
    """

    def __init__(
        self,
        api: AbstractInventoryApi,
        central_location_id: int,
        on_change: Optional[Callable[[StockSnapshot], None]] = None,
    ):
        self.api = api
        self.central_location_id = central_location_id
        self.on_change = on_change
        self._snapshot = StockSnapshot()
        self._generation = 0
        self._key: Optional[StockKey] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> StockSnapshot:
        return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    def effective_location_id(self, tipo, from_location_id: Optional[int]) -> int:
        if tipo == MovementType.INGRESO:
            return self.central_location_id
        return from_location_id or self.central_location_id

    def sync(self, form: MovementFormState) -> Optional[asyncio.Task]:
        """Aligne le snapshot sur le formulaire; relance une lecture si la paire change."""
        if not form.producto_id:
            if self._key is not None or self._snapshot.status != "idle":
                self._cancel_pending()
                self._generation += 1
                self._key = None
                self._set(StockSnapshot())
            return None

        key = (form.producto_id, self.effective_location_id(form.tipo, form.from_location_id))
        if key == self._key:
            return self._task
        return self._start(key)

    def matches(self, form: MovementFormState) -> bool:
        """Vrai si le snapshot courant porte sur la paire effective du formulaire."""
        if not form.producto_id:
            return False
        snapshot = self._snapshot
        return (snapshot.producto_id, snapshot.locacion_id) == (
            form.producto_id,
            self.effective_location_id(form.tipo, form.from_location_id),
        )

    def reload(self) -> Optional[asyncio.Task]:
        """Relance explicitement la lecture pour la paire courante (action utilisateur)."""
        if self._key is None:
            return None
        return self._start(self._key)

    def close(self) -> None:
        """Annule toute lecture en cours; un résultat tardif sera ignoré."""
        self._cancel_pending()
        self._generation += 1
        self._key = None

    async def wait(self) -> StockSnapshot:
        """Attend la fin de la lecture courante (y compris si elle est remplacée entre-temps)."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._snapshot

    def _start(self, key: StockKey) -> asyncio.Task:
        self._cancel_pending()
        self._generation += 1
        self._key = key
        producto_id, locacion_id = key
        self._set(StockSnapshot(status="loading", producto_id=producto_id, locacion_id=locacion_id))
        logger.debug(f"[StockGuard] Lecture #{self._generation} produit={producto_id} locación={locacion_id}")
        self._task = asyncio.create_task(self._lookup(self._generation, producto_id, locacion_id))
        return self._task

    async def _lookup(self, generation: int, producto_id: int, locacion_id: int) -> None:
        base = {"producto_id": producto_id, "locacion_id": locacion_id}
        try:
            item = await self.api.get_stock(producto_id, locacion_id)
        except asyncio.CancelledError:
            logger.debug(f"[StockGuard] Lecture #{generation} annulée.")
            raise
        except ApiRequestError as e:
            self._apply(generation, StockSnapshot(status="error", error=e.error.message, **base))
            return
        except Exception as e:
            logger.error(f"[StockGuard] Erreur inattendue lecture stock produit={producto_id}: {e}", exc_info=True)
            self._apply(generation, StockSnapshot(status="error", error=constants.ERROR_STOCK_FETCH, **base))
            return

        # Pas de ligne de stock: rien dans cette locación
        value = parse_stock_value(item.stock) if item is not None else 0.0
        self._apply(generation, StockSnapshot(status="ready", value=value, **base))

    def _apply(self, generation: int, snapshot: StockSnapshot) -> bool:
        if generation != self._generation:
            logger.warning(
                f"[StockGuard] Résultat obsolète ignoré (#{generation}, courant #{self._generation})."
            )
            return False
        self._set(snapshot)
        return True

    def _set(self, snapshot: StockSnapshot) -> None:
        self._snapshot = snapshot
        if self.on_change is None:
            return
        try:
            self.on_change(snapshot)
        except Exception as e:
            logger.error(f"[StockGuard] Erreur dans le callback on_change: {e}", exc_info=True)

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
