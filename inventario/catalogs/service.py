import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from inventario.api.domain.interfaces import AbstractInventoryApi

logger = logging.getLogger(__name__)

CatalogKind = Literal["productos", "locaciones", "personas", "proveedores", "uoms"]
CATALOG_KINDS = ("productos", "locaciones", "personas", "proveedores", "uoms")
CatalogStatus = Literal["idle", "loading", "ready", "error"]

DEFAULT_STALE_SECONDS = 300.0


@dataclass
class CatalogEntry:
    status: CatalogStatus = "idle"
    data: Optional[List[Any]] = None
    error: Optional[str] = None
    timestamp: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.status == "ready" and not self.data


class CatalogStore:
    """Cache partagé des catalogues (productos, locaciones, personas, ...).

    Chaque catalogue expose un statut idle|loading|ready|error; les erreurs de
    chargement sont conservées dans l'entrée, jamais propagées.
    """

    def __init__(
        self,
        api: AbstractInventoryApi,
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._entries: Dict[str, CatalogEntry] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._fetchers: Dict[str, Callable[[], Awaitable[List[Any]]]] = {
            "productos": api.list_productos,
            "locaciones": api.list_locaciones,
            "personas": api.list_personas,
            "proveedores": api.list_proveedores,
            "uoms": api.list_uoms,
        }

    def get(self, kind: CatalogKind) -> CatalogEntry:
        self._check_kind(kind)
        return self._entries.setdefault(kind, CatalogEntry())

    def is_stale(self, kind: CatalogKind) -> bool:
        entry = self.get(kind)
        return entry.timestamp is None or self._clock() - entry.timestamp > self.stale_seconds

    async def ensure(self, kind: CatalogKind) -> CatalogEntry:
        """Charge le catalogue s'il est vide, en erreur ou périmé."""
        entry = self.get(kind)
        if entry.status == "loading" and kind in self._inflight:
            await asyncio.wait({self._inflight[kind]})
            return self.get(kind)
        if entry.status == "ready" and not self.is_stale(kind):
            return entry
        return await self.reload(kind)

    async def reload(self, kind: CatalogKind) -> CatalogEntry:
        """Force le rechargement du catalogue."""
        self._check_kind(kind)
        task = self._inflight.get(kind)
        if task is None or task.done():
            task = asyncio.create_task(self._fetch(kind))
            self._inflight[kind] = task
            self._entries[kind] = CatalogEntry(status="loading")
        await asyncio.wait({task})
        return self.get(kind)

    def invalidate(self, kind: Optional[CatalogKind] = None) -> None:
        kinds = [kind] if kind else list(self._entries)
        for key in kinds:
            self._entries[key] = CatalogEntry()
        logger.debug(f"[CatalogStore] Catalogues invalidés: {kinds}")

    def names_by_id(self, kind: CatalogKind) -> Dict[int, str]:
        entry = self.get(kind)
        names: Dict[int, str] = {}
        for item in entry.data or []:
            if kind == "personas":
                names[item.id] = f"{item.nombre} {item.apellidos or ''}".strip()
            else:
                names[item.id] = item.nombre.strip()
        return names

    async def _fetch(self, kind: str) -> None:
        try:
            data = await self._fetchers[kind]()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[CatalogStore] Échec chargement '{kind}': {e}")
            self._entries[kind] = CatalogEntry(status="error", error=str(e) or "Error")
        else:
            self._entries[kind] = CatalogEntry(status="ready", data=data, timestamp=self._clock())
            logger.info(f"[CatalogStore] Catalogue '{kind}' chargé ({len(data)} éléments).")
        finally:
            self._inflight.pop(kind, None)

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in CATALOG_KINDS:
            raise ValueError(f"Catálogo desconocido: {kind!r}")
