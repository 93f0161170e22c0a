import abc
from typing import List, Optional

from inventario.api.models import (
    LocacionCatalogItem,
    MovimientoCreatePayload,
    MovimientoOut,
    PersonaCatalogItem,
    ProductoCatalogItem,
    ProveedorCatalogItem,
    StockItem,
    UomCatalogItem,
)


class AbstractInventoryApi(abc.ABC):
    """Interface abstraite de l'API d'inventaire distante.

    Toutes les méthodes sont des coroutines annulables: l'annulation de la tâche
    appelante (asyncio) empêche la livraison du résultat.
    """

    @abc.abstractmethod
    async def list_productos(self) -> List[ProductoCatalogItem]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_locaciones(self) -> List[LocacionCatalogItem]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_personas(self) -> List[PersonaCatalogItem]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_proveedores(self) -> List[ProveedorCatalogItem]:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_uoms(self) -> List[UomCatalogItem]:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_stock(self, producto_id: int, locacion_id: Optional[int] = None) -> Optional[StockItem]:
        """
        Récupère le stock courant d'un produit dans une locación.

        Returns:
            Le premier élément renvoyé par le backend, ou None si aucun.

        Raises:
            ApiRequestError: si l'appel échoue.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def create_movimiento(self, payload: MovimientoCreatePayload) -> MovimientoOut:
        """
        Enregistre un mouvement.

        Raises:
            ApiRequestError: avec le détail structuré renvoyé par le backend.
        """
        raise NotImplementedError
