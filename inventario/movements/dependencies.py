import logging
from typing import Annotated

from fastapi import Depends, Request

from inventario.core.config import InventorySettings, get_settings
from inventario.api.domain.interfaces import AbstractInventoryApi
from inventario.api.infrastructure.http_client import HttpInventoryApi
from inventario.catalogs.service import CatalogStore
from inventario.movements.service import MovementSubmissionController
from inventario.movements.stock_guard import StockGuard

logger = logging.getLogger(__name__)

SettingsDep = Annotated[InventorySettings, Depends(get_settings)]


def get_inventory_api(request: Request, settings: SettingsDep) -> AbstractInventoryApi:
    """Fournit le client de l'API d'inventaire partagé par l'application.

    Créé au démarrage (lifespan) et, à défaut, à la première requête.
    """
    api = getattr(request.app.state, "inventory_api", None)
    if api is None:
        logger.debug("Creating HttpInventoryApi on first request")
        api = HttpInventoryApi(settings=settings)
        request.app.state.inventory_api = api
    return api

InventoryApiDep = Annotated[AbstractInventoryApi, Depends(get_inventory_api)]


def get_catalog_store(request: Request, api: InventoryApiDep, settings: SettingsDep) -> CatalogStore:
    """Fournit le cache de catalogues lié au client courant."""
    store = getattr(request.app.state, "catalog_store", None)
    if store is None or store.api is not api:
        store = CatalogStore(api, stale_seconds=settings.CATALOG_STALE_SECONDS)
        request.app.state.catalog_store = store
    return store

CatalogStoreDep = Annotated[CatalogStore, Depends(get_catalog_store)]


def get_stock_guard(api: InventoryApiDep, settings: SettingsDep) -> StockGuard:
    """Un StockGuard par requête (aucun état partagé entre formulaires)."""
    return StockGuard(api, settings.CENTRAL_LOCATION_ID)

StockGuardDep = Annotated[StockGuard, Depends(get_stock_guard)]


def get_submission_controller(
    api: InventoryApiDep,
    stock_guard: StockGuardDep,
    settings: SettingsDep,
) -> MovementSubmissionController:
    logger.debug("Providing MovementSubmissionController")
    return MovementSubmissionController(
        api=api,
        central_location_id=settings.CENTRAL_LOCATION_ID,
        stock_guard=stock_guard,
    )

SubmissionControllerDep = Annotated[MovementSubmissionController, Depends(get_submission_controller)]
