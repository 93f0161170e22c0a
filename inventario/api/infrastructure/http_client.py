import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from inventario.core.config import InventorySettings, get_settings
from inventario.api.domain.interfaces import AbstractInventoryApi
from inventario.api.domain.exceptions import ApiRequestError, UNEXPECTED_ERROR_MESSAGE
from inventario.api.models import (
    ApiErrorDetail,
    LocacionCatalogItem,
    MovimientoCreatePayload,
    MovimientoOut,
    PersonaCatalogItem,
    ProductoCatalogItem,
    ProveedorCatalogItem,
    StockItem,
    UomCatalogItem,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def clean_query(query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Retire les paramètres None pour ne pas les envoyer."""
    if not query:
        return {}
    return {key: value for key, value in query.items() if value is not None}


def normalize_list_response(payload: Any) -> List[Any]:
    """Accepte un tableau JSON brut ou un objet paginé `{items: [...]}`."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    return []


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    # FastAPI renvoie detail sous forme de liste pour les 422
    return json.dumps(value, ensure_ascii=False)


def build_api_error(response: httpx.Response) -> ApiErrorDetail:
    """Construit l'erreur structurée à partir d'une réponse non-2xx."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    detail = _as_text(body.get("detail"))
    field_errors = body.get("errors") if isinstance(body.get("errors"), dict) else None
    return ApiErrorDetail(
        status=response.status_code,
        message=body.get("message") or detail or response.reason_phrase or UNEXPECTED_ERROR_MESSAGE,
        detail=detail,
        error_detail=_as_text(body.get("error_detail") or body.get("errorDetail")),
        field_errors=field_errors,
    )


class HttpInventoryApi(AbstractInventoryApi):
    """Implémentation de l'API d'inventaire via httpx (asynchrone)."""

    def __init__(
        self,
        settings: Optional[InventorySettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.BASE_URL,
            headers=DEFAULT_HEADERS,
            timeout=self.settings.REQUEST_TIMEOUT,
        )
        logger.info(f"[HttpInventoryApi] Client initialisé pour {self.settings.BASE_URL}")

    async def __aenter__(self) -> "HttpInventoryApi":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _url(self, path: str) -> str:
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.settings.BASE_URL}{path}"

    async def _request(
        self,
        path: str,
        method: str = "GET",
        query: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        url = self._url(path)
        logger.debug(f"[HttpInventoryApi] {method} {url} query={clean_query(query)}")
        try:
            response = await self.client.request(
                method,
                url,
                params=clean_query(query),
                json=body,
                headers=DEFAULT_HEADERS,
            )
        except httpx.RequestError as e:
            logger.error(f"[HttpInventoryApi] Erreur réseau sur {method} {url}: {e}")
            raise ApiRequestError.network(e) from e

        if response.is_error:
            error = build_api_error(response)
            logger.warning(f"[HttpInventoryApi] {method} {url} -> {error.status}: {error.message}")
            raise ApiRequestError(error)

        if response.status_code == 204:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"[HttpInventoryApi] Réponse non JSON sur {method} {url}", exc_info=True)
            raise ApiRequestError(
                ApiErrorDetail(status=response.status_code, message=UNEXPECTED_ERROR_MESSAGE),
                original_exception=e,
            ) from e

    async def _list(self, path: str, model: Type[T]) -> List[T]:
        payload = await self._request(
            path, query={"skip": 0, "limit": self.settings.CATALOG_PAGE_LIMIT}
        )
        items = []
        for raw in normalize_list_response(payload):
            try:
                items.append(model.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"[HttpInventoryApi] Élément ignoré dans {path}: {e}")
        return items

    async def list_productos(self) -> List[ProductoCatalogItem]:
        return await self._list("/productos", ProductoCatalogItem)

    async def list_locaciones(self) -> List[LocacionCatalogItem]:
        return await self._list("/locaciones", LocacionCatalogItem)

    async def list_personas(self) -> List[PersonaCatalogItem]:
        return await self._list("/personas", PersonaCatalogItem)

    async def list_proveedores(self) -> List[ProveedorCatalogItem]:
        return await self._list("/proveedores", ProveedorCatalogItem)

    async def list_uoms(self) -> List[UomCatalogItem]:
        return await self._list("/uoms", UomCatalogItem)

    async def get_stock(self, producto_id: int, locacion_id: Optional[int] = None) -> Optional[StockItem]:
        payload = await self._request(
            "/stock", query={"producto_id": producto_id, "locacion_id": locacion_id}
        )
        items = normalize_list_response(payload)
        if not items:
            return None
        return StockItem.model_validate(items[0])

    async def create_movimiento(self, payload: MovimientoCreatePayload) -> Optional[MovimientoOut]:
        logger.info(f"[HttpInventoryApi] Création mouvement {payload.tipo} produit={payload.producto_id} cantidad={payload.cantidad}")
        created = await self._request("/movimientos", method="POST", body=payload.to_request_body())
        if created is None:
            return None
        return MovimientoOut.model_validate(created)
