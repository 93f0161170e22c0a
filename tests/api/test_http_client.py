"""
Tests pour le client httpx de l'API d'inventaire.
"""
import json

import httpx
import pytest

from inventario.api.domain.exceptions import ApiRequestError, NETWORK_ERROR_MESSAGE
from inventario.api.infrastructure.http_client import (
    HttpInventoryApi,
    clean_query,
    normalize_list_response,
)
from inventario.api.models import MovimientoCreatePayload

BASE = "http://inventario.test/api/v1"


def make_api(settings, handler) -> HttpInventoryApi:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpInventoryApi(settings=settings, client=client)


def test_normalize_list_response():
    assert normalize_list_response([{"id": 1}]) == [{"id": 1}]
    assert normalize_list_response({"items": [{"id": 2}], "total": 1}) == [{"id": 2}]
    assert normalize_list_response({"detail": "x"}) == []
    assert normalize_list_response(None) == []


def test_clean_query_drops_none():
    assert clean_query({"producto_id": 3, "locacion_id": None}) == {"producto_id": 3}


@pytest.mark.asyncio
async def test_list_productos(settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "nombre": "Manzanas"}])

    async with make_api(settings, handler) as api:
        productos = await api.list_productos()

    assert len(productos) == 1
    assert productos[0].nombre == "Manzanas"
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/v1/productos"
    assert request.url.params["skip"] == "0"
    assert request.url.params["limit"] == "500"


@pytest.mark.asyncio
async def test_get_stock_returns_first_item(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["producto_id"] == "7"
        assert request.url.params["locacion_id"] == "1"
        return httpx.Response(200, json={"items": [{"producto_id": 7, "locacion_id": 1, "stock": "12,5"}]})

    api = make_api(settings, handler)
    item = await api.get_stock(7, 1)
    assert item.stock == "12,5"


@pytest.mark.asyncio
async def test_get_stock_without_location_omits_param(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        assert "locacion_id" not in request.url.params
        return httpx.Response(200, json=[])

    api = make_api(settings, handler)
    assert await api.get_stock(7) is None


@pytest.mark.asyncio
async def test_create_movimiento_posts_payload(settings):
    payload = MovimientoCreatePayload(
        tipo="ingreso",
        producto_id=9,
        cantidad=2.5,
        from_locacion_id=None,
        to_locacion_id=1,
        persona_id=None,
        proveedor_id=None,
        nota="Test",
    )
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(201, json={"id": 10, "created_at": "2024-05-06T10:30:00Z", **body})

    api = make_api(settings, handler)
    movimiento = await api.create_movimiento(payload)

    assert movimiento.id == 10
    assert bodies[0] == payload.model_dump()


@pytest.mark.asyncio
async def test_backend_error_detail_is_propagated(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "detail": "Stock insuficiente",
                "error_detail": "No hay stock en la locación origen",
            },
        )

    api = make_api(settings, handler)
    with pytest.raises(ApiRequestError) as exc_info:
        await api.create_movimiento(
            MovimientoCreatePayload(tipo="uso", producto_id=3, cantidad=1)
        )

    error = exc_info.value.error
    assert error.status == 400
    assert error.message == "Stock insuficiente"
    assert error.error_detail == "No hay stock en la locación origen"


@pytest.mark.asyncio
async def test_error_without_json_uses_reason_phrase(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="<html>down</html>")

    api = make_api(settings, handler)
    with pytest.raises(ApiRequestError) as exc_info:
        await api.list_uoms()
    assert exc_info.value.status == 503
    assert exc_info.value.error.message == "Service Unavailable"


@pytest.mark.asyncio
async def test_field_errors_and_list_detail(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            422,
            json={"message": "Datos inválidos", "detail": [{"loc": ["cantidad"]}], "errors": {"cantidad": ["Requerido"]}},
        )

    api = make_api(settings, handler)
    with pytest.raises(ApiRequestError) as exc_info:
        await api.create_movimiento(MovimientoCreatePayload(tipo="uso", producto_id=3, cantidad=1))
    error = exc_info.value.error
    assert error.message == "Datos inválidos"
    assert error.field_errors == {"cantidad": ["Requerido"]}
    assert "cantidad" in error.detail


@pytest.mark.asyncio
async def test_network_error_is_normalized(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = make_api(settings, handler)
    with pytest.raises(ApiRequestError) as exc_info:
        await api.get_stock(1, 1)
    assert exc_info.value.is_network_error
    assert exc_info.value.error.message == NETWORK_ERROR_MESSAGE
