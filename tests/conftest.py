# Standard Library
import asyncio
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict, List, Optional

# Third-Party Libraries
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# First-Party Libraries
from inventario.core.config import InventorySettings, get_settings
from inventario.api.domain.interfaces import AbstractInventoryApi
from inventario.api.domain.exceptions import ApiRequestError
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
from inventario.main import app
from inventario.movements.dependencies import get_inventory_api
from inventario.movements.models import MovementFormState

CENTRAL = 1
CREATED_AT = datetime(2024, 5, 6, 10, 30, tzinfo=timezone.utc)


class FakeInventoryApi(AbstractInventoryApi):
    """API d'inventaire simulée pour les tests.

    - `stock[(producto, locacion)]` : valeur renvoyée (nombre, texte ou exception)
    - `gates[producto]` : Future à résoudre pour débloquer la lecture
    """

    def __init__(self):
        self.stock: Dict[tuple, object] = {}
        self.gates: Dict[int, asyncio.Future] = {}
        self.stock_calls: List[tuple] = []
        self.created: List[MovimientoCreatePayload] = []
        self.create_error: Optional[Exception] = None
        self.catalog_calls: List[str] = []
        self.productos = [
            ProductoCatalogItem(id=7, nombre="Harina", uom_id=3),
            ProductoCatalogItem(id=10, nombre="Azúcar", uom_abreviatura="kg"),
        ]
        self.locaciones = [
            LocacionCatalogItem(id=CENTRAL, nombre="Bodega Calameno"),
            LocacionCatalogItem(id=4, nombre="Cocina"),
        ]
        self.personas = [PersonaCatalogItem(id=2, nombre="Ana", apellidos="Pérez")]
        self.proveedores = [ProveedorCatalogItem(id=5, nombre="Molinos SA")]
        self.uoms = [UomCatalogItem(id=3, nombre="Kilogramo")]

    async def list_productos(self):
        self.catalog_calls.append("productos")
        return self.productos

    async def list_locaciones(self):
        self.catalog_calls.append("locaciones")
        return self.locaciones

    async def list_personas(self):
        self.catalog_calls.append("personas")
        return self.personas

    async def list_proveedores(self):
        self.catalog_calls.append("proveedores")
        return self.proveedores

    async def list_uoms(self):
        self.catalog_calls.append("uoms")
        return self.uoms

    async def get_stock(self, producto_id, locacion_id=None):
        self.stock_calls.append((producto_id, locacion_id))
        gate = self.gates.get(producto_id)
        if gate is not None:
            # shield: l'annulation de la lecture ne doit pas annuler la gate partagée
            await asyncio.shield(gate)
        value = self.stock.get((producto_id, locacion_id))
        if isinstance(value, Exception):
            raise value
        if value is None:
            return None
        return StockItem(producto_id=producto_id, locacion_id=locacion_id, stock=value)

    async def create_movimiento(self, payload: MovimientoCreatePayload) -> MovimientoOut:
        self.created.append(payload)
        if self.create_error is not None:
            raise self.create_error
        return MovimientoOut(id=len(self.created), created_at=CREATED_AT, **payload.model_dump())


# --- Fixtures de Base ---

@pytest.fixture
def settings() -> InventorySettings:
    return InventorySettings(
        BASE_URL="http://inventario.test/api/v1",
        CENTRAL_LOCATION_ID=CENTRAL,
        CENTRAL_LOCATION_NAME="Bodega Calameno",
    )


@pytest.fixture
def fake_api() -> FakeInventoryApi:
    return FakeInventoryApi()


@pytest.fixture
def uso_form() -> MovementFormState:
    """Uso valide: 5,250 unités depuis la bodega central."""
    return MovementFormState(
        tipo="uso",
        producto_id=7,
        quantity="5,250",
        from_location_id=CENTRAL,
        confirm_unit=True,
    )


@pytest.fixture
def ingreso_form() -> MovementFormState:
    return MovementFormState(
        tipo="ingreso",
        producto_id=10,
        quantity="5",
        to_location_id=CENTRAL,
        confirm_unit=True,
    )


@pytest_asyncio.fixture(scope="function")
async def test_client(fake_api: FakeInventoryApi, settings: InventorySettings) -> AsyncGenerator[AsyncClient, None]:
    """Fournit un AsyncClient httpx branché sur l'API d'inventaire simulée."""
    app.dependency_overrides[get_inventory_api] = lambda: fake_api
    app.dependency_overrides[get_settings] = lambda: settings
    app.state.catalog_store = None
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
