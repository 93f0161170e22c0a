"""
Module principal de l'application FastAPI Inventario.

Expose le moteur de validation et d'enregistrement des mouvements de stock
(backend-for-frontend devant l'API d'inventaire distante).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inventario.core.config import get_settings
from inventario.core.logging_config import configure_logging
from inventario.api.infrastructure.http_client import HttpInventoryApi
from inventario.movements.router import router as movements_router

settings = get_settings()

# Configurer le logging
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.inventory_api = HttpInventoryApi(settings=settings)
    logger.info(f"Inventario démarré (bodega central #{settings.CENTRAL_LOCATION_ID} '{settings.CENTRAL_LOCATION_NAME}').")
    yield
    await app.state.inventory_api.aclose()
    logger.info("Client de l'API d'inventaire fermé.")


app = FastAPI(
    title="Inventario API",
    description="Validation et enregistrement des mouvements de stock (ingreso, uso, traspaso, ajuste).",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(movements_router, prefix="/api/v1/movimientos", tags=["Movimientos"])
