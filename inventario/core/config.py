"""
Configuration globale de l'application (bodega central, API distante, logs).
"""
import logging
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Charger les variables d'environnement au moment de l'import du module
load_dotenv()

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"
DEFAULT_CENTRAL_LOCATION_ID = 1
DEFAULT_CENTRAL_LOCATION_NAME = "Bodega Calameno"


class InventorySettings(BaseSettings):
    """Paramètres de configuration du front inventaire."""

    # --- API distante ---
    BASE_URL: str = DEFAULT_BASE_URL
    REQUEST_TIMEOUT: float = 10.0

    # --- Bodega central ---
    CENTRAL_LOCATION_ID: int = Field(
        default=DEFAULT_CENTRAL_LOCATION_ID,
        validation_alias=AliasChoices(
            "INVENTARIO_CENTRAL_LOCATION_ID",
            "INVENTARIO_DEFAULT_LOCATION_ID",
            "CENTRAL_LOCATION_ID",
        ),
    )
    CENTRAL_LOCATION_NAME: str = DEFAULT_CENTRAL_LOCATION_NAME

    # --- Catalogues ---
    CATALOG_PAGE_LIMIT: int = 500
    CATALOG_STALE_SECONDS: float = 300.0

    # --- Logs / HTTP ---
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_prefix="INVENTARIO_",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("BASE_URL", mode="before")
    @classmethod
    def _normalize_base_url(cls, value):
        trimmed = str(value or "").strip()
        if not trimmed:
            raise ValueError("INVENTARIO_BASE_URL no está configurada. Revisa el archivo .env.")
        return trimmed[:-1] if trimmed.endswith("/") else trimmed

    @field_validator("CENTRAL_LOCATION_ID", mode="before")
    @classmethod
    def _parse_central_location_id(cls, value):
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            parsed = 0
        if parsed > 0:
            return parsed
        logger.warning(
            f"[InventorySettings] ID de bodega central invalido ('{value}'), "
            f"usando {DEFAULT_CENTRAL_LOCATION_ID} como valor por defecto."
        )
        return DEFAULT_CENTRAL_LOCATION_ID

    @field_validator("CENTRAL_LOCATION_NAME", mode="before")
    @classmethod
    def _resolve_central_location_name(cls, value):
        trimmed = str(value or "").strip()
        return trimmed or DEFAULT_CENTRAL_LOCATION_NAME


@lru_cache
def get_settings() -> InventorySettings:
    """Retourne l'instance (mise en cache) des paramètres."""
    return InventorySettings()
