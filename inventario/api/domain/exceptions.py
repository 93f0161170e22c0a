"""Exceptions spécifiques aux appels vers l'API d'inventaire."""
from typing import Optional

from inventario.api.models import ApiErrorDetail

NETWORK_ERROR_MESSAGE = "No fue posible comunicarse con el servidor. Verifica tu conexion."
UNEXPECTED_ERROR_MESSAGE = "Ha ocurrido un error inesperado. Intenta nuevamente mas tarde."


class ApiRequestError(Exception):
    """Levée lorsqu'un appel à l'API distante échoue.

    Porte un `ApiErrorDetail` normalisé (status, message, détails) pour l'affichage.
    """
    def __init__(self, error: ApiErrorDetail, original_exception: Optional[Exception] = None):
        self.error = error
        self.original_exception = original_exception
        super().__init__(error.message)

    @property
    def status(self) -> int:
        return self.error.status

    @property
    def is_network_error(self) -> bool:
        return self.error.status == 0

    @classmethod
    def network(cls, original_exception: Optional[Exception] = None) -> "ApiRequestError":
        return cls(
            ApiErrorDetail(status=0, message=NETWORK_ERROR_MESSAGE),
            original_exception=original_exception,
        )
