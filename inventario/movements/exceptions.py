"""
Exceptions personnalisées pour le module des mouvements.
"""


class MovementError(Exception):
    """Classe de base pour les exceptions liées aux mouvements."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnknownMovementTypeError(MovementError, ValueError):
    """Levée lorsqu'un type de mouvement hors de la liste fermée est demandé."""
    def __init__(self, tipo):
        self.tipo = tipo
        super().__init__(f"Tipo de movimiento desconocido: {tipo!r}")
