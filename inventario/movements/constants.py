"""
Constantes pour le module des mouvements (libellés et messages affichés).
"""

MOVEMENT_TYPE_DEFINITIONS = [
    {
        "value": "ingreso",
        "label": "Ingreso",
        "description": "Suma stock en una locación específica.",
    },
    {
        "value": "uso",
        "label": "Uso",
        "description": "Descuenta stock desde una locación de origen.",
    },
    {
        "value": "traspaso",
        "label": "Traspaso",
        "description": "Traslada stock entre dos locaciones distintas.",
    },
    {
        "value": "ajuste",
        "label": "Ajuste",
        "description": "Corrige inventario agregando o quitando stock.",
    },
]

MAX_QUANTITY_DECIMALS = 3
# Un uso est bloqué si le stock central est <= à ce seuil
USO_MIN_STOCK_EXCLUSIVE = 1

# Messages d'erreur (champ par champ)
ERROR_TIPO_REQUIRED = "Selecciona un tipo de movimiento."
ERROR_PRODUCTO_REQUIRED = "Selecciona un producto."
ERROR_QUANTITY_REQUIRED = "Ingresa una cantidad."
ERROR_QUANTITY_NOT_NUMERIC = "La cantidad debe ser numérica."
ERROR_QUANTITY_NOT_POSITIVE = "La cantidad debe ser mayor a 0."
ERROR_QUANTITY_PRECISION = "Usa máximo 3 decimales."
ERROR_CONFIRM_UNIT = "Confirma la unidad mostrada."

ERROR_FROM_FORBIDDEN = "Este tipo de movimiento no admite locación origen."
ERROR_TO_FORBIDDEN = "Este tipo de movimiento no admite locación destino."
ERROR_FROM_REQUIRED = "Selecciona la locación origen."
ERROR_TO_REQUIRED = "Selecciona la locación destino."
ERROR_ANY_LOCATION = "Debes definir al menos una locación."
ERROR_SAME_LOCATION = "Origen y destino deben ser distintos."

ERROR_INGRESO_TO_CENTRAL = "Los ingresos se registran siempre en la bodega central."
ERROR_INGRESO_FROM_NOT_CENTRAL = "Los ingresos no admiten locación origen distinta de la bodega central."
ERROR_USO_FROM_CENTRAL = "Los usos se descuentan siempre desde la bodega central."
ERROR_USO_TO_CENTRAL = "El destino de un uso no puede ser la bodega central."

# Messages liés au stock
ERROR_STOCK_UNVERIFIABLE = "No se pudo validar el stock disponible. Recarga el stock e intenta nuevamente."
ERROR_STOCK_TOO_LOW = "No se puede registrar el uso: el stock en bodega central es {available} (debe ser mayor a 1)."
ERROR_STOCK_INSUFFICIENT = "La cantidad solicitada ({requested}) supera el stock disponible ({available})."
ERROR_STOCK_FETCH = "No se pudo obtener el stock actual."
