"""
Inventario - moteur de validation et d'enregistrement des mouvements de stock.
"""
