"""
Módulo de Caja (POS)

- CashSession: una sola sesión abierta a la vez, con fondo inicial y cierre
- CashMovement: movimientos de apertura, venta y cierre

Cada venta emite su factura en la misma transacción (ver módulo invoices).
"""

from .models import CashSession, CashMovement, CashSessionStatus, MovementType
from .services import CashSessionService

__all__ = ["CashSession", "CashMovement", "CashSessionStatus", "MovementType", "CashSessionService"]
