"""
Routers FastAPI para caja (POS)

Define los endpoints REST para:
- Sesiones de caja: apertura, sesión actual y cierre
- Ventas: cobro con emisión de factura
- Movimientos de la sesión abierta

Apertura, cierre y ventas requieren rol cashier (admin pasa cualquier verificación).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database.database import get_db
from app.modules.auth.dependencies import require_role
from app.modules.auth.models import Role, User
from app.modules.notifications.notifier import Notifier, get_notifier
from app.modules.pos.services import CashSessionService
from app.modules.pos.schemas import (
    CashSessionOpen, CashSessionClose, CashSessionOut, CashSessionClosed,
    CashSaleCreate, CashSaleOut, CashMovementList
)


cash_router = APIRouter(prefix="/cash", tags=["Cash"])


# ===== CASH SESSIONS =====

@cash_router.post("/sessions/open", response_model=CashSessionOut, status_code=status.HTTP_201_CREATED)
def open_cash_session(
    session_data: CashSessionOpen,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Abrir caja con fondo inicial.

    - **opening_float**: mayor a cero (400 en caso contrario)
    - 409 si ya existe una caja abierta
    """
    return CashSessionService(db, notifier).open_session(session_data.opening_float, user_id=user.id)


@cash_router.get("/sessions/current", response_model=CashSessionOut)
def get_current_cash_session(
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """
    Devuelve la caja abierta actual; 404 si no hay caja abierta.
    """
    return CashSessionService(db).get_current_session()


@cash_router.post("/sessions/close", response_model=CashSessionClosed)
def close_cash_session(
    close_data: Optional[CashSessionClose] = None,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Cerrar caja.

    Sin **session_id** se cierra la caja abierta. El total de cierre es el
    fondo inicial más las ventas del día contable. 409 si no hay caja abierta.
    """
    session_id = close_data.session_id if close_data else None
    return CashSessionService(db, notifier).close_session(session_id, user_id=user.id)


# ===== SALES & MOVEMENTS =====

@cash_router.post("/sales", response_model=CashSaleOut, status_code=status.HTTP_201_CREATED)
def record_sale(
    sale_data: CashSaleCreate,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Registrar una venta en la caja abierta.

    - **tendered_amount** debe cubrir **amount**
    - **change_amount** = tendered_amount - amount
    - Con **order_id** se factura el pedido; sin él, factura de venta directa
    """
    return CashSessionService(db, notifier).record_sale(sale_data, user_id=user.id)


@cash_router.get("/movements", response_model=CashMovementList)
def list_open_movements(
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """Movimientos de la caja abierta, el más reciente primero"""
    movements = CashSessionService(db).list_open_movements()
    return CashMovementList(movements=movements, total=len(movements))
