"""
Routers FastAPI para pedidos

- Alta y consulta de pedidos
- Cambios de estado (cocina avanza preparación; meseros y caja entregan o cancelan)
- Colas de cocina y de meseros
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from sqlalchemy.orm import Session
from typing import List, Literal, Optional
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser, require_role
from app.modules.auth.models import Role, User, has_capability
from app.modules.notifications.notifier import Notifier, get_notifier
from app.modules.orders.models import OrderStatus
from app.modules.orders.service import OrderService, parse_status
from app.modules.orders.schemas import OrderCreate, OrderStatusUpdate, OrderOut, OrderList

orders_router = APIRouter(prefix="/orders", tags=["Orders"])

KITCHEN_STATUSES = {OrderStatus.IN_PREPARATION, OrderStatus.READY}


@orders_router.post("/", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    order_data: OrderCreate,
    user: User = Depends(require_role(Role.WAITER, Role.CASHIER)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Crear pedido en estado pending.

    - **lines**: al menos un renglón con cantidad mayor a cero
    - **unit_price**: opcional; por defecto el precio vigente del menú
    """
    return OrderService(db, notifier).create_order(order_data, staff_id=user.id)


@orders_router.get("/", response_model=OrderList)
def list_orders(
    user: CurrentUser,
    status: Optional[List[OrderStatus]] = Query(None, description="Filtrar por uno o varios estados"),
    order: Literal["asc", "desc"] = Query("desc", description="Orden por fecha de creación"),
    db: Session = Depends(get_db)
):
    """
    Listar pedidos. Por defecto los más recientes primero.
    """
    orders = OrderService(db).list_orders(statuses=status, ascending=(order == "asc"))
    return OrderList(orders=orders, total=len(orders))


@orders_router.get("/queue/kitchen", response_model=OrderList)
def kitchen_queue(
    user: User = Depends(require_role(Role.KITCHEN)),
    db: Session = Depends(get_db)
):
    """
    Cola de cocina: pedidos pending e in_preparation, el más antiguo primero.
    """
    orders = OrderService(db).kitchen_queue()
    return OrderList(orders=orders, total=len(orders))


@orders_router.get("/queue/server", response_model=OrderList)
def server_queue(
    user: User = Depends(require_role(Role.WAITER, Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """
    Cola de meseros: pedidos pending, in_preparation y ready, el más antiguo primero.
    """
    orders = OrderService(db).server_queue()
    return OrderList(orders=orders, total=len(orders))


@orders_router.get("/{order_id}", response_model=OrderOut)
def get_order(
    user: CurrentUser,
    order_id: UUID = Path(..., description="ID del pedido"),
    db: Session = Depends(get_db)
):
    return OrderService(db).get_order_with_lines(order_id)


@orders_router.patch("/{order_id}/status", response_model=OrderOut)
def set_order_status(
    status_data: OrderStatusUpdate,
    user: CurrentUser,
    order_id: UUID = Path(..., description="ID del pedido"),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Cambiar el estado del pedido.

    - in_preparation / ready: rol kitchen
    - pending / delivered / cancelled: rol waiter o cashier
    - Un estado fuera del conjunto permitido responde 400, sea cual sea el rol
    """
    target = parse_status(status_data.status)
    if target in KITCHEN_STATUSES:
        allowed = has_capability(user.role, Role.KITCHEN)
    else:
        allowed = has_capability(user.role, Role.WAITER) or has_capability(user.role, Role.CASHIER)

    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tu rol no puede asignar este estado"
        )

    return OrderService(db, notifier).set_status(order_id, target)
