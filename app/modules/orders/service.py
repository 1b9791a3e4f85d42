"""
Servicio de pedidos (Order Ledger)

- Alta de pedidos con sus renglones en una sola transacción
- Cambios de estado validados contra el conjunto cerrado de estados
- Colas operativas de cocina y meseros (más antiguo primero)

Después de confirmar cada cambio se publica la proyección completa del
pedido en el sink de notificaciones.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.common.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.common.money import to_money
from app.core.config import settings
from app.database.database import transaction
from app.modules.customers.models import Customer
from app.modules.menu.models import MenuItem, MenuItemStatus
from app.modules.notifications.notifier import Notifier, NullNotifier, ORDER_CREATED, ORDER_UPDATED
from app.modules.orders.models import (
    Order, OrderLine, OrderStatus,
    KITCHEN_QUEUE_STATUSES, SERVER_QUEUE_STATUSES, is_adjacent_transition
)
from app.modules.orders.schemas import OrderCreate, OrderOut

logger = logging.getLogger(__name__)

ALLOWED_STATUSES = ", ".join(s.value for s in OrderStatus)


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    """Convierte a OrderStatus o lanza InvalidStateError si no pertenece al conjunto."""
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidStateError(f"Estado '{value}' no válido. Estados permitidos: {ALLOWED_STATUSES}")


class OrderService:
    """Servicio para gestión de pedidos"""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None,
                 strict_transitions: bool = settings.STRICT_ORDER_TRANSITIONS):
        self.db = db
        self.notifier = notifier or NullNotifier()
        self.strict_transitions = strict_transitions

    def _base_query(self):
        return self.db.query(Order).options(
            selectinload(Order.lines).selectinload(OrderLine.menu_item),
            selectinload(Order.customer)
        )

    def _publish(self, event_name: str, order: Order) -> None:
        self.notifier.publish(event_name, OrderOut.model_validate(order).model_dump(mode="json"))

    def create_order(self, order_data: OrderCreate, staff_id: UUID) -> Order:
        """Crear pedido en estado pending con sus renglones"""
        if not order_data.lines:
            raise ValidationError("El pedido debe tener al menos un renglón")

        for index, line in enumerate(order_data.lines, start=1):
            if line.quantity <= 0:
                raise ValidationError(f"Renglón {index}: la cantidad debe ser mayor a cero")
            if line.unit_price is not None and line.unit_price < 0:
                raise ValidationError(f"Renglón {index}: el precio unitario no puede ser negativo")

        customer = None
        if order_data.customer_id:
            customer = self.db.get(Customer, order_data.customer_id)
            if customer is None:
                raise NotFoundError("Cliente no encontrado")

        item_ids = {line.menu_item_id for line in order_data.lines}
        items = {
            item.id: item
            for item in self.db.query(MenuItem).filter(MenuItem.id.in_(item_ids)).all()
        }
        missing = item_ids - items.keys()
        if missing:
            raise NotFoundError(f"Items del menú no encontrados: {', '.join(str(i) for i in missing)}")

        unavailable = [items[i].name for i in item_ids if items[i].status != MenuItemStatus.AVAILABLE]
        if unavailable:
            raise ValidationError(f"Items no disponibles: {', '.join(sorted(unavailable))}")

        with transaction(self.db):
            order = Order(
                status=OrderStatus.PENDING,
                kind=order_data.kind,
                note=order_data.note,
                table_label=order_data.table_label,
                customer=customer,
                created_by=staff_id,
            )
            for position, line in enumerate(order_data.lines):
                item = items[line.menu_item_id]
                unit_price = to_money(line.unit_price if line.unit_price is not None else item.price)
                order.lines.append(OrderLine(
                    menu_item=item,
                    position=position,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    subtotal=to_money(unit_price * line.quantity),
                ))
            order.total = to_money(sum((l.subtotal for l in order.lines), Decimal("0")))
            self.db.add(order)

        logger.info(f"Order {order.id} created by {staff_id}: {len(order.lines)} lines, total {order.total}")
        self._publish(ORDER_CREATED, order)
        return order

    def set_status(self, order_id: UUID, new_status: Union[str, OrderStatus]) -> Order:
        """Cambiar el estado de un pedido; repetir el estado actual no es un error"""
        with transaction(self.db):
            order = self.db.query(Order).filter(Order.id == order_id).with_for_update().first()
            if order is None:
                raise NotFoundError("Pedido no encontrado")

            target = parse_status(new_status)
            previous = order.status

            if self.strict_transitions and not is_adjacent_transition(previous, target):
                raise InvalidStateError(
                    f"Transición no permitida: {previous.value} -> {target.value}"
                )

            order.status = target

        logger.info(f"Order {order_id} status {previous.value} -> {target.value}")
        order = self.get_order_with_lines(order_id)
        self._publish(ORDER_UPDATED, order)
        return order

    def get_order_with_lines(self, order_id: UUID) -> Order:
        """Pedido con renglones, items y cliente"""
        order = self._base_query().filter(Order.id == order_id).first()
        if order is None:
            raise NotFoundError("Pedido no encontrado")
        return order

    def list_orders(self, statuses: Optional[Iterable[Union[str, OrderStatus]]] = None,
                    ascending: bool = False) -> List[Order]:
        """
        Listar pedidos, opcionalmente filtrados por estado.

        ascending=True para colas operativas (más antiguo primero);
        ascending=False para listados generales (más reciente primero).
        """
        query = self._base_query()
        if statuses:
            query = query.filter(Order.status.in_([parse_status(s) for s in statuses]))

        if ascending:
            query = query.order_by(Order.created_at.asc(), Order.id.asc())
        else:
            query = query.order_by(Order.created_at.desc(), Order.id.desc())

        return query.all()

    def kitchen_queue(self) -> List[Order]:
        return self.list_orders(KITCHEN_QUEUE_STATUSES, ascending=True)

    def server_queue(self) -> List[Order]:
        return self.list_orders(SERVER_QUEUE_STATUSES, ascending=True)
