"""
Modelos SQLAlchemy para pedidos

- Order: pedido de mesa, domicilio o para llevar, con su estado
- OrderLine: renglones del pedido (item del menú, cantidad, precio)

El total del pedido siempre es la suma de los subtotales de sus renglones.
Un pedido no se borra: la cancelación es un estado.
"""
from decimal import Decimal
from sqlalchemy import Column, String, Text, Integer, Numeric, Enum, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


# ===== ENUMS =====

class OrderStatus(enum.Enum):
    """Estados del pedido"""
    PENDING = "pending"                # Recibido, en espera de cocina
    IN_PREPARATION = "in_preparation"  # En preparación
    READY = "ready"                    # Listo para entregar
    DELIVERED = "delivered"            # Entregado (terminal)
    CANCELLED = "cancelled"            # Cancelado (terminal)


class OrderKind(enum.Enum):
    TABLE = "table"
    DELIVERY = "delivery"
    TAKEOUT = "takeout"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Siguiente estado natural; CANCELLED es alcanzable desde cualquier estado no terminal
NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.IN_PREPARATION,
    OrderStatus.IN_PREPARATION: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.DELIVERED,
}

KITCHEN_QUEUE_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PREPARATION)
SERVER_QUEUE_STATUSES = (OrderStatus.PENDING, OrderStatus.IN_PREPARATION, OrderStatus.READY)


def is_adjacent_transition(current: OrderStatus, new: OrderStatus) -> bool:
    if current == new:
        return True
    if current in TERMINAL_STATUSES:
        return False
    return new == OrderStatus.CANCELLED or NEXT_STATUS.get(current) == new


# ===== MODELOS =====

class Order(Base, BaseMixin):
    __tablename__ = "orders"

    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e], name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True
    )
    kind = Column(
        Enum(OrderKind, values_callable=lambda e: [m.value for m in e], name="order_kind"),
        nullable=False,
        default=OrderKind.TABLE
    )
    total = Column(Numeric(12, 2), nullable=False, default=0)
    note = Column(Text, nullable=True)
    table_label = Column(String(20), nullable=True)

    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    customer = relationship("Customer")
    created_by_user = relationship("User")
    lines = relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position"
    )
    invoice = relationship("Invoice", back_populates="order", uselist=False)

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_orders_total_non_negative"),
    )

    @property
    def lines_total(self) -> Decimal:
        """Total recalculado a partir de los renglones"""
        return sum((line.subtotal for line in self.lines), Decimal("0"))

    @property
    def customer_name(self):
        return self.customer.full_name if self.customer else None


class OrderLine(Base, BaseMixin):
    __tablename__ = "order_lines"

    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(UUID(as_uuid=True), ForeignKey("menu_items.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)  # quantity * unit_price

    # Relationships
    order = relationship("Order", back_populates="lines")
    menu_item = relationship("MenuItem")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_order_lines_unit_price_non_negative"),
    )

    @property
    def item_name(self):
        return self.menu_item.name if self.menu_item else None
