from app.database.database import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from app.common.mixins import BaseMixin, utcnow
import enum


class InvoiceStatus(enum.Enum):
    ISSUED = "issued"    # Emitida y cobrada
    VOID = "void"        # Anulada


class PaymentMethod(enum.Enum):
    CASH = "cash"           # Efectivo
    CARD = "card"           # Tarjeta
    TRANSFER = "transfer"   # Transferencia
    OTHER = "other"         # Otro


ORDER_UNIQUE_CONSTRAINT = "uq_invoices_order_id"


class Invoice(Base, BaseMixin):
    """
    Factura generada a partir de un pedido, o venta directa sin pedido.

    A lo sumo una factura por pedido: order_id es único (los NULL de ventas
    directas no colisionan entre sí). Inmutable una vez emitida.
    """
    __tablename__ = "invoices"

    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=True)
    issued_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    status = Column(
        Enum(InvoiceStatus, values_callable=lambda e: [m.value for m in e], name="invoice_status"),
        nullable=False,
        default=InvoiceStatus.ISSUED
    )
    payment_method = Column(
        Enum(PaymentMethod, values_callable=lambda e: [m.value for m in e], name="payment_method"),
        nullable=False,
        default=PaymentMethod.CASH
    )
    currency = Column(String(3), nullable=False, default="MXN")

    # Totals
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    # Relationships
    order = relationship("Order", back_populates="invoice")
    lines = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.position"
    )

    __table_args__ = (
        UniqueConstraint("order_id", name=ORDER_UNIQUE_CONSTRAINT),
    )


class InvoiceLine(Base, BaseMixin):
    """Copia de los renglones del pedido al momento de facturar"""
    __tablename__ = "invoice_lines"

    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id"), nullable=False, index=True)
    menu_item_id = Column(UUID(as_uuid=True), ForeignKey("menu_items.id"), nullable=True)
    position = Column(Integer, nullable=False, default=0)

    # Snapshot data (para preservar información si el pedido o el menú cambian)
    name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="lines")
