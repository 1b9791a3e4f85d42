"""
Servicio de facturación (Invoice Issuer)

Convierte un pedido en exactamente una factura. La verificación de
existencia y el insert ocurren en la misma transacción; la restricción
única sobre invoices.order_id resuelve la carrera entre dos emisiones
simultáneas.
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.business_day import get_business_date
from app.common.exceptions import ConflictError, InvalidStateError, NotFoundError
from app.common.money import format_money, normalize_money, to_money
from app.core.config import settings
from app.database.database import integrity_failure, is_unique_violation, transaction
from app.modules.invoices.calculator import InvoiceCalculator
from app.modules.invoices.models import ORDER_UNIQUE_CONSTRAINT, Invoice, InvoiceLine, PaymentMethod
from app.modules.invoices.schemas import (
    InvoiceDetail, InvoiceLineOut, InvoiceOut, InvoiceSummary, IssuedInvoice, OrderSummary
)
from app.modules.notifications.notifier import INVOICE_ISSUED, Notifier, NullNotifier
from app.modules.orders.models import Order, OrderLine, OrderStatus

logger = logging.getLogger(__name__)

WALK_UP_DESCRIPTION = "Venta directa"


class InvoiceService:

    def __init__(self, db: Session, notifier: Optional[Notifier] = None,
                 tax_rate: Decimal = settings.TAX_RATE):
        self.db = db
        self.notifier = notifier or NullNotifier()
        self.calculator = InvoiceCalculator(tax_rate)

    # ----- Construcción (sin commit: el llamador controla la transacción) -----

    def build_order_invoice(self, order_id: UUID, payment_method: PaymentMethod = PaymentMethod.CASH,
                            issued_by: Optional[UUID] = None) -> Invoice:
        """Crear la factura de un pedido dentro de la transacción en curso"""
        order = self.db.query(Order).options(
            selectinload(Order.lines).selectinload(OrderLine.menu_item)
        ).filter(Order.id == order_id).with_for_update().first()

        if order is None:
            raise NotFoundError("Pedido no encontrado")

        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("No se puede facturar un pedido cancelado")

        existing = self.db.query(Invoice.id).filter(Invoice.order_id == order_id).first()
        if existing:
            raise ConflictError("Ya existe una factura para este pedido")

        totals = self.calculator.totals(line.subtotal for line in order.lines)

        invoice = Invoice(
            order_id=order.id,
            issued_by=issued_by,
            payment_method=payment_method,
            currency=settings.CURRENCY,
            **totals
        )
        for line in order.lines:
            invoice.lines.append(InvoiceLine(
                menu_item_id=line.menu_item_id,
                position=line.position,
                name=line.item_name or WALK_UP_DESCRIPTION,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            ))

        self.db.add(invoice)
        self.db.flush()
        return invoice

    def build_walk_up_invoice(self, amount: Decimal, description: Optional[str] = None,
                              payment_method: PaymentMethod = PaymentMethod.CASH,
                              issued_by: Optional[UUID] = None) -> Invoice:
        """Factura sin pedido para una venta directa; el monto cobrado es el total"""
        amount = to_money(amount)
        invoice = Invoice(
            order_id=None,
            issued_by=issued_by,
            payment_method=payment_method,
            currency=settings.CURRENCY,
            **self.calculator.split_inclusive(amount)
        )
        invoice.lines.append(InvoiceLine(
            position=0,
            name=description or WALK_UP_DESCRIPTION,
            quantity=1,
            unit_price=amount,
            subtotal=amount,
        ))
        self.db.add(invoice)
        self.db.flush()
        return invoice

    # ----- Operaciones -----

    def issue_invoice(self, order_id: UUID, payment_method: PaymentMethod = PaymentMethod.CASH,
                      issued_by: Optional[UUID] = None) -> IssuedInvoice:
        """Emitir la factura de un pedido; una segunda emisión responde ConflictError"""
        try:
            with transaction(self.db):
                invoice = self.build_order_invoice(order_id, payment_method, issued_by)
        except IntegrityError as e:
            if is_unique_violation(e, ORDER_UNIQUE_CONSTRAINT, "invoices.order_id"):
                raise ConflictError("Ya existe una factura para este pedido")
            raise integrity_failure(e) from e

        logger.info(f"Invoice {invoice.id} issued for order {order_id}: total {invoice.total}")
        issued = self.to_issued(invoice)
        self.notifier.publish(INVOICE_ISSUED, issued.model_dump(mode="json"))
        return issued

    @staticmethod
    def to_issued(invoice: Invoice) -> IssuedInvoice:
        order = invoice.order
        return IssuedInvoice(
            invoice=InvoiceOut.model_validate(invoice),
            order=OrderSummary(id=order.id, total=order.total, status=order.status) if order else None,
            items=[InvoiceLineOut.model_validate(line) for line in invoice.lines],
            subtotal=format_money(invoice.subtotal),
            tax=format_money(invoice.tax),
            total=normalize_money(invoice.total),
        )

    def get_invoice(self, invoice_id: UUID) -> InvoiceDetail:
        """Factura con sus renglones copiados y el cliente del pedido"""
        invoice = self.db.query(Invoice).options(
            selectinload(Invoice.lines),
            selectinload(Invoice.order).selectinload(Order.customer)
        ).filter(Invoice.id == invoice_id).first()

        if invoice is None:
            raise NotFoundError("Factura no encontrada")

        detail = InvoiceDetail.model_validate(invoice)
        detail.items = [InvoiceLineOut.model_validate(line) for line in invoice.lines]
        detail.customer_name = invoice.order.customer_name if invoice.order else None
        return detail

    def list_invoices(self) -> List[Invoice]:
        """Facturas, la más reciente primero"""
        return self.db.query(Invoice).order_by(Invoice.issued_at.desc(), Invoice.id.desc()).all()

    def list_uninvoiced_orders(self) -> List[Order]:
        """Pedidos no cancelados que aún no tienen factura, el más reciente primero"""
        return self.db.query(Order).options(
            selectinload(Order.lines).selectinload(OrderLine.menu_item),
            selectinload(Order.customer)
        ).outerjoin(
            Invoice, Invoice.order_id == Order.id
        ).filter(
            Invoice.id.is_(None),
            Order.status != OrderStatus.CANCELLED
        ).order_by(Order.created_at.desc(), Order.id.desc()).all()

    def get_summary(self, days: int = 30) -> InvoiceSummary:
        """Resumen de facturación de los últimos ``days`` días"""
        since = datetime.now(timezone.utc) - timedelta(days=days)
        invoices = self.db.query(Invoice).filter(Invoice.issued_at >= since).all()

        revenue = to_money(sum((inv.total for inv in invoices), Decimal("0")))
        average = to_money(revenue / len(invoices)) if invoices else Decimal("0.00")
        days_invoiced = {get_business_date(inv.issued_at) for inv in invoices}

        return InvoiceSummary(
            days=days,
            total_invoices=len(invoices),
            revenue=revenue,
            average_ticket=average,
            days_invoiced=len(days_invoiced),
        )
