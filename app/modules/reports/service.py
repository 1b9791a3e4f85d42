"""
Reportes del tablero

Todos los reportes miran hacia atrás ``days`` días desde ahora. Las ventas
se agrupan por fecha de negocio (BUSINESS_TIMEZONE); los pedidos
cancelados no cuentan como venta.
"""
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session, selectinload

from app.common.business_day import current_business_date, get_business_date
from app.common.money import to_money
from app.modules.events.models import Event, EventStatus
from app.modules.invoices.models import Invoice, InvoiceStatus, PaymentMethod
from app.modules.menu.models import MenuItem
from app.modules.orders.models import Order, OrderLine, OrderStatus
from app.modules.reports.schemas import (
    DailySales, DashboardStats, OrdersByStatus, PaymentMethods, PaymentMethodTotal,
    RecentOrder, SalesSeries, StatusCount, TopProduct, TopProducts
)

logger = logging.getLogger(__name__)


class ReportService:
    """Service for dashboard figures"""

    def __init__(self, db: Session, business_timezone: Optional[str] = None):
        self.db = db
        self.business_timezone = business_timezone

    def _since(self, days: int) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=days)

    def _issued_invoices(self, days: int):
        return self.db.query(Invoice).filter(
            Invoice.status == InvoiceStatus.ISSUED,
            Invoice.issued_at >= self._since(days)
        )

    def stats(self, days: int = 30) -> DashboardStats:
        """
        Cifras generales del periodo.

        - revenue: suma de facturas emitidas
        - total_orders: pedidos no cancelados creados en el periodo
        - average_order_value: ingreso promedio por factura
        - active_events: eventos activos de hoy en adelante
        """
        invoices = self._issued_invoices(days).with_entities(
            func.count(Invoice.id).label("count"),
            func.sum(Invoice.total).label("revenue"),
        ).first()
        total_invoices = invoices.count or 0
        revenue = to_money(invoices.revenue or 0)

        total_orders = self.db.query(func.count(Order.id)).filter(
            Order.created_at >= self._since(days),
            Order.status != OrderStatus.CANCELLED
        ).scalar() or 0

        active_events = self.db.query(func.count(Event.id)).filter(
            Event.status == EventStatus.ACTIVE,
            Event.event_date >= current_business_date(self.business_timezone)
        ).scalar() or 0

        average = to_money(revenue / total_invoices) if total_invoices else Decimal("0.00")
        return DashboardStats(
            days=days,
            revenue=revenue,
            total_orders=total_orders,
            total_invoices=total_invoices,
            average_order_value=average,
            active_events=active_events,
        )

    def sales_series(self, days: int = 30) -> SalesSeries:
        """Ventas por fecha de negocio, un punto por día aunque no haya ventas"""
        today = current_business_date(self.business_timezone)
        first_day = today - timedelta(days=days - 1)
        buckets = {
            first_day + timedelta(days=offset): {"invoices": 0, "total": Decimal("0")}
            for offset in range(days)
        }

        # Grouped here: the business date depends on the configured timezone
        for issued_at, total in self._issued_invoices(days).with_entities(Invoice.issued_at, Invoice.total):
            bucket = buckets.get(get_business_date(issued_at, self.business_timezone))
            if bucket is None:
                continue
            bucket["invoices"] += 1
            bucket["total"] += total

        points = [
            DailySales(business_date=day, invoices=bucket["invoices"], total=to_money(bucket["total"]))
            for day, bucket in sorted(buckets.items())
        ]
        return SalesSeries(days=days, points=points)

    def orders_by_status(self, days: int = 30) -> OrdersByStatus:
        rows = self.db.query(Order.status, func.count(Order.id)).filter(
            Order.created_at >= self._since(days)
        ).group_by(Order.status).all()
        counts = dict(rows)

        return OrdersByStatus(
            days=days,
            statuses=[StatusCount(status=s, count=counts.get(s, 0)) for s in OrderStatus]
        )

    def top_products(self, days: int = 30, limit: int = 10) -> TopProducts:
        """Items más pedidos por cantidad, sin pedidos cancelados"""
        quantity_sold = func.sum(OrderLine.quantity).label("quantity_sold")
        rows = self.db.query(
            MenuItem.id,
            MenuItem.name,
            quantity_sold,
            func.sum(OrderLine.subtotal).label("total_amount"),
        ).join(
            OrderLine, OrderLine.menu_item_id == MenuItem.id
        ).join(
            Order, OrderLine.order_id == Order.id
        ).filter(
            Order.created_at >= self._since(days),
            Order.status != OrderStatus.CANCELLED
        ).group_by(
            MenuItem.id, MenuItem.name
        ).order_by(
            desc(quantity_sold), MenuItem.name
        ).limit(limit).all()

        products = [
            TopProduct(
                menu_item_id=row.id,
                name=row.name,
                quantity_sold=int(row.quantity_sold),
                total_amount=to_money(row.total_amount or 0),
            )
            for row in rows
        ]
        return TopProducts(days=days, products=products)

    def payment_methods(self, days: int = 30) -> PaymentMethods:
        rows = self._issued_invoices(days).with_entities(
            Invoice.payment_method,
            func.count(Invoice.id),
            func.sum(Invoice.total),
        ).group_by(Invoice.payment_method).all()
        totals = {method: (count, total) for method, count, total in rows}

        methods = []
        for method in PaymentMethod:
            count, total = totals.get(method, (0, 0))
            methods.append(PaymentMethodTotal(payment_method=method, count=count, total=to_money(total or 0)))
        return PaymentMethods(days=days, methods=methods)

    def recent_orders(self, limit: int = 10) -> List[RecentOrder]:
        """Últimos pedidos con su factura, si la tienen"""
        orders = self.db.query(Order).options(
            selectinload(Order.customer),
            selectinload(Order.invoice)
        ).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()

        return [
            RecentOrder(
                id=order.id,
                status=order.status,
                customer_name=order.customer_name,
                created_at=order.created_at,
                total=order.total,
                invoice_total=order.invoice.total if order.invoice else None,
                payment_method=order.invoice.payment_method if order.invoice else None,
            )
            for order in orders
        ]
