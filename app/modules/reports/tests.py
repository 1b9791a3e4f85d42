"""
Tests para los reportes del tablero
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.common.business_day import current_business_date, get_business_date
from app.modules.events.models import Event, EventStatus
from app.modules.invoices.models import Invoice, PaymentMethod
from app.modules.invoices.service import InvoiceService
from app.modules.orders.models import OrderStatus
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService
from app.modules.reports.service import ReportService


@pytest.fixture
def sales(db_session, waiter_user, taco, horchata):
    """Tres pedidos: dos facturados (efectivo y tarjeta) y uno cancelado."""
    orders = OrderService(db_session)
    invoices = InvoiceService(db_session)

    def order(*lines):
        return orders.create_order(
            OrderCreate(lines=[OrderLineCreate(menu_item_id=item.id, quantity=qty) for item, qty in lines]),
            staff_id=waiter_user.id
        )

    first = order((taco, 3), (horchata, 1))
    second = order((taco, 2))
    cancelled = order((horchata, 5))
    invoices.issue_invoice(first.id, payment_method=PaymentMethod.CASH)
    invoices.issue_invoice(second.id, payment_method=PaymentMethod.CARD)
    orders.set_status(cancelled.id, "cancelled")
    return first, second, cancelled


class TestReportService:

    def test_stats(self, db_session, sales):
        today = current_business_date()
        db_session.add_all([
            Event(name="Posada", event_date=today + timedelta(days=3)),
            Event(name="Grito", event_date=today - timedelta(days=1)),
            Event(name="Karaoke", event_date=today, status=EventStatus.INACTIVE),
        ])
        db_session.commit()

        stats = ReportService(db_session).stats(days=30)
        assert stats.revenue == Decimal("75.50")
        assert stats.total_invoices == 2
        assert stats.total_orders == 2
        assert stats.average_order_value == Decimal("37.75")
        assert stats.active_events == 1

    def test_empty_stats(self, db_session):
        stats = ReportService(db_session).stats()
        assert stats.revenue == Decimal("0.00")
        assert stats.average_order_value == Decimal("0.00")

    def test_sales_series_zero_filled(self, db_session, sales):
        two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)
        db_session.add(Invoice(issued_at=two_days_ago, subtotal=Decimal("40"), total=Decimal("40")))
        db_session.commit()

        series = ReportService(db_session).sales_series(days=7)
        assert len(series.points) == 7
        assert series.points[-1].business_date == current_business_date()

        by_date = {p.business_date: p for p in series.points}
        assert by_date[current_business_date()].total == Decimal("75.50")
        assert by_date[current_business_date()].invoices == 2
        assert by_date[get_business_date(two_days_ago)].total == Decimal("40.00")
        assert sum(p.invoices for p in series.points) == 3

    def test_orders_by_status_lists_every_status(self, db_session, sales):
        counts = {s.status: s.count for s in ReportService(db_session).orders_by_status().statuses}
        assert counts[OrderStatus.PENDING] == 2
        assert counts[OrderStatus.CANCELLED] == 1
        assert counts[OrderStatus.DELIVERED] == 0
        assert len(counts) == len(OrderStatus)

    def test_top_products_skip_cancelled(self, db_session, sales, taco):
        products = ReportService(db_session).top_products().products
        assert [(p.name, p.quantity_sold) for p in products] == [("taco", 5), ("horchata", 1)]
        assert products[0].menu_item_id == taco.id
        assert products[0].total_amount == Decimal("50.00")

    def test_top_products_limit(self, db_session, sales):
        assert len(ReportService(db_session).top_products(limit=1).products) == 1

    def test_payment_methods(self, db_session, sales):
        methods = {m.payment_method: m for m in ReportService(db_session).payment_methods().methods}
        assert methods[PaymentMethod.CASH].count == 1
        assert methods[PaymentMethod.CASH].total == Decimal("55.50")
        assert methods[PaymentMethod.CARD].total == Decimal("20.00")
        assert methods[PaymentMethod.TRANSFER].count == 0

    def test_recent_orders_with_invoice(self, db_session, sales):
        first, second, cancelled = sales
        recent = ReportService(db_session).recent_orders(limit=10)
        assert [o.id for o in recent] == [cancelled.id, second.id, first.id]
        assert recent[0].invoice_total is None
        assert recent[1].payment_method == PaymentMethod.CARD


class TestReportsAPI:

    def test_cashier_reads_dashboard(self, client, cashier_headers, sales):
        stats = client.get("/reports/stats", params={"days": 7}, headers=cashier_headers)
        assert stats.status_code == 200
        assert stats.json()["revenue"] == "75.50"

        top = client.get("/reports/top-products", params={"limit": 1}, headers=cashier_headers).json()
        assert top["products"][0]["name"] == "taco"

        for path in ("/reports/sales", "/reports/orders-by-status", "/reports/payment-methods",
                     "/reports/recent-orders"):
            assert client.get(path, headers=cashier_headers).status_code == 200

    def test_waiter_cannot_read_dashboard(self, client, waiter_headers):
        assert client.get("/reports/stats", headers=waiter_headers).status_code == 403

    def test_days_out_of_range(self, client, cashier_headers):
        assert client.get("/reports/sales", params={"days": 0}, headers=cashier_headers).status_code == 422
