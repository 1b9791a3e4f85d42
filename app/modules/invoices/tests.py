"""
Tests para el módulo de Facturación

- A lo sumo una factura por pedido
- Copia inmutable de renglones al facturar
- Cálculo de subtotal, impuesto y total con tasa configurable
- Resumen de facturación
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import false

from app.common.exceptions import ConflictError, InvalidStateError, NotFoundError
from app.common.money import format_money, normalize_money, to_money
from app.modules.invoices.calculator import InvoiceCalculator
from app.modules.invoices.models import Invoice, PaymentMethod
from app.modules.invoices.service import InvoiceService
from app.modules.notifications.notifier import INVOICE_ISSUED
from app.modules.orders.models import OrderLine
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService


@pytest.fixture
def taco_order(db_session, waiter_user, taco):
    data = OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=3, unit_price=Decimal("10"))])
    return OrderService(db_session).create_order(data, staff_id=waiter_user.id)


# ===== TESTS DE CÁLCULO =====

class TestMoneyAndCalculator:

    def test_money_formats(self):
        assert to_money("2.675") == Decimal("2.68")
        assert format_money(Decimal("30")) == "30.00"
        assert normalize_money(Decimal("30.00")) == "30"
        assert normalize_money(Decimal("45.50")) == "45.5"

    def test_zero_tax_by_default(self):
        totals = InvoiceCalculator(Decimal("0")).totals([Decimal("10"), Decimal("20")])
        assert totals == {"subtotal": Decimal("30.00"), "tax": Decimal("0.00"), "total": Decimal("30.00")}

    def test_configured_tax_rate(self):
        totals = InvoiceCalculator(Decimal("0.16")).totals([Decimal("30")])
        assert totals["tax"] == Decimal("4.80")
        assert totals["total"] == Decimal("34.80")

    def test_split_inclusive(self):
        split = InvoiceCalculator(Decimal("0.16")).split_inclusive(Decimal("116"))
        assert split == {"subtotal": Decimal("100.00"), "tax": Decimal("16.00"), "total": Decimal("116.00")}


# ===== TESTS DE SERVICIOS =====

class TestIssueInvoice:

    def test_issue_scenario(self, db_session, taco_order, cashier_user, notifier):
        service = InvoiceService(db_session, notifier)
        issued = service.issue_invoice(taco_order.id, issued_by=cashier_user.id)

        assert (issued.subtotal, issued.tax, issued.total) == ("30.00", "0.00", "30")
        assert issued.order.id == taco_order.id
        assert [(i.name, i.quantity, i.unit_price, i.subtotal) for i in issued.items] == [
            ("taco", 3, Decimal("10.00"), Decimal("30.00"))
        ]
        assert notifier.events() == [INVOICE_ISSUED]

        with pytest.raises(ConflictError):
            service.issue_invoice(taco_order.id)
        assert db_session.query(Invoice).count() == 1

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).issue_invoice(uuid4())
        assert db_session.query(Invoice).count() == 0

    def test_cancelled_order_cannot_be_invoiced(self, db_session, taco_order):
        OrderService(db_session).set_status(taco_order.id, "cancelled")
        with pytest.raises(InvalidStateError):
            InvoiceService(db_session).issue_invoice(taco_order.id)

    def test_tax_rate_applied(self, db_session, taco_order):
        issued = InvoiceService(db_session, tax_rate=Decimal("0.16")).issue_invoice(taco_order.id)
        assert (issued.subtotal, issued.tax, issued.total) == ("30.00", "4.80", "34.8")

    def test_unique_constraint_resolves_race(self, db_session, taco_order):
        """Si la verificación previa no ve la otra factura, la restricción única responde"""
        service = InvoiceService(db_session)
        service.issue_invoice(taco_order.id)

        # Simula una emisión concurrente que no alcanzó a ver la primera factura
        original_query = db_session.query

        def query_without_invoice_check(*entities, **kwargs):
            if entities and entities[0] is Invoice.id:
                return original_query(Invoice.id).filter(false())
            return original_query(*entities, **kwargs)

        db_session.query = query_without_invoice_check
        try:
            with pytest.raises(ConflictError):
                service.issue_invoice(taco_order.id)
        finally:
            db_session.query = original_query

        assert db_session.query(Invoice).count() == 1

    def test_snapshot_survives_order_changes(self, db_session, taco_order, taco):
        service = InvoiceService(db_session)
        issued = service.issue_invoice(taco_order.id, payment_method=PaymentMethod.CARD)

        line = db_session.query(OrderLine).filter(OrderLine.order_id == taco_order.id).one()
        line.quantity = 7
        line.unit_price = Decimal("99.00")
        line.subtotal = Decimal("693.00")
        taco.name = "taco renombrado"
        db_session.commit()

        detail = service.get_invoice(issued.invoice.id)
        assert [(i.name, i.quantity, i.unit_price, i.subtotal) for i in detail.items] == [
            ("taco", 3, Decimal("10.00"), Decimal("30.00"))
        ]
        assert detail.total == Decimal("30.00")
        assert detail.payment_method == PaymentMethod.CARD

    def test_get_unknown_invoice(self, db_session):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).get_invoice(uuid4())

    def test_list_most_recent_first(self, db_session, waiter_user, taco):
        orders = OrderService(db_session)
        service = InvoiceService(db_session)
        ids = []
        for _ in range(3):
            order = orders.create_order(
                OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=1)]), staff_id=waiter_user.id
            )
            ids.append(service.issue_invoice(order.id).invoice.id)

        assert [inv.id for inv in service.list_invoices()] == list(reversed(ids))

    def test_summary(self, db_session, waiter_user, taco):
        orders = OrderService(db_session)
        service = InvoiceService(db_session)
        for quantity in (1, 2, 3):
            order = orders.create_order(
                OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=quantity)]), staff_id=waiter_user.id
            )
            service.issue_invoice(order.id)

        summary = service.get_summary(days=30)
        assert summary.total_invoices == 3
        assert summary.revenue == Decimal("60.00")
        assert summary.average_ticket == Decimal("20.00")
        assert summary.days_invoiced == 1

    def test_empty_summary(self, db_session):
        summary = InvoiceService(db_session).get_summary()
        assert summary.total_invoices == 0
        assert summary.average_ticket == Decimal("0.00")

    def test_uninvoiced_orders(self, db_session, waiter_user, taco):
        orders = OrderService(db_session)
        service = InvoiceService(db_session)
        created = [
            orders.create_order(
                OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=1)]), staff_id=waiter_user.id
            )
            for _ in range(3)
        ]
        service.issue_invoice(created[0].id)
        orders.set_status(created[1].id, "cancelled")

        assert [o.id for o in service.list_uninvoiced_orders()] == [created[2].id]


# ===== TESTS DE API ENDPOINTS =====

class TestInvoiceAPI:

    def test_issue_endpoint(self, client, cashier_headers, taco_order):
        response = client.post(f"/invoices/orders/{taco_order.id}", headers=cashier_headers)
        assert response.status_code == 201
        body = response.json()
        assert (body["subtotal"], body["tax"], body["total"]) == ("30.00", "0.00", "30")

        again = client.post(f"/invoices/orders/{taco_order.id}", headers=cashier_headers)
        assert again.status_code == 409
        assert again.json()["error"] == "conflict"

        invoice_id = body["invoice"]["id"]
        detail = client.get(f"/invoices/{invoice_id}", headers=cashier_headers)
        assert detail.status_code == 200
        assert detail.json()["items"][0]["name"] == "taco"

        listing = client.get("/invoices/", headers=cashier_headers).json()
        assert listing["total"] == 1

        summary = client.get("/invoices/summary", params={"days": 7}, headers=cashier_headers).json()
        assert summary["total_invoices"] == 1

    def test_payment_method_in_body(self, client, cashier_headers, taco_order):
        response = client.post(
            f"/invoices/orders/{taco_order.id}", json={"payment_method": "transfer"}, headers=cashier_headers
        )
        assert response.json()["invoice"]["payment_method"] == "transfer"

    def test_unknown_order_is_404(self, client, cashier_headers):
        assert client.post(f"/invoices/orders/{uuid4()}", headers=cashier_headers).status_code == 404

    def test_waiter_cannot_issue(self, client, waiter_headers, taco_order):
        assert client.post(f"/invoices/orders/{taco_order.id}", headers=waiter_headers).status_code == 403

    def test_pending_orders_endpoint(self, client, cashier_headers, waiter_headers, taco_order):
        pending = client.get("/invoices/pending-orders", headers=cashier_headers)
        assert pending.status_code == 200
        assert [o["id"] for o in pending.json()["orders"]] == [str(taco_order.id)]
        assert client.get("/invoices/pending-orders", headers=waiter_headers).status_code == 403

        client.post(f"/invoices/orders/{taco_order.id}", headers=cashier_headers)
        assert client.get("/invoices/pending-orders", headers=cashier_headers).json()["total"] == 0
