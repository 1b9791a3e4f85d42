"""
Tests para el módulo de Caja (POS)

- Una sola sesión abierta (verificación previa e índice único)
- Validaciones de venta: monto, monto recibido y cambio
- Cierre: total = fondo inicial + ventas del día contable
- Factura emitida en la misma transacción que la venta
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from app.common.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from app.modules.invoices.models import Invoice
from app.modules.notifications.notifier import CASH_SESSION_CLOSED, CASH_SESSION_OPENED, INVOICE_ISSUED
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService
from app.modules.pos.models import CashMovement, CashSession, CashSessionStatus, MovementType
from app.modules.pos.schemas import CashSaleCreate
from app.modules.pos.services import CashSessionService


def sale(amount, tendered, change, **extra):
    return CashSaleCreate(
        amount=Decimal(str(amount)),
        tendered_amount=Decimal(str(tendered)),
        change_amount=Decimal(str(change)),
        **extra
    )


# ===== TESTS DE SERVICIOS =====

class TestOpenSession:
    """Apertura de caja"""

    def test_open_session_records_open_movement(self, db_session, cashier_user, notifier):
        session = CashSessionService(db_session, notifier).open_session(Decimal("100"), user_id=cashier_user.id)

        assert session.status == CashSessionStatus.OPEN
        assert session.opening_float == Decimal("100.00")
        movements = db_session.query(CashMovement).filter(CashMovement.session_id == session.id).all()
        assert [(m.type, m.amount) for m in movements] == [(MovementType.OPEN, Decimal("100.00"))]
        assert notifier.events() == [CASH_SESSION_OPENED]

    @pytest.mark.parametrize("opening_float", ["0", "-5"])
    def test_opening_float_must_be_positive(self, db_session, opening_float):
        with pytest.raises(ValidationError):
            CashSessionService(db_session).open_session(Decimal(opening_float))
        assert db_session.query(CashSession).count() == 0

    def test_second_open_conflicts(self, db_session):
        service = CashSessionService(db_session)
        service.open_session(Decimal("100"))
        with pytest.raises(ConflictError):
            service.open_session(Decimal("50"))
        assert db_session.query(CashSession).count() == 1

    def test_unique_index_rejects_concurrent_open(self, db_session, monkeypatch):
        """Dos aperturas que pasan la verificación previa: el índice único decide"""
        service = CashSessionService(db_session)
        service.open_session(Decimal("100"))

        monkeypatch.setattr(CashSessionService, "_find_open_session", lambda self, lock=False: None)
        with pytest.raises(ConflictError):
            service.open_session(Decimal("50"))

        monkeypatch.undo()
        assert db_session.query(CashSession).count() == 1
        # La apertura fallida no dejó movimientos huérfanos
        assert db_session.query(CashMovement).count() == 1

    def test_foreign_key_failure_is_not_a_conflict(self, db_session):
        """Solo el índice de sesión abierta se traduce a ConflictError"""
        with pytest.raises(StorageError):
            CashSessionService(db_session).open_session(Decimal("100"), user_id=uuid4())
        assert db_session.query(CashSession).count() == 0

    def test_reopen_after_close(self, db_session):
        service = CashSessionService(db_session)
        service.open_session(Decimal("100"))
        service.close_session()
        assert service.open_session(Decimal("80")).opening_float == Decimal("80.00")

    def test_current_session(self, db_session):
        service = CashSessionService(db_session)
        with pytest.raises(NotFoundError):
            service.get_current_session()
        session = service.open_session(Decimal("100"))
        assert service.get_current_session().id == session.id


class TestRecordSale:
    """Ventas en caja"""

    @pytest.fixture
    def service(self, db_session, notifier):
        service = CashSessionService(db_session, notifier)
        service.open_session(Decimal("100"))
        return service

    def test_walk_up_sale_issues_invoice(self, db_session, service, notifier):
        result = service.record_sale(sale(45, 50, 5, description="Tacos para llevar"))

        assert result.movement.type == MovementType.SALE
        assert result.movement.amount == Decimal("45.00")
        assert result.movement.change_amount == Decimal("5.00")
        assert result.invoice.invoice.order_id is None
        assert result.invoice.total == "45"
        assert result.invoice.items[0].name == "Tacos para llevar"
        assert result.movement.invoice_id == result.invoice.invoice.id
        assert notifier.events()[-1] == INVOICE_ISSUED

    @pytest.mark.parametrize("amount,tendered,change", [
        (0, 10, 10),        # monto no positivo
        (-5, 10, 15),
        (45, 40, 0),        # recibido menor al monto
        (45, 50, 4),        # cambio incorrecto
    ])
    def test_invalid_amounts(self, db_session, service, amount, tendered, change):
        with pytest.raises(ValidationError):
            service.record_sale(sale(amount, tendered, change))
        assert db_session.query(CashMovement).filter(CashMovement.type == MovementType.SALE).count() == 0
        assert db_session.query(Invoice).count() == 0

    def test_exact_tender_without_change(self, service):
        assert service.record_sale(sale(30, 30, 0)).movement.change_amount == Decimal("0.00")

    def test_sale_without_open_session(self, db_session):
        with pytest.raises(ConflictError):
            CashSessionService(db_session).record_sale(sale(45, 50, 5))
        assert db_session.query(Invoice).count() == 0

    def test_sale_on_closed_session(self, db_session, service):
        session = service.get_current_session()
        service.close_session()
        with pytest.raises(ConflictError):
            service.record_sale(sale(45, 50, 5, session_id=session.id))

    def test_sale_on_unknown_session(self, service):
        with pytest.raises(NotFoundError):
            service.record_sale(sale(45, 50, 5, session_id=uuid4()))

    def test_sale_for_order_invoices_the_order(self, db_session, service, waiter_user, taco):
        order = OrderService(db_session).create_order(
            OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=3)]), staff_id=waiter_user.id
        )
        result = service.record_sale(sale(30, 50, 20, order_id=order.id))

        assert result.invoice.invoice.order_id == order.id
        assert result.invoice.subtotal == "30.00"

        # Segunda venta del mismo pedido: ya facturado
        with pytest.raises(ConflictError):
            service.record_sale(sale(30, 30, 0, order_id=order.id))
        assert db_session.query(CashMovement).filter(CashMovement.type == MovementType.SALE).count() == 1

    def test_sale_amount_must_match_order_total(self, db_session, service, waiter_user, taco):
        order = OrderService(db_session).create_order(
            OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=3)]), staff_id=waiter_user.id
        )
        with pytest.raises(ValidationError):
            service.record_sale(sale(25, 30, 5, order_id=order.id))
        # Todo se revirtió: ni factura ni movimiento
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(CashMovement).filter(CashMovement.type == MovementType.SALE).count() == 0

    def test_unknown_cashier_is_storage_error(self, db_session, service):
        with pytest.raises(StorageError):
            service.record_sale(sale(45, 50, 5), user_id=uuid4())
        assert db_session.query(Invoice).count() == 0

    def test_list_open_movements_most_recent_first(self, service):
        service.record_sale(sale(45, 50, 5))
        service.record_sale(sale(20, 20, 0))
        movements = service.list_open_movements()
        assert [(m.type, m.amount) for m in movements] == [
            (MovementType.SALE, Decimal("20.00")),
            (MovementType.SALE, Decimal("45.00")),
            (MovementType.OPEN, Decimal("100.00")),
        ]

    def test_no_movements_without_open_session(self, db_session):
        assert CashSessionService(db_session).list_open_movements() == []


class TestCloseSession:
    """Cierre de caja"""

    def test_open_sale_close_scenario(self, db_session, notifier):
        service = CashSessionService(db_session, notifier)
        service.open_session(Decimal("100"))
        with pytest.raises(ConflictError):
            service.open_session(Decimal("50"))
        service.record_sale(sale(45, 50, 5))

        result = service.close_session()

        assert result.total_sales == Decimal("45.00")
        assert result.closing_total == Decimal("145.00")
        assert result.session.status == CashSessionStatus.CLOSED
        assert result.session.closed_at is not None
        assert notifier.events()[-1] == CASH_SESSION_CLOSED

        close = db_session.query(CashMovement).filter(CashMovement.type == MovementType.CLOSE).one()
        assert close.amount == Decimal("145.00")

    def test_closing_total_is_float_plus_sales(self, db_session):
        service = CashSessionService(db_session)
        service.open_session(Decimal("250.50"))
        for amount in ("12.25", "30", "99.99"):
            service.record_sale(sale(amount, amount, 0))
        assert service.close_session().closing_total == Decimal("392.74")

    def test_sales_from_previous_business_day_excluded(self, db_session):
        service = CashSessionService(db_session)
        service.open_session(Decimal("100"))
        service.record_sale(sale(45, 50, 5))
        old = service.record_sale(sale(60, 60, 0))

        movement = db_session.get(CashMovement, old.movement.id)
        movement.created_at = movement.created_at - timedelta(days=2)
        db_session.commit()

        result = service.close_session()
        assert result.total_sales == Decimal("45.00")
        assert result.closing_total == Decimal("145.00")

    def test_close_without_open_session(self, db_session):
        with pytest.raises(ConflictError):
            CashSessionService(db_session).close_session()

    def test_close_by_id(self, db_session):
        service = CashSessionService(db_session)
        session = service.open_session(Decimal("100"))
        assert service.close_session(session.id).session.id == session.id
        with pytest.raises(ConflictError):
            service.close_session(session.id)


# ===== TESTS DE API ENDPOINTS =====

class TestCashAPI:
    """Endpoints de caja"""

    def test_cash_flow_endpoints(self, client, cashier_headers, notifier):
        response = client.post("/cash/sessions/open", json={"opening_float": "100"}, headers=cashier_headers)
        assert response.status_code == 201
        session_id = response.json()["id"]

        response = client.post("/cash/sessions/open", json={"opening_float": "50"}, headers=cashier_headers)
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

        assert client.get("/cash/sessions/current", headers=cashier_headers).json()["id"] == session_id

        response = client.post("/cash/sales", json={
            "amount": "45", "tendered_amount": "50", "change_amount": "5"
        }, headers=cashier_headers)
        assert response.status_code == 201
        assert response.json()["invoice"]["total"] == "45"

        movements = client.get("/cash/movements", headers=cashier_headers).json()
        assert movements["total"] == 2

        response = client.post("/cash/sessions/close", headers=cashier_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["closing_total"]) == Decimal("145")

        assert client.get("/cash/sessions/current", headers=cashier_headers).status_code == 404
        assert client.post("/cash/sessions/close", headers=cashier_headers).status_code == 409
        assert CASH_SESSION_OPENED in notifier.events()
        assert CASH_SESSION_CLOSED in notifier.events()

    def test_invalid_opening_float_is_400(self, client, cashier_headers):
        response = client.post("/cash/sessions/open", json={"opening_float": "0"}, headers=cashier_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_bad_change_is_400(self, client, cashier_headers):
        client.post("/cash/sessions/open", json={"opening_float": "100"}, headers=cashier_headers)
        response = client.post("/cash/sales", json={
            "amount": "45", "tendered_amount": "50", "change_amount": "1"
        }, headers=cashier_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("headers_fixture", ["waiter_headers", "kitchen_headers"])
    def test_only_cashier_opens_and_closes(self, client, request, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        assert client.post("/cash/sessions/open", json={"opening_float": "100"}, headers=headers).status_code == 403
        assert client.post("/cash/sessions/close", headers=headers).status_code == 403

    def test_admin_can_open(self, client, admin_headers):
        response = client.post("/cash/sessions/open", json={"opening_float": "100"}, headers=admin_headers)
        assert response.status_code == 201
