"""
Tests para el módulo de Pedidos

- Total del pedido = suma de subtotales, subtotal = cantidad * precio
- Validaciones de alta (renglones vacíos, cantidades, items inexistentes)
- Cambios de estado contra el conjunto cerrado de estados
- Colas de cocina y meseros, orden ascendente y descendente
- Permisos por rol en los endpoints
"""

import time
from decimal import Decimal
from uuid import uuid4

import pytest

from app.common.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.modules.notifications.notifier import ORDER_CREATED, ORDER_UPDATED
from app.modules.orders.models import Order, OrderStatus, is_adjacent_transition
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService


def taco_order(taco, quantity=3, unit_price="10"):
    return OrderCreate(lines=[
        OrderLineCreate(menu_item_id=taco.id, quantity=quantity, unit_price=Decimal(unit_price))
    ])


# ===== TESTS DE SERVICIOS =====

class TestCreateOrder:
    """Alta de pedidos"""

    def test_taco_order_total(self, db_session, waiter_user, taco, notifier):
        order = OrderService(db_session, notifier).create_order(taco_order(taco), staff_id=waiter_user.id)

        assert order.status == OrderStatus.PENDING
        assert order.total == Decimal("30.00")
        assert len(order.lines) == 1
        assert order.lines[0].subtotal == Decimal("30.00")
        assert notifier.events() == [ORDER_CREATED]
        assert notifier.published[0][1]["id"] == str(order.id)
        assert len(notifier.published[0][1]["lines"]) == 1

    def test_total_is_sum_of_line_subtotals(self, db_session, waiter_user, taco, horchata):
        data = OrderCreate(lines=[
            OrderLineCreate(menu_item_id=taco.id, quantity=4),
            OrderLineCreate(menu_item_id=horchata.id, quantity=3),
            OrderLineCreate(menu_item_id=taco.id, quantity=1, unit_price=Decimal("12.345")),
        ])
        order = OrderService(db_session).create_order(data, staff_id=waiter_user.id)

        for line in order.lines:
            assert line.subtotal == (line.unit_price * line.quantity).quantize(Decimal("0.01"))
        assert order.total == sum(line.subtotal for line in order.lines)
        # Precio del menú cuando no se indica
        assert order.lines[0].unit_price == Decimal("10.00")
        assert order.lines[1].subtotal == Decimal("76.50")
        # Redondeo comercial a centavos
        assert order.lines[2].unit_price == Decimal("12.35")
        assert order.total == Decimal("128.85")

    def test_empty_lines_rejected(self, db_session, waiter_user):
        with pytest.raises(ValidationError):
            OrderService(db_session).create_order(OrderCreate(lines=[]), staff_id=waiter_user.id)
        assert db_session.query(Order).count() == 0

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity_rejected(self, db_session, waiter_user, taco, quantity):
        with pytest.raises(ValidationError):
            OrderService(db_session).create_order(taco_order(taco, quantity=quantity), staff_id=waiter_user.id)
        assert db_session.query(Order).count() == 0

    def test_unknown_menu_item(self, db_session, waiter_user):
        data = OrderCreate(lines=[OrderLineCreate(menu_item_id=uuid4(), quantity=1)])
        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(data, staff_id=waiter_user.id)

    def test_unknown_customer(self, db_session, waiter_user, taco):
        data = taco_order(taco)
        data.customer_id = uuid4()
        with pytest.raises(NotFoundError):
            OrderService(db_session).create_order(data, staff_id=waiter_user.id)

    def test_unavailable_item_rejected(self, db_session, waiter_user, sold_out_item):
        data = OrderCreate(lines=[OrderLineCreate(menu_item_id=sold_out_item.id, quantity=1)])
        with pytest.raises(ValidationError):
            OrderService(db_session).create_order(data, staff_id=waiter_user.id)

    def test_customer_name_in_projection(self, db_session, waiter_user, taco, customer):
        data = taco_order(taco)
        data.customer_id = customer.id
        order = OrderService(db_session).create_order(data, staff_id=waiter_user.id)
        assert order.customer_name == "Ana García"


class TestOrderStatus:
    """Cambios de estado"""

    def test_full_lifecycle_then_bogus(self, db_session, waiter_user, taco, notifier):
        service = OrderService(db_session, notifier)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)

        for status in ("in_preparation", "ready", "delivered"):
            order = service.set_status(order.id, status)
            assert order.status.value == status

        with pytest.raises(InvalidStateError):
            service.set_status(order.id, "bogus")

        assert service.get_order_with_lines(order.id).status == OrderStatus.DELIVERED
        assert notifier.events() == [ORDER_CREATED] + [ORDER_UPDATED] * 3

    @pytest.mark.parametrize("status", [s.value for s in OrderStatus])
    def test_every_allowed_status_accepted(self, db_session, waiter_user, taco, status):
        service = OrderService(db_session)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        assert service.set_status(order.id, status).status == OrderStatus(status)

    @pytest.mark.parametrize("status", ["bogus", "PENDING", "", "paid"])
    def test_values_outside_set_rejected(self, db_session, waiter_user, taco, status):
        service = OrderService(db_session)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        with pytest.raises(InvalidStateError):
            service.set_status(order.id, status)
        assert service.get_order_with_lines(order.id).status == OrderStatus.PENDING

    def test_same_status_is_not_rejected(self, db_session, waiter_user, taco, notifier):
        service = OrderService(db_session, notifier)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        service.set_status(order.id, "ready")
        assert service.set_status(order.id, "ready").status == OrderStatus.READY
        assert notifier.events().count(ORDER_UPDATED) == 2

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            OrderService(db_session).set_status(uuid4(), "ready")

    def test_non_adjacent_allowed_by_default(self, db_session, waiter_user, taco):
        service = OrderService(db_session, strict_transitions=False)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        assert service.set_status(order.id, "delivered").status == OrderStatus.DELIVERED

    def test_strict_transitions(self, db_session, waiter_user, taco):
        service = OrderService(db_session, strict_transitions=True)
        order = service.create_order(taco_order(taco), staff_id=waiter_user.id)

        with pytest.raises(InvalidStateError):
            service.set_status(order.id, "delivered")

        service.set_status(order.id, "in_preparation")
        service.set_status(order.id, "cancelled")
        with pytest.raises(InvalidStateError):
            service.set_status(order.id, "pending")

    def test_is_adjacent_transition(self):
        assert is_adjacent_transition(OrderStatus.PENDING, OrderStatus.IN_PREPARATION)
        assert is_adjacent_transition(OrderStatus.READY, OrderStatus.CANCELLED)
        assert is_adjacent_transition(OrderStatus.DELIVERED, OrderStatus.DELIVERED)
        assert not is_adjacent_transition(OrderStatus.PENDING, OrderStatus.READY)
        assert not is_adjacent_transition(OrderStatus.CANCELLED, OrderStatus.PENDING)


class TestOrderQueues:
    """Listados y colas operativas"""

    @pytest.fixture
    def orders(self, db_session, waiter_user, taco):
        service = OrderService(db_session)
        created = []
        for status in ("pending", "in_preparation", "ready", "delivered"):
            order = service.create_order(taco_order(taco), staff_id=waiter_user.id)
            service.set_status(order.id, status)
            created.append(order)
            time.sleep(0.002)
        return created

    def test_kitchen_queue_oldest_first(self, db_session, orders):
        queue = OrderService(db_session).kitchen_queue()
        assert [o.id for o in queue] == [orders[0].id, orders[1].id]

    def test_server_queue_oldest_first(self, db_session, orders):
        queue = OrderService(db_session).server_queue()
        assert [o.id for o in queue] == [orders[0].id, orders[1].id, orders[2].id]

    def test_general_listing_most_recent_first(self, db_session, orders):
        listed = OrderService(db_session).list_orders()
        assert [o.id for o in listed] == [o.id for o in reversed(orders)]

    def test_listing_ascending_on_request(self, db_session, orders):
        listed = OrderService(db_session).list_orders(ascending=True)
        assert [o.id for o in listed] == [o.id for o in orders]

    def test_filter_by_status(self, db_session, orders):
        listed = OrderService(db_session).list_orders(statuses=["delivered"])
        assert [o.id for o in listed] == [orders[3].id]

    def test_empty_listing(self, db_session):
        assert OrderService(db_session).list_orders(statuses=["cancelled"]) == []


# ===== TESTS DE API ENDPOINTS =====

class TestOrderAPI:
    """Endpoints de pedidos"""

    def test_create_order_endpoint(self, client, waiter_headers, taco, notifier):
        response = client.post("/orders/", json={
            "kind": "table",
            "table_label": "Mesa 4",
            "lines": [{"menu_item_id": str(taco.id), "quantity": 3, "unit_price": "10"}]
        }, headers=waiter_headers)

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total"]) == Decimal("30")
        assert data["status"] == "pending"
        assert data["lines"][0]["item_name"] == "taco"
        assert notifier.events() == [ORDER_CREATED]

    def test_create_order_empty_lines_is_400(self, client, waiter_headers):
        response = client.post("/orders/", json={"lines": []}, headers=waiter_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_kitchen_cannot_create_order(self, client, kitchen_headers, taco):
        response = client.post("/orders/", json={
            "lines": [{"menu_item_id": str(taco.id), "quantity": 1}]
        }, headers=kitchen_headers)
        assert response.status_code == 403

    def test_requires_authentication(self, client):
        assert client.get("/orders/").status_code in (401, 403)

    def test_status_transitions_by_role(self, client, db_session, waiter_user, waiter_headers,
                                        kitchen_headers, taco):
        order = OrderService(db_session).create_order(taco_order(taco), staff_id=waiter_user.id)
        url = f"/orders/{order.id}/status"

        assert client.patch(url, json={"status": "in_preparation"}, headers=waiter_headers).status_code == 403
        assert client.patch(url, json={"status": "in_preparation"}, headers=kitchen_headers).status_code == 200
        assert client.patch(url, json={"status": "ready"}, headers=kitchen_headers).status_code == 200
        assert client.patch(url, json={"status": "delivered"}, headers=kitchen_headers).status_code == 403
        assert client.patch(url, json={"status": "delivered"}, headers=waiter_headers).status_code == 200

        response = client.patch(url, json={"status": "bogus"}, headers=waiter_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"

        assert client.get(f"/orders/{order.id}", headers=waiter_headers).json()["status"] == "delivered"

    @pytest.mark.parametrize("headers_fixture", ["kitchen_headers", "waiter_headers", "cashier_headers"])
    def test_unknown_status_is_400_for_every_role(self, client, db_session, request, waiter_user, taco,
                                                   headers_fixture):
        order = OrderService(db_session).create_order(taco_order(taco), staff_id=waiter_user.id)
        headers = request.getfixturevalue(headers_fixture)
        response = client.patch(f"/orders/{order.id}/status", json={"status": "bogus"}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"

    def test_admin_passes_every_role_check(self, client, db_session, waiter_user, admin_headers, taco):
        order = OrderService(db_session).create_order(taco_order(taco), staff_id=waiter_user.id)
        response = client.patch(f"/orders/{order.id}/status", json={"status": "ready"}, headers=admin_headers)
        assert response.status_code == 200

    def test_unknown_order_is_404(self, client, waiter_headers):
        response = client.get(f"/orders/{uuid4()}", headers=waiter_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_queues_and_listing(self, client, db_session, waiter_user, waiter_headers, kitchen_headers, taco):
        service = OrderService(db_session)
        first = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        time.sleep(0.002)
        second = service.create_order(taco_order(taco), staff_id=waiter_user.id)
        service.set_status(second.id, "ready")

        kitchen = client.get("/orders/queue/kitchen", headers=kitchen_headers).json()
        assert [o["id"] for o in kitchen["orders"]] == [str(first.id)]

        server = client.get("/orders/queue/server", headers=waiter_headers).json()
        assert [o["id"] for o in server["orders"]] == [str(first.id), str(second.id)]

        desc = client.get("/orders/", headers=waiter_headers).json()
        assert [o["id"] for o in desc["orders"]] == [str(second.id), str(first.id)]

        asc = client.get("/orders/", params={"order": "asc"}, headers=waiter_headers).json()
        assert [o["id"] for o in asc["orders"]] == [str(first.id), str(second.id)]

        ready = client.get("/orders/", params={"status": "ready"}, headers=waiter_headers).json()
        assert ready["total"] == 1

    def test_waiter_cannot_read_kitchen_queue(self, client, waiter_headers):
        assert client.get("/orders/queue/kitchen", headers=waiter_headers).status_code == 403
