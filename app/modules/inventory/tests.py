"""
Tests para insumos, movimientos de stock e ingredientes
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.common.exceptions import ConflictError, NotFoundError, ValidationError
from app.modules.inventory.models import StockMovementType, Supply, SupplyStatus
from app.modules.inventory.schemas import (
    IngredientCreate, StockMovementCreate, SupplyCreate, SupplyUpdate
)
from app.modules.inventory.service import InventoryService


@pytest.fixture
def tortillas(db_session):
    supply = Supply(name="tortillas", unit="kg", initial_stock=Decimal("10.000"))
    db_session.add(supply)
    db_session.commit()
    return supply


def move(service, supply, type_, quantity, user_id=None):
    return service.record_movement(
        StockMovementCreate(supply_id=supply.id, type=type_, quantity=Decimal(quantity)),
        user_id=user_id,
    )


class TestSupplies:

    def test_duplicate_name(self, db_session, tortillas):
        with pytest.raises(ConflictError):
            InventoryService(db_session).create_supply(SupplyCreate(name="tortillas"))

    def test_update_keeps_initial_stock(self, db_session, tortillas):
        supply = InventoryService(db_session).update_supply(tortillas.id, SupplyUpdate(unit="pz"))
        assert supply.unit == "pz"
        assert supply.initial_stock == Decimal("10.000")

    def test_delete_removes_ingredient_links(self, db_session, tortillas, taco):
        service = InventoryService(db_session)
        service.add_ingredient(taco.id, IngredientCreate(supply_id=tortillas.id, quantity=Decimal("0.05")))

        service.delete_supply(tortillas.id)

        assert service.list_supplies() == []
        assert service.list_ingredients(taco.id) == []

    def test_delete_with_movements_is_conflict(self, db_session, tortillas):
        service = InventoryService(db_session)
        move(service, tortillas, StockMovementType.IN, "2")
        with pytest.raises(ConflictError):
            service.delete_supply(tortillas.id)


class TestStock:

    def test_current_stock_is_initial_plus_in_minus_out(self, db_session, tortillas):
        service = InventoryService(db_session)
        move(service, tortillas, StockMovementType.IN, "5.5")
        move(service, tortillas, StockMovementType.OUT, "3.25")

        stock = service.get_supply_stock(tortillas.id)
        assert stock.initial_stock == Decimal("10.000")
        assert stock.movements_total == Decimal("2.250")
        assert stock.current_stock == Decimal("12.250")
        assert stock.last_movement_type == StockMovementType.OUT

    def test_supply_without_movements(self, db_session, tortillas):
        stock = InventoryService(db_session).get_stock()
        assert len(stock) == 1
        assert stock[0].current_stock == Decimal("10.000")
        assert stock[0].last_movement_at is None

    def test_out_beyond_stock_is_rejected(self, db_session, tortillas):
        service = InventoryService(db_session)
        with pytest.raises(ValidationError):
            move(service, tortillas, StockMovementType.OUT, "10.001")
        assert service.list_movements() == []

    def test_out_may_empty_the_stock(self, db_session, tortillas):
        service = InventoryService(db_session)
        move(service, tortillas, StockMovementType.OUT, "10")
        assert service.get_supply_stock(tortillas.id).current_stock == Decimal("0.000")

    @pytest.mark.parametrize("quantity", ["0", "-1"])
    def test_quantity_must_be_positive(self, db_session, tortillas, quantity):
        with pytest.raises(ValidationError):
            move(InventoryService(db_session), tortillas, StockMovementType.IN, quantity)

    def test_inactive_supply_rejects_movements(self, db_session, tortillas):
        service = InventoryService(db_session)
        service.update_supply(tortillas.id, SupplyUpdate(status=SupplyStatus.INACTIVE))
        with pytest.raises(ValidationError):
            move(service, tortillas, StockMovementType.IN, "1")

    def test_unknown_supply(self, db_session):
        data = StockMovementCreate(supply_id=uuid4(), type=StockMovementType.IN, quantity=Decimal("1"))
        with pytest.raises(NotFoundError):
            InventoryService(db_session).record_movement(data)

    def test_movements_filtered_by_supply(self, db_session, tortillas):
        service = InventoryService(db_session)
        carne = service.create_supply(SupplyCreate(name="carne", unit="kg"))
        move(service, tortillas, StockMovementType.IN, "1")
        move(service, carne, StockMovementType.IN, "3")

        movements = service.list_movements(supply_id=carne.id)
        assert [m.quantity for m in movements] == [Decimal("3.000")]
        assert len(service.list_movements()) == 2


class TestIngredients:

    def test_duplicate_ingredient_is_conflict(self, db_session, tortillas, taco):
        service = InventoryService(db_session)
        data = IngredientCreate(supply_id=tortillas.id, quantity=Decimal("0.05"))
        service.add_ingredient(taco.id, data)
        with pytest.raises(ConflictError):
            service.add_ingredient(taco.id, data)

    def test_unknown_menu_item(self, db_session, tortillas):
        data = IngredientCreate(supply_id=tortillas.id, quantity=Decimal("1"))
        with pytest.raises(NotFoundError):
            InventoryService(db_session).add_ingredient(uuid4(), data)

    def test_quantity_must_be_positive(self, db_session, tortillas, taco):
        data = IngredientCreate(supply_id=tortillas.id, quantity=Decimal("0"))
        with pytest.raises(ValidationError):
            InventoryService(db_session).add_ingredient(taco.id, data)

    def test_delete_unknown_ingredient(self, db_session):
        with pytest.raises(NotFoundError):
            InventoryService(db_session).delete_ingredient(uuid4())


class TestInventoryAPI:

    def test_admin_manages_supplies(self, client, admin_headers, waiter_headers):
        response = client.post("/inventory/supplies", json={
            "name": "refresco", "unit": "l", "initial_stock": "24"
        }, headers=admin_headers)
        assert response.status_code == 201
        supply_id = response.json()["id"]

        assert client.post("/inventory/supplies", json={"name": "hielo"}, headers=waiter_headers).status_code == 403

        listing = client.get("/inventory/supplies", headers=waiter_headers).json()
        assert [s["name"] for s in listing] == ["refresco"]

        assert client.delete(f"/inventory/supplies/{supply_id}", headers=admin_headers).status_code == 204

    def test_kitchen_records_movements(self, client, kitchen_headers, waiter_headers, tortillas):
        body = {"supply_id": str(tortillas.id), "type": "out", "quantity": "4"}
        assert client.post("/inventory/movements", json=body, headers=waiter_headers).status_code == 403

        response = client.post("/inventory/movements", json=body, headers=kitchen_headers)
        assert response.status_code == 201
        assert response.json()["quantity"] == "4.000"

        stock = client.get("/inventory/stock", headers=kitchen_headers).json()
        assert stock["total"] == 1
        assert stock["supplies"][0]["current_stock"] == "6.000"
        assert stock["supplies"][0]["last_movement_type"] == "out"

    def test_insufficient_stock_is_400(self, client, kitchen_headers, tortillas):
        body = {"supply_id": str(tortillas.id), "type": "out", "quantity": "11"}
        response = client.post("/inventory/movements", json=body, headers=kitchen_headers)
        assert response.status_code == 400
        assert "insuficiente" in response.json()["detail"]

    def test_menu_item_ingredients(self, client, admin_headers, waiter_headers, tortillas, taco):
        url = f"/inventory/menu-items/{taco.id}/ingredients"
        response = client.post(url, json={"supply_id": str(tortillas.id), "quantity": "0.05"}, headers=admin_headers)
        assert response.status_code == 201
        ingredient = response.json()
        assert ingredient["supply_name"] == "tortillas"
        assert ingredient["unit"] == "kg"

        assert client.post(
            url, json={"supply_id": str(tortillas.id), "quantity": "0.05"}, headers=admin_headers
        ).status_code == 409
        assert len(client.get(url, headers=waiter_headers).json()) == 1

        response = client.delete(f"/inventory/ingredients/{ingredient['id']}", headers=admin_headers)
        assert response.status_code == 204
        assert client.get(url, headers=waiter_headers).json() == []
