"""
Tests para el catálogo del menú
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.common.exceptions import ConflictError, NotFoundError
from app.modules.menu.models import MenuItemStatus
from app.modules.menu.schemas import MenuCategoryCreate, MenuItemCreate, MenuItemUpdate
from app.modules.menu.service import MenuService
from app.modules.inventory.models import MenuItemIngredient, Supply
from app.modules.orders.schemas import OrderCreate, OrderLineCreate
from app.modules.orders.service import OrderService


class TestMenuService:

    def test_duplicate_category(self, db_session, menu_category):
        with pytest.raises(ConflictError):
            MenuService(db_session).create_category(MenuCategoryCreate(name="Tacos"))

    def test_item_requires_category(self, db_session):
        data = MenuItemCreate(category_id=uuid4(), name="Gringa", price=Decimal("55"))
        with pytest.raises(NotFoundError):
            MenuService(db_session).create_item(data)

    def test_filter_by_status(self, db_session, taco, sold_out_item):
        service = MenuService(db_session)
        available = service.list_items(status=MenuItemStatus.AVAILABLE)
        assert [i.name for i in available] == ["taco"]

    def test_update_price(self, db_session, taco):
        item = MenuService(db_session).update_item(taco.id, MenuItemUpdate(price=Decimal("12.50")))
        assert item.price == Decimal("12.50")
        assert item.name == "taco"

    def test_delete_item_removes_ingredients(self, db_session, taco):
        supply = Supply(name="tortillas", unit="kg")
        db_session.add(supply)
        db_session.add(MenuItemIngredient(menu_item_id=taco.id, supply=supply, quantity=Decimal("0.05")))
        db_session.commit()

        MenuService(db_session).delete_item(taco.id)

        assert MenuService(db_session).list_items() == []
        assert db_session.query(MenuItemIngredient).count() == 0
        assert db_session.query(Supply).count() == 1

    def test_ordered_item_cannot_be_deleted(self, db_session, waiter_user, taco):
        OrderService(db_session).create_order(
            OrderCreate(lines=[OrderLineCreate(menu_item_id=taco.id, quantity=1)]), staff_id=waiter_user.id
        )
        with pytest.raises(ConflictError):
            MenuService(db_session).delete_item(taco.id)
        assert MenuService(db_session).get_item(taco.id).name == "taco"

    def test_delete_category_with_items(self, db_session, menu_category, taco, horchata):
        service = MenuService(db_session)
        service.delete_category(menu_category.id)
        assert service.list_categories() == []
        assert service.list_items() == []

    def test_category_with_ordered_item_is_kept(self, db_session, waiter_user, menu_category, taco, horchata):
        OrderService(db_session).create_order(
            OrderCreate(lines=[OrderLineCreate(menu_item_id=horchata.id, quantity=2)]), staff_id=waiter_user.id
        )
        service = MenuService(db_session)
        with pytest.raises(ConflictError):
            service.delete_category(menu_category.id)
        assert len(service.list_items(category_id=menu_category.id)) == 2

    def test_delete_unknown_category(self, db_session):
        with pytest.raises(NotFoundError):
            MenuService(db_session).delete_category(uuid4())


class TestMenuAPI:

    def test_admin_manages_menu(self, client, admin_headers, waiter_headers):
        response = client.post("/menu/categories", json={"name": "Bebidas"}, headers=admin_headers)
        assert response.status_code == 201
        category_id = response.json()["id"]

        assert client.post("/menu/categories", json={"name": "Postres"}, headers=waiter_headers).status_code == 403

        response = client.post("/menu/items", json={
            "category_id": category_id, "name": "Horchata", "price": "25.50"
        }, headers=admin_headers)
        assert response.status_code == 201
        item = response.json()
        assert item["category_name"] == "Bebidas"

        listing = client.get("/menu/items", headers=waiter_headers).json()
        assert listing["total"] == 1

        response = client.put(f"/menu/items/{item['id']}", json={"status": "unavailable"}, headers=admin_headers)
        assert response.json()["status"] == "unavailable"

    def test_unknown_item_is_404(self, client, waiter_headers):
        assert client.get(f"/menu/items/{uuid4()}", headers=waiter_headers).status_code == 404

    def test_admin_deletes_item_and_category(self, client, admin_headers, waiter_headers, menu_category, taco):
        assert client.delete(f"/menu/items/{taco.id}", headers=waiter_headers).status_code == 403
        assert client.delete(f"/menu/items/{taco.id}", headers=admin_headers).status_code == 204
        assert client.get(f"/menu/items/{taco.id}", headers=waiter_headers).status_code == 404

        assert client.delete(f"/menu/categories/{menu_category.id}", headers=admin_headers).status_code == 204
        assert client.get("/menu/categories", headers=waiter_headers).json() == []
