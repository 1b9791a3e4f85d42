"""
Servicio del catálogo del menú.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.exceptions import ConflictError, NotFoundError
from app.database.database import transaction
from app.modules.menu.models import MenuCategory, MenuItem, MenuItemStatus
from app.modules.menu.schemas import MenuCategoryCreate, MenuItemCreate, MenuItemUpdate
from app.modules.inventory.models import MenuItemIngredient
from app.modules.orders.models import OrderLine

logger = logging.getLogger(__name__)


class MenuService:
    """Categorías e items del menú"""

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self) -> List[MenuCategory]:
        return self.db.query(MenuCategory).order_by(MenuCategory.name).all()

    def create_category(self, data: MenuCategoryCreate) -> MenuCategory:
        category = MenuCategory(name=data.name.strip(), description=data.description)
        try:
            with transaction(self.db):
                self.db.add(category)
        except IntegrityError:
            raise ConflictError(f"Ya existe la categoría '{data.name}'")
        logger.info(f"Menu category {category.id} created")
        return category

    def list_items(self, status: Optional[MenuItemStatus] = None,
                   category_id: Optional[UUID] = None) -> List[MenuItem]:
        query = self.db.query(MenuItem).options(selectinload(MenuItem.category))
        if status:
            query = query.filter(MenuItem.status == status)
        if category_id:
            query = query.filter(MenuItem.category_id == category_id)
        return query.order_by(MenuItem.name).all()

    def get_item(self, item_id: UUID) -> MenuItem:
        item = self.db.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Item del menú no encontrado")
        return item

    def _require_category(self, category_id: UUID) -> MenuCategory:
        category = self.db.get(MenuCategory, category_id)
        if category is None:
            raise NotFoundError("Categoría no encontrada")
        return category

    def create_item(self, data: MenuItemCreate) -> MenuItem:
        self._require_category(data.category_id)
        item = MenuItem(**data.model_dump())
        with transaction(self.db):
            self.db.add(item)
        logger.info(f"Menu item {item.id} created ({item.name}, {item.price})")
        return item

    def update_item(self, item_id: UUID, data: MenuItemUpdate) -> MenuItem:
        item = self.get_item(item_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "category_id" in changes:
            self._require_category(changes["category_id"])

        with transaction(self.db):
            for field, value in changes.items():
                setattr(item, field, value)

        logger.info(f"Menu item {item.id} updated")
        return item

    def _ensure_not_ordered(self, item_ids: List[UUID]) -> None:
        if not item_ids:
            return
        used = self.db.query(OrderLine.menu_item_id).filter(OrderLine.menu_item_id.in_(item_ids)).first()
        if used:
            raise ConflictError(
                "El item aparece en pedidos registrados; márcalo como no disponible en su lugar"
            )

    def delete_item(self, item_id: UUID) -> None:
        """
        Eliminar un item del menú junto con sus ingredientes.

        Los pedidos conservan su historial: un item ya pedido no se borra.
        """
        item = self.get_item(item_id)
        self._ensure_not_ordered([item.id])

        with transaction(self.db):
            self.db.query(MenuItemIngredient).filter(
                MenuItemIngredient.menu_item_id == item.id
            ).delete()
            self.db.delete(item)

        logger.info(f"Menu item {item_id} deleted")

    def delete_category(self, category_id: UUID) -> None:
        """Eliminar una categoría con todos sus items"""
        category = self._require_category(category_id)
        item_ids = [item_id for (item_id,) in
                    self.db.query(MenuItem.id).filter(MenuItem.category_id == category_id)]
        self._ensure_not_ordered(item_ids)

        with transaction(self.db):
            if item_ids:
                self.db.query(MenuItemIngredient).filter(
                    MenuItemIngredient.menu_item_id.in_(item_ids)
                ).delete()
            for item in list(category.items):
                self.db.delete(item)
            self.db.delete(category)

        logger.info(f"Menu category {category_id} deleted with {len(item_ids)} items")
