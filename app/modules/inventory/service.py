"""
Servicio de inventario

- Alta, edición y baja de insumos
- Movimientos de entrada y salida (solo se agregan)
- Existencia calculada: stock inicial + entradas - salidas
- Ingredientes por item del menú
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.exceptions import ConflictError, NotFoundError, ValidationError
from app.database.database import integrity_failure, is_unique_violation, transaction
from app.modules.inventory.models import (
    INGREDIENT_UNIQUE_CONSTRAINT, MenuItemIngredient, StockMovement, StockMovementType, Supply
)
from app.modules.inventory.schemas import (
    IngredientCreate, StockMovementCreate, SupplyCreate, SupplyStock, SupplyUpdate
)
from app.modules.menu.models import MenuItem

logger = logging.getLogger(__name__)

QUANTITY_PLACES = Decimal("0.001")


def to_quantity(value) -> Decimal:
    return Decimal(str(value)).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


class InventoryService:
    """Service for supplies, stock movements and menu item ingredients."""

    def __init__(self, db: Session):
        self.db = db

    # ===== INSUMOS =====

    def list_supplies(self) -> List[Supply]:
        return self.db.query(Supply).order_by(Supply.name).all()

    def get_supply(self, supply_id: UUID) -> Supply:
        supply = self.db.get(Supply, supply_id)
        if supply is None:
            raise NotFoundError("Insumo no encontrado")
        return supply

    def create_supply(self, data: SupplyCreate) -> Supply:
        supply = Supply(
            name=data.name.strip(),
            description=data.description,
            unit=data.unit,
            initial_stock=to_quantity(data.initial_stock),
            status=data.status,
        )
        try:
            with transaction(self.db):
                self.db.add(supply)
        except IntegrityError:
            raise ConflictError(f"Ya existe el insumo '{data.name}'")

        logger.info(f"Supply {supply.id} created ({supply.name}, {supply.initial_stock} {supply.unit})")
        return supply

    def update_supply(self, supply_id: UUID, data: SupplyUpdate) -> Supply:
        """Editar datos del insumo; la existencia solo cambia con movimientos"""
        supply = self.get_supply(supply_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        try:
            with transaction(self.db):
                for field, value in changes.items():
                    setattr(supply, field, value)
        except IntegrityError:
            raise ConflictError("Ya existe un insumo con ese nombre")

        logger.info(f"Supply {supply.id} updated")
        return supply

    def delete_supply(self, supply_id: UUID) -> Supply:
        """
        Eliminar un insumo sin movimientos.

        Quita también sus ingredientes en el menú. Un insumo con movimientos
        conserva su historial: se desactiva en lugar de borrarse.
        """
        supply = self.get_supply(supply_id)
        has_movements = self.db.query(StockMovement.id).filter(StockMovement.supply_id == supply_id).first()
        if has_movements:
            raise ConflictError("El insumo tiene movimientos registrados; desactívalo en su lugar")

        with transaction(self.db):
            self.db.query(MenuItemIngredient).filter(
                MenuItemIngredient.supply_id == supply_id
            ).delete()
            self.db.delete(supply)

        logger.info(f"Supply {supply_id} deleted")
        return supply

    # ===== EXISTENCIAS =====

    def _movement_summary(self, supply_id: Optional[UUID] = None) -> Dict[UUID, dict]:
        query = self.db.query(StockMovement)
        if supply_id:
            query = query.filter(StockMovement.supply_id == supply_id)

        summary: Dict[UUID, dict] = {}
        for movement in query.order_by(StockMovement.created_at, StockMovement.id):
            entry = summary.setdefault(movement.supply_id, {"total": Decimal("0"), "last": None})
            entry["total"] += movement.signed_quantity
            entry["last"] = movement
        return summary

    def _stock_row(self, supply: Supply, entry: Optional[dict]) -> SupplyStock:
        movements_total = to_quantity(entry["total"]) if entry else to_quantity(0)
        last = entry["last"] if entry else None
        return SupplyStock(
            id=supply.id,
            name=supply.name,
            unit=supply.unit,
            status=supply.status,
            initial_stock=to_quantity(supply.initial_stock),
            movements_total=movements_total,
            current_stock=to_quantity(supply.initial_stock) + movements_total,
            last_movement_at=last.created_at if last else None,
            last_movement_type=last.type if last else None,
        )

    def get_stock(self) -> List[SupplyStock]:
        """Existencia de todos los insumos con su último movimiento"""
        summary = self._movement_summary()
        return [self._stock_row(supply, summary.get(supply.id)) for supply in self.list_supplies()]

    def get_supply_stock(self, supply_id: UUID) -> SupplyStock:
        supply = self.get_supply(supply_id)
        return self._stock_row(supply, self._movement_summary(supply_id).get(supply_id))

    def record_movement(self, data: StockMovementCreate, user_id: Optional[UUID] = None) -> StockMovement:
        """
        Registrar una entrada o salida.

        Una salida no puede dejar la existencia en negativo; el insumo se
        bloquea para que dos salidas simultáneas no lo sobregiren.
        """
        quantity = to_quantity(data.quantity)
        if quantity <= 0:
            raise ValidationError("La cantidad debe ser mayor a cero")

        with transaction(self.db):
            supply = self.db.query(Supply).filter(Supply.id == data.supply_id).with_for_update().first()
            if supply is None:
                raise NotFoundError("Insumo no encontrado")
            if not supply.is_active:
                raise ValidationError(f"El insumo '{supply.name}' está inactivo y no admite movimientos")

            if data.type == StockMovementType.OUT:
                available = self._stock_row(supply, self._movement_summary(supply.id).get(supply.id)).current_stock
                if quantity > available:
                    raise ValidationError(
                        f"Stock insuficiente de '{supply.name}': disponible {available} {supply.unit}"
                    )

            movement = StockMovement(
                supply_id=supply.id,
                type=data.type,
                quantity=quantity,
                note=data.note,
                created_by=user_id,
            )
            self.db.add(movement)

        logger.info(f"Stock movement {movement.type.value} {quantity} {supply.unit} of supply {supply.id}")
        return movement

    def list_movements(self, supply_id: Optional[UUID] = None) -> List[StockMovement]:
        """Movimientos, el más reciente primero"""
        query = self.db.query(StockMovement)
        if supply_id:
            query = query.filter(StockMovement.supply_id == supply_id)
        return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).all()

    # ===== INGREDIENTES =====

    def _require_menu_item(self, menu_item_id: UUID) -> MenuItem:
        item = self.db.get(MenuItem, menu_item_id)
        if item is None:
            raise NotFoundError("Item del menú no encontrado")
        return item

    def list_ingredients(self, menu_item_id: UUID) -> List[MenuItemIngredient]:
        self._require_menu_item(menu_item_id)
        return self.db.query(MenuItemIngredient).options(
            selectinload(MenuItemIngredient.supply)
        ).filter(MenuItemIngredient.menu_item_id == menu_item_id).all()

    def add_ingredient(self, menu_item_id: UUID, data: IngredientCreate) -> MenuItemIngredient:
        quantity = to_quantity(data.quantity)
        if quantity <= 0:
            raise ValidationError("La cantidad requerida debe ser mayor a cero")

        self._require_menu_item(menu_item_id)
        supply = self.get_supply(data.supply_id)

        ingredient = MenuItemIngredient(menu_item_id=menu_item_id, supply=supply, quantity=quantity)
        try:
            with transaction(self.db):
                self.db.add(ingredient)
        except IntegrityError as e:
            if is_unique_violation(e, INGREDIENT_UNIQUE_CONSTRAINT, "menu_item_ingredients.menu_item_id"):
                raise ConflictError(f"'{supply.name}' ya es ingrediente de este item")
            raise integrity_failure(e) from e

        logger.info(f"Ingredient {supply.name} x {quantity} added to menu item {menu_item_id}")
        return ingredient

    def delete_ingredient(self, ingredient_id: UUID) -> None:
        ingredient = self.db.get(MenuItemIngredient, ingredient_id)
        if ingredient is None:
            raise NotFoundError("Ingrediente no encontrado")

        with transaction(self.db):
            self.db.delete(ingredient)
        logger.info(f"Ingredient {ingredient_id} removed")
