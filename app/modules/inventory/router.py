from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser, AdminUser, require_role
from app.modules.auth.models import User, Role
from app.modules.inventory.service import InventoryService
from app.modules.inventory.schemas import (
    SupplyCreate, SupplyUpdate, SupplyOut, SupplyStock, StockList,
    StockMovementCreate, StockMovementOut, StockMovementList,
    IngredientCreate, IngredientOut
)

inventory_router = APIRouter(prefix="/inventory", tags=["Inventory"])


# ===== SUPPLIES =====

@inventory_router.get("/supplies", response_model=List[SupplyOut])
def list_supplies(user: CurrentUser, db: Session = Depends(get_db)):
    return InventoryService(db).list_supplies()


@inventory_router.post("/supplies", response_model=SupplyOut, status_code=status.HTTP_201_CREATED)
def create_supply(data: SupplyCreate, admin: AdminUser, db: Session = Depends(get_db)):
    return InventoryService(db).create_supply(data)


@inventory_router.put("/supplies/{supply_id}", response_model=SupplyOut)
def update_supply(supply_id: UUID, data: SupplyUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    return InventoryService(db).update_supply(supply_id, data)


@inventory_router.delete("/supplies/{supply_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supply(supply_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    InventoryService(db).delete_supply(supply_id)


# ===== STOCK =====

@inventory_router.get("/stock", response_model=StockList)
def get_stock(user: CurrentUser, db: Session = Depends(get_db)):
    """Existencia actual de cada insumo"""
    supplies = InventoryService(db).get_stock()
    return StockList(supplies=supplies, total=len(supplies))


@inventory_router.get("/stock/{supply_id}", response_model=SupplyStock)
def get_supply_stock(supply_id: UUID, user: CurrentUser, db: Session = Depends(get_db)):
    return InventoryService(db).get_supply_stock(supply_id)


@inventory_router.post("/movements", response_model=StockMovementOut, status_code=status.HTTP_201_CREATED)
def record_movement(
    data: StockMovementCreate,
    user: User = Depends(require_role(Role.KITCHEN)),
    db: Session = Depends(get_db)
):
    """Registrar entrada o salida de un insumo (cocina o administrador)"""
    return InventoryService(db).record_movement(data, user_id=user.id)


@inventory_router.get("/movements", response_model=StockMovementList)
def list_movements(
    user: CurrentUser,
    supply_id: Optional[UUID] = Query(None, description="Filtrar por insumo"),
    db: Session = Depends(get_db)
):
    movements = InventoryService(db).list_movements(supply_id=supply_id)
    return StockMovementList(movements=movements, total=len(movements))


# ===== INGREDIENTS =====

@inventory_router.get("/menu-items/{menu_item_id}/ingredients", response_model=List[IngredientOut])
def list_ingredients(menu_item_id: UUID, user: CurrentUser, db: Session = Depends(get_db)):
    return InventoryService(db).list_ingredients(menu_item_id)


@inventory_router.post(
    "/menu-items/{menu_item_id}/ingredients",
    response_model=IngredientOut,
    status_code=status.HTTP_201_CREATED
)
def add_ingredient(menu_item_id: UUID, data: IngredientCreate, admin: AdminUser, db: Session = Depends(get_db)):
    return InventoryService(db).add_ingredient(menu_item_id, data)


@inventory_router.delete("/ingredients/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(ingredient_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    InventoryService(db).delete_ingredient(ingredient_id)
