from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.modules.inventory.models import StockMovementType, SupplyStatus


# ===== SUPPLY SCHEMAS =====

class SupplyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    unit: str = Field("u", min_length=1, max_length=20, description="Unidad de medida (kg, l, u...)")
    initial_stock: Decimal = Field(Decimal("0"), ge=0, description="Existencia al dar de alta")
    status: SupplyStatus = SupplyStatus.ACTIVE


class SupplyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    status: Optional[SupplyStatus] = None


class SupplyOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    unit: str
    initial_stock: Decimal
    status: SupplyStatus

    model_config = {"from_attributes": True}


class SupplyStock(BaseModel):
    """Existencia calculada de un insumo"""
    id: UUID
    name: str
    unit: str
    status: SupplyStatus
    initial_stock: Decimal
    movements_total: Decimal = Field(description="Entradas menos salidas")
    current_stock: Decimal
    last_movement_at: Optional[datetime] = None
    last_movement_type: Optional[StockMovementType] = None


class StockList(BaseModel):
    supplies: List[SupplyStock]
    total: int


# ===== MOVEMENT SCHEMAS =====

class StockMovementCreate(BaseModel):
    supply_id: UUID
    type: StockMovementType
    quantity: Decimal = Field(..., description="Cantidad, mayor a cero")
    note: Optional[str] = Field(None, max_length=500)


class StockMovementOut(BaseModel):
    id: UUID
    supply_id: UUID
    type: StockMovementType
    quantity: Decimal
    note: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class StockMovementList(BaseModel):
    movements: List[StockMovementOut]
    total: int


# ===== INGREDIENT SCHEMAS =====

class IngredientCreate(BaseModel):
    supply_id: UUID
    quantity: Decimal = Field(..., description="Cantidad requerida por porción")


class IngredientOut(BaseModel):
    id: UUID
    menu_item_id: UUID
    supply_id: UUID
    supply_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: Decimal

    model_config = {"from_attributes": True}
