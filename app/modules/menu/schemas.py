from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from app.modules.menu.models import MenuItemStatus


class MenuCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class MenuCategoryOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class MenuItemCreate(BaseModel):
    category_id: UUID
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    status: MenuItemStatus = MenuItemStatus.AVAILABLE
    image_url: Optional[str] = Field(None, max_length=500)


class MenuItemUpdate(BaseModel):
    category_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    status: Optional[MenuItemStatus] = None
    image_url: Optional[str] = Field(None, max_length=500)


class MenuItemOut(BaseModel):
    id: UUID
    category_id: UUID
    category_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: Decimal
    status: MenuItemStatus
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class MenuItemList(BaseModel):
    items: List[MenuItemOut]
    total: int
