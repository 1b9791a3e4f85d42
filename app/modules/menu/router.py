from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import CurrentUser, AdminUser
from app.modules.menu.models import MenuItemStatus
from app.modules.menu.service import MenuService
from app.modules.menu.schemas import (
    MenuCategoryCreate, MenuCategoryOut,
    MenuItemCreate, MenuItemUpdate, MenuItemOut, MenuItemList
)

menu_router = APIRouter(prefix="/menu", tags=["Menu"])


@menu_router.get("/categories", response_model=List[MenuCategoryOut])
def list_categories(user: CurrentUser, db: Session = Depends(get_db)):
    return MenuService(db).list_categories()


@menu_router.post("/categories", response_model=MenuCategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(data: MenuCategoryCreate, admin: AdminUser, db: Session = Depends(get_db)):
    return MenuService(db).create_category(data)


@menu_router.get("/items", response_model=MenuItemList)
def list_items(
    user: CurrentUser,
    status: Optional[MenuItemStatus] = Query(None, description="Filtrar por disponibilidad"),
    category_id: Optional[UUID] = Query(None, description="Filtrar por categoría"),
    db: Session = Depends(get_db)
):
    items = MenuService(db).list_items(status=status, category_id=category_id)
    return MenuItemList(items=items, total=len(items))


@menu_router.get("/items/{item_id}", response_model=MenuItemOut)
def get_item(item_id: UUID, user: CurrentUser, db: Session = Depends(get_db)):
    return MenuService(db).get_item(item_id)


@menu_router.post("/items", response_model=MenuItemOut, status_code=status.HTTP_201_CREATED)
def create_item(data: MenuItemCreate, admin: AdminUser, db: Session = Depends(get_db)):
    return MenuService(db).create_item(data)


@menu_router.put("/items/{item_id}", response_model=MenuItemOut)
def update_item(item_id: UUID, data: MenuItemUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    return MenuService(db).update_item(item_id, data)


@menu_router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(item_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    MenuService(db).delete_item(item_id)


@menu_router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    """Elimina la categoría y sus items; falla si alguno ya fue pedido"""
    MenuService(db).delete_category(category_id)
