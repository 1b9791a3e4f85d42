"""
Modelos del catálogo del menú: categorías e items vendibles.

Los renglones de pedido referencian únicamente ``MenuItem``.
"""
from sqlalchemy import Column, String, Text, Numeric, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


class MenuItemStatus(enum.Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class MenuCategory(Base, BaseMixin):
    __tablename__ = "menu_categories"

    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    items = relationship("MenuItem", back_populates="category")


class MenuItem(Base, BaseMixin):
    __tablename__ = "menu_items"

    category_id = Column(UUID(as_uuid=True), ForeignKey("menu_categories.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(MenuItemStatus, values_callable=lambda e: [m.value for m in e], name="menu_item_status"),
        nullable=False,
        default=MenuItemStatus.AVAILABLE
    )
    image_url = Column(String(500), nullable=True)

    category = relationship("MenuCategory", back_populates="items")

    @property
    def category_name(self):
        return self.category.name if self.category else None
