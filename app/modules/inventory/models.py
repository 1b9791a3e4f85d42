"""
Modelos de inventario: insumos, movimientos de stock e ingredientes por item del menú.

El stock actual no se guarda: es el stock inicial del insumo más las
entradas menos las salidas. Los movimientos solo se agregan, nunca se editan.
"""
from sqlalchemy import Column, String, Text, Numeric, Enum, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.database.database import Base
from app.common.mixins import BaseMixin
import enum


class SupplyStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class StockMovementType(enum.Enum):
    IN = "in"      # Entrada (compra, devolución)
    OUT = "out"    # Salida (consumo, merma)


INGREDIENT_UNIQUE_CONSTRAINT = "uq_menu_item_ingredients_item_supply"


class Supply(Base, BaseMixin):
    """Insumo de cocina (tortillas, carne, refresco...)"""
    __tablename__ = "supplies"

    name = Column(String(150), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    unit = Column(String(20), nullable=False, default="u")
    initial_stock = Column(Numeric(12, 3), nullable=False, default=0)
    status = Column(
        Enum(SupplyStatus, values_callable=lambda e: [m.value for m in e], name="supply_status"),
        nullable=False,
        default=SupplyStatus.ACTIVE
    )

    movements = relationship("StockMovement", back_populates="supply", order_by="StockMovement.created_at")

    __table_args__ = (
        CheckConstraint("initial_stock >= 0", name="ck_supplies_initial_stock_non_negative"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == SupplyStatus.ACTIVE


class StockMovement(Base, BaseMixin):
    __tablename__ = "stock_movements"

    supply_id = Column(UUID(as_uuid=True), ForeignKey("supplies.id"), nullable=False, index=True)
    type = Column(
        Enum(StockMovementType, values_callable=lambda e: [m.value for m in e], name="stock_movement_type"),
        nullable=False
    )
    quantity = Column(Numeric(12, 3), nullable=False)
    note = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    supply = relationship("Supply", back_populates="movements")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
    )

    @property
    def signed_quantity(self):
        return self.quantity if self.type == StockMovementType.IN else -self.quantity


class MenuItemIngredient(Base, BaseMixin):
    """Cantidad de un insumo que requiere un item del menú"""
    __tablename__ = "menu_item_ingredients"

    menu_item_id = Column(UUID(as_uuid=True), ForeignKey("menu_items.id"), nullable=False, index=True)
    supply_id = Column(UUID(as_uuid=True), ForeignKey("supplies.id"), nullable=False, index=True)
    quantity = Column(Numeric(12, 3), nullable=False)

    supply = relationship("Supply")
    menu_item = relationship("MenuItem")

    __table_args__ = (
        UniqueConstraint("menu_item_id", "supply_id", name=INGREDIENT_UNIQUE_CONSTRAINT),
        CheckConstraint("quantity > 0", name="ck_menu_item_ingredients_quantity_positive"),
    )

    @property
    def supply_name(self):
        return self.supply.name if self.supply else None

    @property
    def unit(self):
        return self.supply.unit if self.supply else None
