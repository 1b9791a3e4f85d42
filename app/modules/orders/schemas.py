"""
Esquemas Pydantic para pedidos

Cantidades y renglones vacíos no se restringen aquí: el servicio los
valida y responde con ValidationError (400).
"""
from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from app.modules.orders.models import OrderStatus, OrderKind


class OrderLineCreate(BaseModel):
    menu_item_id: UUID = Field(..., description="Item del menú")
    quantity: int = Field(..., description="Cantidad, mayor a cero")
    unit_price: Optional[Decimal] = Field(
        None, description="Precio unitario; si se omite se usa el precio vigente del menú"
    )


class OrderCreate(BaseModel):
    customer_id: Optional[UUID] = Field(None, description="Cliente (opcional para mostrador)")
    kind: OrderKind = Field(OrderKind.TABLE, description="Mesa, domicilio o para llevar")
    table_label: Optional[str] = Field(None, max_length=20)
    note: Optional[str] = Field(None, max_length=500)
    lines: List[OrderLineCreate] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    # str para que un valor fuera del conjunto llegue al servicio como InvalidStateError
    status: str = Field(..., description="Nuevo estado del pedido")


class OrderLineOut(BaseModel):
    id: UUID
    menu_item_id: UUID
    item_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: UUID
    status: OrderStatus
    kind: OrderKind
    total: Decimal
    note: Optional[str] = None
    table_label: Optional[str] = None
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    lines: List[OrderLineOut] = []

    model_config = {"from_attributes": True}


class OrderList(BaseModel):
    orders: List[OrderOut]
    total: int
