"""
Esquemas Pydantic para caja (POS)

Los montos se validan en el servicio para responder ValidationError (400)
con el mismo formato que el resto de errores de dominio.
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.modules.invoices.models import PaymentMethod
from app.modules.invoices.schemas import IssuedInvoice
from app.modules.pos.models import CashSessionStatus, MovementType


# ===== CASH SESSION SCHEMAS =====

class CashSessionOpen(BaseModel):
    """Esquema para abrir caja"""
    opening_float: Decimal = Field(..., description="Fondo inicial, mayor a cero")


class CashSessionClose(BaseModel):
    """Esquema para cerrar caja; sin session_id se cierra la sesión abierta"""
    session_id: Optional[UUID] = Field(None, description="ID de la sesión a cerrar")


class CashSessionOut(BaseModel):
    id: UUID
    status: CashSessionStatus
    opening_float: Decimal
    closing_total: Optional[Decimal] = None
    opened_by: Optional[UUID] = None
    closed_by: Optional[UUID] = None
    opened_at: datetime
    closed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CashSessionClosed(BaseModel):
    """Resultado del cierre de caja"""
    session: CashSessionOut
    total_sales: Decimal = Field(description="Ventas del día contable")
    closing_total: Decimal = Field(description="Fondo inicial + ventas")


# ===== CASH MOVEMENT SCHEMAS =====

class CashSaleCreate(BaseModel):
    """
    Esquema para registrar una venta en caja.

    Sin order_id se emite una factura de venta directa por el monto cobrado.
    """
    session_id: Optional[UUID] = Field(None, description="Sesión de caja; por defecto la abierta")
    amount: Decimal = Field(..., description="Monto de la venta")
    tendered_amount: Decimal = Field(..., description="Monto recibido")
    change_amount: Decimal = Field(Decimal("0"), description="Cambio entregado")
    description: Optional[str] = Field(None, max_length=500)
    order_id: Optional[UUID] = Field(None, description="Pedido a facturar con esta venta")
    payment_method: PaymentMethod = PaymentMethod.CASH


class CashMovementOut(BaseModel):
    id: UUID
    session_id: UUID
    type: MovementType
    amount: Decimal
    tendered_amount: Optional[Decimal] = None
    change_amount: Optional[Decimal] = None
    description: Optional[str] = None
    invoice_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CashMovementList(BaseModel):
    movements: List[CashMovementOut]
    total: int


class CashSaleOut(BaseModel):
    """Venta registrada junto con la factura emitida"""
    movement: CashMovementOut
    invoice: IssuedInvoice
