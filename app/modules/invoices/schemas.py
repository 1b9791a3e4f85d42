from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.modules.invoices.models import InvoiceStatus, PaymentMethod
from app.modules.orders.models import OrderStatus


class InvoiceIssueRequest(BaseModel):
    payment_method: PaymentMethod = Field(PaymentMethod.CASH, description="Método de pago")


class InvoiceLineOut(BaseModel):
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {"from_attributes": True}


class InvoiceOut(BaseModel):
    id: UUID
    order_id: Optional[UUID] = None
    issued_at: datetime
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    status: InvoiceStatus
    currency: str

    model_config = {"from_attributes": True}


class InvoiceDetail(InvoiceOut):
    customer_name: Optional[str] = Field(None, description="Cliente del pedido, si existe")
    items: List[InvoiceLineOut] = []


class InvoiceList(BaseModel):
    invoices: List[InvoiceOut]
    total: int


class OrderSummary(BaseModel):
    id: UUID
    total: Decimal
    status: OrderStatus


class IssuedInvoice(BaseModel):
    """Respuesta de emisión: factura, pedido de origen y copia de renglones"""
    invoice: InvoiceOut
    order: Optional[OrderSummary] = None
    items: List[InvoiceLineOut]
    subtotal: str = Field(description="Subtotal con dos decimales")
    tax: str = Field(description="Impuesto con dos decimales")
    total: str = Field(description="Total cobrado")


class InvoiceSummary(BaseModel):
    days: int
    total_invoices: int
    revenue: Decimal
    average_ticket: Decimal
    days_invoiced: int
