from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from app.modules.invoices.models import PaymentMethod
from app.modules.orders.models import OrderStatus


class DashboardStats(BaseModel):
    days: int
    revenue: Decimal
    total_orders: int
    total_invoices: int
    average_order_value: Decimal
    active_events: int


class DailySales(BaseModel):
    business_date: date
    invoices: int
    total: Decimal


class SalesSeries(BaseModel):
    days: int
    points: List[DailySales]


class StatusCount(BaseModel):
    status: OrderStatus
    count: int


class OrdersByStatus(BaseModel):
    days: int
    statuses: List[StatusCount]


class TopProduct(BaseModel):
    menu_item_id: UUID
    name: str
    quantity_sold: int
    total_amount: Decimal


class TopProducts(BaseModel):
    days: int
    products: List[TopProduct]


class PaymentMethodTotal(BaseModel):
    payment_method: PaymentMethod
    count: int
    total: Decimal


class PaymentMethods(BaseModel):
    days: int
    methods: List[PaymentMethodTotal]


class RecentOrder(BaseModel):
    id: UUID
    status: OrderStatus
    customer_name: Optional[str] = None
    created_at: datetime
    total: Decimal
    invoice_total: Optional[Decimal] = None
    payment_method: Optional[PaymentMethod] = None
