"""
Routers FastAPI para facturación
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.database.database import get_db
from app.modules.auth.dependencies import require_role
from app.modules.auth.models import Role, User
from app.modules.notifications.notifier import Notifier, get_notifier
from app.modules.invoices.service import InvoiceService
from app.modules.orders.schemas import OrderList
from app.modules.invoices.schemas import (
    InvoiceIssueRequest, IssuedInvoice, InvoiceDetail, InvoiceList, InvoiceSummary
)

invoices_router = APIRouter(prefix="/invoices", tags=["Invoices"])


@invoices_router.post("/orders/{order_id}", response_model=IssuedInvoice, status_code=status.HTTP_201_CREATED)
def issue_invoice(
    order_id: UUID = Path(..., description="ID del pedido a facturar"),
    issue_data: InvoiceIssueRequest = InvoiceIssueRequest(),
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Emitir la factura de un pedido.

    - 404 si el pedido no existe
    - 409 si el pedido ya tiene factura
    - 400 si el pedido está cancelado
    """
    return InvoiceService(db, notifier).issue_invoice(
        order_id, payment_method=issue_data.payment_method, issued_by=user.id
    )


@invoices_router.get("/", response_model=InvoiceList)
def list_invoices(
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    invoices = InvoiceService(db).list_invoices()
    return InvoiceList(invoices=invoices, total=len(invoices))


@invoices_router.get("/pending-orders", response_model=OrderList)
def pending_orders(
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """Pedidos por cobrar: sin factura y no cancelados"""
    orders = InvoiceService(db).list_uninvoiced_orders()
    return OrderList(orders=orders, total=len(orders))


@invoices_router.get("/summary", response_model=InvoiceSummary)
def invoices_summary(
    days: int = Query(30, ge=1, le=365, description="Días hacia atrás"),
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """Resumen de facturación: cantidad, ingresos, ticket promedio"""
    return InvoiceService(db).get_summary(days)


@invoices_router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(
    invoice_id: UUID = Path(..., description="ID de la factura"),
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return InvoiceService(db).get_invoice(invoice_id)
