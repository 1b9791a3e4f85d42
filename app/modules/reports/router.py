"""
Routers FastAPI para el tablero de reportes (caja o administrador)
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.database.database import get_db
from app.modules.auth.dependencies import require_role
from app.modules.auth.models import Role, User
from app.modules.reports.service import ReportService
from app.modules.reports.schemas import (
    DashboardStats, OrdersByStatus, PaymentMethods, RecentOrder, SalesSeries, TopProducts
)

reports_router = APIRouter(prefix="/reports", tags=["Reports"])

DaysQuery = Query(30, ge=1, le=365, description="Días hacia atrás")


@reports_router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    days: int = DaysQuery,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    """Ingresos, pedidos, ticket promedio y eventos activos"""
    return ReportService(db).stats(days)


@reports_router.get("/sales", response_model=SalesSeries)
def sales_series(
    days: int = DaysQuery,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return ReportService(db).sales_series(days)


@reports_router.get("/orders-by-status", response_model=OrdersByStatus)
def orders_by_status(
    days: int = DaysQuery,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return ReportService(db).orders_by_status(days)


@reports_router.get("/top-products", response_model=TopProducts)
def top_products(
    days: int = DaysQuery,
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return ReportService(db).top_products(days, limit=limit)


@reports_router.get("/payment-methods", response_model=PaymentMethods)
def payment_methods(
    days: int = DaysQuery,
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return ReportService(db).payment_methods(days)


@reports_router.get("/recent-orders", response_model=List[RecentOrder])
def recent_orders(
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(require_role(Role.CASHIER)),
    db: Session = Depends(get_db)
):
    return ReportService(db).recent_orders(limit)
