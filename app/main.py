from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from app.database.database import engine, Base

# Import middleware and error handlers
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.common.exceptions import add_exception_handlers

# Import routers
from app.modules.auth.router import auth_router, users_router
from app.modules.menu.router import menu_router
from app.modules.customers.router import customers_router
from app.modules.orders.router import orders_router
from app.modules.pos.routers import cash_router
from app.modules.invoices.router import invoices_router
from app.modules.events.router import events_router
from app.modules.inventory.router import inventory_router
from app.modules.reports.router import reports_router
from app.modules.notifications.router import notifications_router

# Import models for table creation
import app.modules.auth.models
import app.modules.menu.models
import app.modules.customers.models
import app.modules.orders.models
import app.modules.invoices.models
import app.modules.pos.models
import app.modules.events.models
import app.modules.inventory.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Comanda API",
    description="Restaurant point-of-sale backend: orders, cash sessions and invoices",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(users_router)
app.include_router(menu_router)
app.include_router(customers_router)
app.include_router(orders_router)
app.include_router(cash_router)
app.include_router(invoices_router)
app.include_router(events_router)
app.include_router(inventory_router)
app.include_router(reports_router)
app.include_router(notifications_router)

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)


@app.get("/")
async def read_root():
    return {
        "message": "Comanda API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Comanda API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Comanda API shutting down...")
