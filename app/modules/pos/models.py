"""
Modelos SQLAlchemy para caja (POS)

- CashSession: periodo de caja abierta, con fondo inicial y total de cierre
- CashMovement: movimientos de la sesión (apertura, venta, cierre), solo se agregan

Solo puede existir una sesión abierta a la vez. La base de datos lo garantiza
con un índice único parcial sobre status = 'open'.
"""

from app.database.database import Base
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, Enum, Text, Index, CheckConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from app.common.mixins import BaseMixin, utcnow
import enum


# ===== ENUMS =====

class CashSessionStatus(enum.Enum):
    """Estados de la sesión de caja"""
    OPEN = "open"       # Caja abierta
    CLOSED = "closed"   # Caja cerrada


class MovementType(enum.Enum):
    """Tipos de movimiento de caja"""
    OPEN = "open"       # Fondo inicial
    SALE = "sale"       # Venta cobrada
    CLOSE = "close"     # Cierre con total final


# A lo sumo una sesión abierta
SINGLE_OPEN_INDEX = "uq_cash_sessions_single_open"


# ===== MODELOS =====

class CashSession(Base, BaseMixin):
    """
    Sesión de caja registradora

    closing_total = opening_float + ventas del día contable, se llena al cerrar.
    """
    __tablename__ = "cash_sessions"

    status = Column(
        Enum(CashSessionStatus, values_callable=lambda e: [m.value for m in e], name="cash_session_status"),
        nullable=False,
        default=CashSessionStatus.OPEN
    )

    opening_float = Column(Numeric(12, 2), nullable=False)
    closing_total = Column(Numeric(12, 2), nullable=True)

    opened_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    closed_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    opened_by_user = relationship("User", foreign_keys=[opened_by])
    closed_by_user = relationship("User", foreign_keys=[closed_by])
    movements = relationship(
        "CashMovement",
        back_populates="session",
        order_by="CashMovement.created_at"
    )

    __table_args__ = (
        CheckConstraint("opening_float > 0", name="ck_cash_sessions_opening_float_positive"),
        Index(
            SINGLE_OPEN_INDEX,
            "status",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.status == CashSessionStatus.OPEN


class CashMovement(Base, BaseMixin):
    """
    Movimientos de caja

    - OPEN: fondo inicial al abrir
    - SALE: cobro; tendered_amount - amount = change_amount
    - CLOSE: total de cierre
    """
    __tablename__ = "cash_movements"

    session_id = Column(UUID(as_uuid=True), ForeignKey("cash_sessions.id"), nullable=False, index=True)
    type = Column(
        Enum(MovementType, values_callable=lambda e: [m.value for m in e], name="cash_movement_type"),
        nullable=False,
        index=True
    )
    amount = Column(Numeric(12, 2), nullable=False)
    tendered_amount = Column(Numeric(12, 2), nullable=True)
    change_amount = Column(Numeric(12, 2), nullable=True)
    description = Column(Text, nullable=True)

    # Factura emitida con la venta (solo type=SALE)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id"), nullable=True, index=True)

    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    session = relationship("CashSession", back_populates="movements")
    invoice = relationship("Invoice")
    created_by_user = relationship("User")
