"""
Servicios de negocio para caja (Cash Session Manager)

- Apertura con fondo inicial (una sola sesión abierta a la vez)
- Registro de ventas con emisión de factura en la misma transacción
- Cierre con total = fondo inicial + ventas del día contable

La unicidad de la sesión abierta la garantiza el índice único parcial de
cash_sessions; la verificación previa solo produce un mensaje más claro.
"""
import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.business_day import current_business_date, get_business_date
from app.common.exceptions import ConflictError, NotFoundError, ValidationError
from app.common.mixins import utcnow
from app.common.money import to_money
from app.core.config import settings
from app.database.database import integrity_failure, is_unique_violation, transaction
from app.modules.invoices.service import InvoiceService
from app.modules.notifications.notifier import (
    CASH_SESSION_CLOSED, CASH_SESSION_OPENED, INVOICE_ISSUED, Notifier, NullNotifier
)
from app.modules.invoices.models import ORDER_UNIQUE_CONSTRAINT
from app.modules.pos.models import CashMovement, CashSession, CashSessionStatus, MovementType, SINGLE_OPEN_INDEX
from app.modules.pos.schemas import (
    CashMovementOut, CashSaleCreate, CashSaleOut, CashSessionClosed, CashSessionOut
)

logger = logging.getLogger(__name__)


class CashSessionService:
    """Servicio para sesiones y movimientos de caja"""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None,
                 business_timezone: str = settings.BUSINESS_TIMEZONE):
        self.db = db
        self.notifier = notifier or NullNotifier()
        self.business_timezone = business_timezone

    def _find_open_session(self, lock: bool = False) -> Optional[CashSession]:
        query = self.db.query(CashSession).filter(CashSession.status == CashSessionStatus.OPEN)
        if lock:
            query = query.with_for_update()
        return query.first()

    def _lock_session(self, session_id: Optional[UUID]) -> CashSession:
        """Sesión abierta bloqueada para escritura (la indicada o la actual)"""
        if session_id is None:
            session = self._find_open_session(lock=True)
            if session is None:
                raise ConflictError("No hay una caja abierta")
            return session

        session = self.db.query(CashSession).filter(
            CashSession.id == session_id
        ).with_for_update().first()

        if session is None:
            raise NotFoundError("Sesión de caja no encontrada")
        if not session.is_open:
            raise ConflictError("La sesión de caja ya está cerrada")
        return session

    def open_session(self, opening_float: Decimal, user_id: Optional[UUID] = None) -> CashSession:
        """Abrir caja con fondo inicial y registrar el movimiento de apertura"""
        opening_float = to_money(opening_float)
        if opening_float <= 0:
            raise ValidationError("El fondo inicial debe ser mayor a cero")

        if self._find_open_session() is not None:
            raise ConflictError("Ya existe una caja abierta")

        try:
            with transaction(self.db):
                session = CashSession(
                    status=CashSessionStatus.OPEN,
                    opening_float=opening_float,
                    opened_by=user_id,
                )
                self.db.add(session)
                self.db.flush()

                self.db.add(CashMovement(
                    session_id=session.id,
                    type=MovementType.OPEN,
                    amount=opening_float,
                    description="Apertura de caja",
                    created_by=user_id,
                ))
        except IntegrityError as e:
            # Otra apertura concurrente ganó el índice único
            if is_unique_violation(e, SINGLE_OPEN_INDEX, "cash_sessions.status"):
                raise ConflictError("Ya existe una caja abierta")
            raise integrity_failure(e) from e

        logger.info(f"Cash session {session.id} opened with float {opening_float}")
        self.notifier.publish(CASH_SESSION_OPENED, CashSessionOut.model_validate(session).model_dump(mode="json"))
        return session

    def record_sale(self, sale_data: CashSaleCreate, user_id: Optional[UUID] = None) -> CashSaleOut:
        """
        Registrar una venta en la caja abierta y emitir su factura.

        Con order_id se factura el pedido y el monto debe coincidir con el
        total facturado; sin order_id se emite una factura de venta directa.
        """
        amount = to_money(sale_data.amount)
        tendered = to_money(sale_data.tendered_amount)
        change = to_money(sale_data.change_amount)

        if amount <= 0:
            raise ValidationError("El monto de la venta debe ser mayor a cero")
        if tendered < amount:
            raise ValidationError("El monto recibido no cubre la venta")
        if change != tendered - amount:
            raise ValidationError(f"El cambio debe ser {tendered - amount}")

        invoices = InvoiceService(self.db, self.notifier)

        try:
            with transaction(self.db):
                session = self._lock_session(sale_data.session_id)

                if sale_data.order_id:
                    invoice = invoices.build_order_invoice(
                        sale_data.order_id, sale_data.payment_method, issued_by=user_id
                    )
                    if to_money(invoice.total) != amount:
                        raise ValidationError(
                            f"El monto de la venta ({amount}) no coincide con el total del pedido ({invoice.total})"
                        )
                else:
                    invoice = invoices.build_walk_up_invoice(
                        amount, sale_data.description, sale_data.payment_method, issued_by=user_id
                    )

                movement = CashMovement(
                    session_id=session.id,
                    type=MovementType.SALE,
                    amount=amount,
                    tendered_amount=tendered,
                    change_amount=change,
                    description=sale_data.description,
                    invoice_id=invoice.id,
                    created_by=user_id,
                )
                self.db.add(movement)
        except IntegrityError as e:
            if is_unique_violation(e, ORDER_UNIQUE_CONSTRAINT, "invoices.order_id"):
                raise ConflictError("Ya existe una factura para este pedido")
            raise integrity_failure(e) from e

        logger.info(f"Sale of {amount} recorded in cash session {session.id}, invoice {invoice.id}")
        issued = InvoiceService.to_issued(invoice)
        self.notifier.publish(INVOICE_ISSUED, issued.model_dump(mode="json"))
        return CashSaleOut(movement=CashMovementOut.model_validate(movement), invoice=issued)

    def close_session(self, session_id: Optional[UUID] = None, user_id: Optional[UUID] = None) -> CashSessionClosed:
        """Cerrar caja: total de cierre = fondo inicial + ventas del día contable"""
        with transaction(self.db):
            session = self._lock_session(session_id)

            today = current_business_date(self.business_timezone)
            sales = self.db.query(CashMovement).filter(
                CashMovement.session_id == session.id,
                CashMovement.type == MovementType.SALE
            ).all()
            total_sales = to_money(sum(
                (m.amount for m in sales if get_business_date(m.created_at, self.business_timezone) == today),
                Decimal("0")
            ))
            closing_total = to_money(session.opening_float) + total_sales

            session.status = CashSessionStatus.CLOSED
            session.closing_total = closing_total
            session.closed_by = user_id
            session.closed_at = utcnow()

            self.db.add(CashMovement(
                session_id=session.id,
                type=MovementType.CLOSE,
                amount=closing_total,
                description="Cierre de caja",
                created_by=user_id,
            ))

        logger.info(f"Cash session {session.id} closed: sales {total_sales}, closing total {closing_total}")
        result = CashSessionClosed(
            session=CashSessionOut.model_validate(session),
            total_sales=total_sales,
            closing_total=closing_total,
        )
        self.notifier.publish(CASH_SESSION_CLOSED, result.model_dump(mode="json"))
        return result

    def get_current_session(self) -> CashSession:
        session = self._find_open_session()
        if session is None:
            raise NotFoundError("No hay una caja abierta")
        return session

    def list_open_movements(self) -> List[CashMovement]:
        """Movimientos de la sesión abierta, el más reciente primero"""
        session = self._find_open_session()
        if session is None:
            return []
        return self.db.query(CashMovement).filter(
            CashMovement.session_id == session.id
        ).order_by(CashMovement.created_at.desc(), CashMovement.id.desc()).all()
