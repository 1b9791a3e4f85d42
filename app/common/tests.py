"""
Tests para utilidades comunes: transacciones y día contable
"""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from app.common.business_day import get_business_date
from app.common.exceptions import StorageError, ValidationError
from app.database.database import is_unique_violation, transaction
from app.modules.customers.models import Customer
from app.modules.menu.models import MenuCategory


class TestBusinessDay:

    def test_late_utc_belongs_to_previous_local_day(self):
        # 03:30 UTC es la noche anterior en Ciudad de México (UTC-6)
        dt = datetime(2024, 3, 10, 3, 30, tzinfo=timezone.utc)
        assert get_business_date(dt, "America/Mexico_City") == date(2024, 3, 9)

    def test_naive_values_are_utc(self):
        assert get_business_date(datetime(2024, 3, 10, 12, 0), "America/Mexico_City") == date(2024, 3, 10)


class TestTransaction:

    def test_commit_on_success(self, db_session):
        with transaction(db_session):
            db_session.add(Customer(first_name="Ana", last_name="López"))
        assert db_session.query(Customer).count() == 1

    def test_rollback_on_domain_error(self, db_session):
        with pytest.raises(ValidationError):
            with transaction(db_session):
                db_session.add(Customer(first_name="Ana", last_name="López"))
                db_session.flush()
                raise ValidationError("fallo")
        assert db_session.query(Customer).count() == 0

    def test_integrity_error_is_reraised(self, db_session, menu_category):
        with pytest.raises(IntegrityError):
            with transaction(db_session):
                db_session.add(MenuCategory(name=menu_category.name))

    def test_other_database_errors_become_storage_error(self, db_session):
        with pytest.raises(StorageError) as exc_info:
            with transaction(db_session):
                db_session.execute(text("SELECT * FROM tabla_inexistente"))
        assert isinstance(exc_info.value.__cause__, OperationalError)


class TestUniqueViolation:

    class _Diag:
        def __init__(self, constraint_name):
            self.constraint_name = constraint_name

    class _PgError(Exception):
        def __init__(self, constraint_name):
            super().__init__("duplicate key value violates unique constraint")
            self.diag = TestUniqueViolation._Diag(constraint_name)

    def test_postgres_constraint_name(self):
        error = IntegrityError("INSERT", {}, self._PgError("uq_invoices_order_id"))
        assert is_unique_violation(error, "uq_invoices_order_id", "invoices.order_id")
        assert not is_unique_violation(error, "uq_cash_sessions_single_open", "cash_sessions.status")

    def test_sqlite_messages(self):
        unique = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: invoices.order_id"))
        foreign = IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))
        assert is_unique_violation(unique, "uq_invoices_order_id", "invoices.order_id")
        assert not is_unique_violation(foreign, "uq_invoices_order_id", "invoices.order_id")
