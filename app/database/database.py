from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from app.core.config import settings
from app.common.exceptions import StorageError
import logging

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        echo=settings.DEBUG and settings.ENVIRONMENT != "test"
    )


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


def get_db():
    """Genera una sesión de base de datos por request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Scope a unit of work: commit on normal exit, roll back on any exception.

    IntegrityError is re-raised unchanged so callers can translate unique
    violations; any other SQLAlchemyError surfaces as StorageError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error, transaction rolled back: {e}")
        raise StorageError("Error de base de datos, la operación fue revertida") from e
    except Exception:
        db.rollback()
        raise


def is_unique_violation(error: IntegrityError, constraint: str, column: str) -> bool:
    """
    True when ``error`` was raised by the given unique constraint or index.

    PostgreSQL reports the constraint name (psycopg2 ``diag``); SQLite only
    reports "UNIQUE constraint failed: <table>.<column>".
    """
    diag = getattr(error.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name is not None:
        return name == constraint
    message = str(error.orig)
    return "UNIQUE constraint failed" in message and column in message


def integrity_failure(error: IntegrityError) -> StorageError:
    """StorageError for integrity violations a service does not translate itself."""
    logger.error(f"Integrity violation, transaction rolled back: {error.orig}")
    return StorageError("Los datos violan una restricción de integridad")
