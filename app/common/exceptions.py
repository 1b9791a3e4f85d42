"""
Domain errors raised by the service layer and their HTTP mapping.

Services raise these at the point of detection; the exception handler
registered in app.main turns them into JSON responses.
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for errors that the HTTP layer translates to a status code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class InvalidStateError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_state"


class StorageError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "storage_error"


def add_exception_handlers(app: FastAPI):
    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        if isinstance(exc, StorageError):
            logger.error(f"Storage error on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "detail": exc.message},
        )
