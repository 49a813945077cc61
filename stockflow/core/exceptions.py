import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    status_code = 500

class NotFoundError(BaseServiceError):
    """Raised when a SKU, order, product, raw material or BOM line is missing."""
    status_code = 404

class InsufficientStockError(BaseServiceError):
    """Raised when an order line asks for more than the variation has in stock."""
    status_code = 409

class InvalidTransitionError(BaseServiceError):
    """Raised when an order status change is not allowed from the current status."""
    status_code = 400

class ConflictError(BaseServiceError):
    """Raised when a unique key (email, SKU) already exists."""
    status_code = 409

class AuthenticationError(BaseServiceError):
    """Raised when a bearer token is missing, malformed or expired."""
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}

class AuthorizationError(BaseServiceError):
    """Raised when the caller's role may not use a route."""
    status_code = 403


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"message": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"message": "Validation error", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


async def service_exception_handler(request: Request, exc: BaseServiceError):
    if exc.status_code >= 500:
        logger.exception(f"Unhandled service error on {request.method} {request.url.path}")
        return JSONResponse({"message": "Internal Server Error"}, status_code=500)
    return JSONResponse(
        {"message": str(exc)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"message": "Internal Server Error"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as JSON ``{"message": ...}``."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BaseServiceError, service_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
