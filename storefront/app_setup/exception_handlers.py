"""
Gestionnaires d'exceptions.
- CheckoutError (et dérivées) -> JSON {"detail", "code", "errors"?} avec le statut HTTP de la taxonomie.
- HTTPException conserve la réponse JSON FastAPI standard.
"""
import logging
from typing import Dict, Type

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.errors import (
    CancellationError,
    CardError,
    CheckoutError,
    GatewayInitError,
    IntentCreationError,
    InvalidStateError,
    NotFound,
    PersistenceError,
    ReconciliationError,
    SessionCreationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: Dict[Type[CheckoutError], int] = {
    ValidationError: 422,
    GatewayInitError: 503,
    IntentCreationError: 502,
    SessionCreationError: 502,
    CardError: 402,
    PersistenceError: 503,
    ReconciliationError: 503,
    CancellationError: 502,
    InvalidStateError: 409,
    NotFound: 404,
}

def status_for(exc: CheckoutError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 400

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error_handler(request: Request, exc: CheckoutError):
        status = status_for(exc)
        if status >= 500:
            logger.warning("%s %s -> %s (%s)", request.method, request.url.path, status, exc.code)
        content = {"detail": exc.message, "code": exc.code}
        errors = getattr(exc, "errors", None)
        if errors:
            content["errors"] = errors
        return JSONResponse(status_code=status, content=content)

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
