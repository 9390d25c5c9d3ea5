from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from medistock.core.errors import InvalidQuantityError, MediStockError, RequestValidationFailed

logger = logging.getLogger(__name__)


def _describe(error: dict) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{loc}: {error.get('msg', 'invalid value')}" if loc else error.get("msg", "invalid value")


def _as_domain_error(exc: RequestValidationError) -> MediStockError:
    errors = exc.errors()
    message = "; ".join(_describe(e) for e in errors) or "Invalid request."
    # A malformed quantity is the same failure the reservation service reports
    if any(tuple(e.get("loc", ()))[-1:] == ("units",) for e in errors):
        return InvalidQuantityError(f"Units to reserve must be a positive integer ({message}).")
    return RequestValidationFailed(message)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MediStockError)
    async def medistock_error_handler(request: Request, exc: MediStockError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_payload()})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = _as_domain_error(exc)
        return JSONResponse(status_code=error.status_code, content={"detail": error.to_payload()})
