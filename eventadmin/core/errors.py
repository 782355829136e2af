"""
Error taxonomy shared by the guard, the resolver and the services.

Every error carries the HTTP status it maps to, so routes never translate
exceptions by hand. Messages are intentionally short: a Forbidden never names
the scope that would have been required.
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.detail = detail or self.default_detail
        self.headers = headers
        super().__init__(self.detail)


class Unauthorized(AppError):
    """No credential, or a credential that is not a bearer token."""
    status_code = 401
    default_detail = "Missing authorization"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidToken(AppError):
    """Credential present but rejected by the identity provider."""
    status_code = 401
    default_detail = "Invalid token"


class Forbidden(AppError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(AppError):
    status_code = 404
    default_detail = "Not found"


class ValidationError(AppError):
    status_code = 400
    default_detail = "Invalid request body"


class StoreOperationFailed(AppError):
    """Backing store I/O failed. Never to be read as 'no record'."""
    status_code = 500
    default_detail = "Store operation failed"


class ServiceUnavailable(AppError):
    """The identity provider admin client could not be initialised."""
    status_code = 503
    default_detail = "Identity provider not configured"


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(item) for item in error.get("loc", []) if item not in ("body", "query", "path", "header")]
        field = ".".join(loc)
        msg = error.get("msg", "Invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or ValidationError.default_detail


def register_exception_handlers(app: FastAPI, hide_internal_errors: bool = True) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code in (401, 403):
            logger.warning("HTTP %s at %s: %s", exc.status_code, request.url.path, exc.detail)
        elif exc.status_code >= 500:
            logger.error("HTTP %s at %s: %s", exc.status_code, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if hide_internal_errors:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})
