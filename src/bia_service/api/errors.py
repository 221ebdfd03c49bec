"""BIA exception -> HTTP response mapping."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bia_service.config import settings
from bia_service.exceptions import (
    DocumentNotFoundError,
    InvalidTransitionError,
    PersistenceError,
    RiskPlatformError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS = {
    ValidationError: 400,
    DocumentNotFoundError: 404,
    InvalidTransitionError: 409,
    PersistenceError: 500,
    RiskPlatformError: 502,
}


def _detail(exc: Exception) -> str:
    if isinstance(exc, PersistenceError):
        logger.error(f"Persistence failure: {exc} (cause: {exc.cause!r})")
        # Sanitize error message in production
        if not settings.DEBUG:
            return "Internal server error"
    return str(exc)


def _make_handler(status_code: int):
    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        content = {"success": False, "error": type(exc).__name__, "detail": _detail(exc)}
        field = getattr(exc, "field", None)
        if field:
            content["field"] = field
        return JSONResponse(status_code=status_code, content=content)

    return _handler


def register_error_handlers(app: FastAPI) -> None:
    """Register BIA exception handlers on the FastAPI app."""
    for exc_cls, status in _EXCEPTION_STATUS.items():
        app.add_exception_handler(exc_cls, _make_handler(status))
