"""
Error Handling for SaleHunter API

Every error leaves the API in the same envelope as a successful call:
    {"code": <int>, "message": <str>, "data": <payload or null>}

- SaleHunterException -> its own status
- Request validation -> 400 with per-field messages in data
- HTTPException -> its status
- Anything else -> logged with traceback, generic 500
"""

import traceback
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from salehunter.errors import SaleHunterException

from .logging import get_request_id

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def create_error_response(
    message: str,
    status_code: int,
    data: Any = None,
    headers: dict = None,
) -> JSONResponse:
    """Create standardized error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "code": status_code,
            "message": message,
            "data": data,
        },
        headers=headers,
    )


def _field_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(location) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return errors


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(SaleHunterException)
    async def salehunter_exception_handler(request: Request, exc: SaleHunterException):
        log = logger.bind(request_id=get_request_id(request))
        log.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return create_error_response(
            message=exc.message,
            status_code=exc.status_code,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        logger.bind(request_id=get_request_id(request)).info(
            f"Validation error on {request.url.path}: {errors}"
        )
        return create_error_response(
            message="Validation failed",
            status_code=400,
            data=errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return create_error_response(
            message=str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.bind(request_id=get_request_id(request)).error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
        )
        # Internal details never reach the caller
        return create_error_response(
            message=UNEXPECTED_ERROR_MESSAGE,
            status_code=500,
        )
