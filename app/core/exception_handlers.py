import logging
from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.errors import AppError
from app.schemas.response import ErrorDetail, ErrorResponse

log = logging.getLogger("exception_handlers")


def _error(status_code: int, code: str, message, **extra) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, **extra))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


# ----------- Exception Handlers (called by FastAPI) -----------

def app_error_handler(request: Request, exc: AppError):
    """Handles domain errors (permission denied, not found, validation, conflicts, throttling)."""
    if exc.status_code >= 500:
        log.error(f"{exc.code.value} on {request.url.path}: {exc.message}")
    return _error(exc.status_code, **exc.to_dict())


def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    return _error(exc.status_code, "http_error", exc.detail)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors (422 Unprocessable Entity)."""
    return _error(422, "validation_error", "Invalid input data", details=list(exc.errors()))


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}", exc_info=exc)
    return _error(500, "server_error", "Internal Server Error")


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
