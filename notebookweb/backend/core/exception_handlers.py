"""
Exception Handlers.

Turn exceptions raised by pages and API endpoints into the ErrorResponse
envelope. Screens catch backend failures themselves and show toasts, so
what reaches these handlers is either an API error or a programming error.

Usage:
    app = FastAPI()
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notebookweb.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    BackendRequestError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from notebookweb.backend.core.logging import get_logger
from notebookweb.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    ExternalServiceError: 502,
    BackendRequestError: 502,
}


def _status_for(exc: ApplicationError) -> int:
    """Closest mapped class in the exception's MRO, else 500."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _get_request_id(request: Request) -> str | None:
    """Request ID from state, falling back to the incoming header."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("x-request-id")


def _envelope(request: Request, status_code: int, error: ErrorDetail) -> JSONResponse:
    response = ErrorResponse(error=error, metadata=ResponseMetadata(request_id=_get_request_id(request)))
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    """Map an ApplicationError to its status code and error code."""
    status_code = _status_for(exc)
    log_extra: dict[str, Any] = {
        "code": exc.code,
        "error_message": exc.message,
        "status": status_code,
        "path": request.url.path,
        "method": request.method,
    }

    error = ErrorDetail(code=exc.code, message=exc.message)
    if isinstance(exc, ValidationError) and exc.details:
        error.details = exc.details
    elif isinstance(exc, BackendRequestError):
        log_extra.update(backend_status=exc.status_code, operation=exc.operation)

    if status_code >= 500:
        logger.error("Request failed", extra=log_extra)
    else:
        logger.warning("Request rejected", extra=log_extra)

    return _envelope(request, status_code, error)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 with one entry per invalid field, e.g. body.title."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "fields": [e["field"] for e in errors]},
    )
    error = ErrorDetail(
        code="VAL_REQUEST_INVALID",
        message="Request validation failed",
        details={"validation_errors": errors},
    )
    return _envelope(request, 422, error)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log with traceback; answer 500 without internals."""
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    error = ErrorDetail(code="SYS_INTERNAL_ERROR", message="An unexpected error occurred")
    return _envelope(request, 500, error)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
