"""Global error handlers for the container control API."""

import traceback
import uuid
from typing import Union

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..models.errors import (
    ContainerControlException,
    ErrorDetail,
    ErrorResponse,
    ErrorType,
)
from .request_helpers import get_client_ip

logger = structlog.get_logger(__name__)

_STATUS_ERROR_TYPES = {
    400: ErrorType.VALIDATION,
    401: ErrorType.AUTHENTICATION,
    403: ErrorType.AUTHENTICATION,
    404: ErrorType.RESOURCE_NOT_FOUND,
    422: ErrorType.VALIDATION,
    428: ErrorType.CONFIRMATION_REQUIRED,
    502: ErrorType.OPERATION_FAILED,
    503: ErrorType.SERVICE_UNAVAILABLE,
    504: ErrorType.TIMEOUT,
}


def generate_request_id() -> str:
    """Generate a short request ID for error tracking."""
    return uuid.uuid4().hex[:12]


async def container_control_exception_handler(
    request: Request, exc: ContainerControlException
) -> JSONResponse:
    """Handle ContainerControlException instances."""
    if not exc.request_id:
        exc.request_id = generate_request_id()

    log_data = {
        "error_type": exc.error_type.value,
        "status_code": exc.status_code,
        "message": exc.message,
        "request_id": exc.request_id,
        "path": request.url.path,
        "method": request.method,
        "client_ip": get_client_ip(request),
    }
    if exc.details:
        log_data["details"] = [
            {"field": d.field, "message": d.message, "code": d.code} for d in exc.details
        ]

    if exc.status_code >= 500:
        logger.error("Server error occurred", **log_data)
    else:
        logger.warning("Client error occurred", **log_data)

    error_response = exc.to_response()
    return JSONResponse(status_code=exc.status_code, content=error_response.model_dump())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException instances."""
    request_id = generate_request_id()
    error_type = _STATUS_ERROR_TYPES.get(exc.status_code, ErrorType.INTERNAL_SERVER)

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
    )

    error_response = ErrorResponse(
        error=str(exc.detail), error_type=error_type, request_id=request_id
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Handle request validation errors."""
    request_id = generate_request_id()

    details = [
        ErrorDetail(
            field=" -> ".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            code=error["type"],
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error occurred",
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        validation_errors=[{"field": d.field, "message": d.message} for d in details],
    )

    error_response = ErrorResponse(
        error="Request validation failed",
        error_type=ErrorType.VALIDATION,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(status_code=422, content=error_response.model_dump())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    request_id = generate_request_id()

    logger.error(
        "Unexpected exception occurred",
        request_id=request_id,
        path=request.url.path,
        method=request.method,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        traceback=traceback.format_exc(),
    )

    error_response = ErrorResponse(
        error="An unexpected error occurred",
        error_type=ErrorType.INTERNAL_SERVER,
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=error_response.model_dump())
