"""Error models and exception classes for the container control API."""

import time
from typing import List, Optional

from pydantic import BaseModel, Field
from enum import Enum

from .results import ErrorKind, OperationResult


class ErrorType(str, Enum):
    """Error type enumeration."""

    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    CONFIRMATION_REQUIRED = "confirmation_required"
    RESOURCE_NOT_FOUND = "resource_not_found"
    OPERATION_FAILED = "operation_failed"
    TIMEOUT = "timeout"
    INTERNAL_SERVER = "internal_server"
    SERVICE_UNAVAILABLE = "service_unavailable"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name for validation errors")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    request_id: Optional[str] = Field(
        None, description="Request identifier for tracking"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")

    class Config:
        use_enum_values = True


# Custom Exception Classes


class ContainerControlException(Exception):
    """Base exception for the container control surfaces."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: Optional[List[ErrorDetail]] = None,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or []
        self.request_id = request_id
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
            request_id=self.request_id,
        )


class ValidationError(ContainerControlException):
    """Caller-supplied value is malformed."""

    def __init__(self, message: str = "Validation failed", **kwargs):
        super().__init__(
            message=message, error_type=ErrorType.VALIDATION, status_code=400, **kwargs
        )


class ConfirmationRequiredError(ContainerControlException):
    """Destructive operation attempted without confirmation."""

    def __init__(self, action: str, **kwargs):
        super().__init__(
            message=f"{action} requires confirmation (pass confirm=true)",
            error_type=ErrorType.CONFIRMATION_REQUIRED,
            status_code=428,
            **kwargs,
        )


class ResourceNotFoundError(ContainerControlException):
    """Lookup against the current snapshot found nothing."""

    def __init__(self, kind: str, key: str, **kwargs):
        super().__init__(
            message=f"{kind} not found: {key}",
            error_type=ErrorType.RESOURCE_NOT_FOUND,
            status_code=404,
            **kwargs,
        )


class OperationFailedError(ContainerControlException):
    """A CLI invocation reported failure."""

    def __init__(self, action: str, result: OperationResult, **kwargs):
        self.result = result
        details = [
            ErrorDetail(
                field="exit_code",
                message=str(result.exit_code),
                code=result.error_kind.value if result.error_kind else None,
            )
        ]
        timed_out = result.error_kind == ErrorKind.TIMEOUT
        super().__init__(
            message=f"Failed to {action}: {result.error}",
            error_type=ErrorType.TIMEOUT if timed_out else ErrorType.OPERATION_FAILED,
            status_code=504 if timed_out else 502,
            details=details,
            **kwargs,
        )


class ServiceUnavailableError(ContainerControlException):
    """Service unavailable errors."""

    def __init__(self, service: str, message: str = None, **kwargs):
        error_message = message or f"{service} service is currently unavailable"
        super().__init__(
            message=error_message,
            error_type=ErrorType.SERVICE_UNAVAILABLE,
            status_code=503,
            **kwargs,
        )
