"""Shared helpers for the HTTP and command-line surfaces."""

from typing import Optional, TypeVar

from fastapi import Request

from ..config.extension import ExtensionConfig
from ..models.errors import (
    ConfirmationRequiredError,
    OperationFailedError,
    ServiceUnavailableError,
)
from ..models.results import ErrorKind, OperationResult

T = TypeVar("T")


def extract_api_key(request: Request) -> Optional[str]:
    """Extract API key from request headers.

    Checks in order:
    1. x-api-key header (preferred)
    2. Authorization header with Bearer token
    3. Authorization header with ApiKey token
    """
    api_key = request.headers.get("x-api-key")
    if api_key:
        return api_key

    auth_header = request.headers.get("authorization")
    if auth_header:
        if auth_header.startswith("Bearer "):
            return auth_header[7:]
        elif auth_header.startswith("ApiKey "):
            return auth_header[7:]

    return None


def get_client_ip(request: Request) -> str:
    """Client address, honoring X-Forwarded-For first."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def ensure_success(result: OperationResult[T], action: str) -> Optional[T]:
    """Return the payload of a successful result.

    Raises:
        ServiceUnavailableError: If the CLI binary could not be found
        OperationFailedError: If the invocation failed
    """
    if result.success:
        return result.data
    if result.error_kind == ErrorKind.BINARY_NOT_FOUND:
        raise ServiceUnavailableError("Container CLI", result.error)
    raise OperationFailedError(action, result)


def ensure_confirmed(config: ExtensionConfig, confirm: bool, action: str) -> None:
    """Enforce the confirm-before-delete policy for destructive actions.

    Raises:
        ConfirmationRequiredError: If the policy is on and ``confirm`` is false
    """
    if config.confirm_before_delete and not confirm:
        raise ConfirmationRequiredError(action)
