"""Uniform outcome envelope for CLI invocations."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")

# Synthetic exit codes for failures the process itself did not report
TIMEOUT_EXIT_CODE = 124
OUTPUT_LIMIT_EXIT_CODE = 125


class ErrorKind(str, Enum):
    """Why an invocation did not succeed."""

    BINARY_NOT_FOUND = "binary_not_found"
    SPAWN_FAILED = "spawn_failed"
    TIMEOUT = "timeout"
    OUTPUT_LIMIT = "output_limit"
    NON_ZERO_EXIT = "non_zero_exit"
    OUTPUT_PARSE = "output_parse"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Result of one CLI invocation.

    ``data`` is set on success (or carries raw text); ``error`` is set
    only when ``success`` is false.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    exit_code: int = 0
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, exit_code: int = 0) -> "OperationResult[T]":
        return cls(success=True, data=data, exit_code=exit_code)

    @classmethod
    def fail(
        cls,
        error: str,
        exit_code: int = 1,
        error_kind: ErrorKind = ErrorKind.NON_ZERO_EXIT,
    ) -> "OperationResult[T]":
        return cls(
            success=False, error=error, exit_code=exit_code, error_kind=error_kind
        )

    def map(self, func: Callable[[T], U]) -> "OperationResult[U]":
        """Transform the payload of a successful result."""
        if not self.success:
            return OperationResult(
                success=False,
                error=self.error,
                exit_code=self.exit_code,
                error_kind=self.error_kind,
            )
        return OperationResult(
            success=True, data=func(self.data), exit_code=self.exit_code
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "exit_code": self.exit_code,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }
