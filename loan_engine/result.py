"""Result pattern for operations that report failure as a value."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: a value on success, an error on failure.

    Usage:
        result = quote_loan(request)
        if result.success:
            print(result.value.estimate.first_payment)
        else:
            print(result.error_type, result.error)
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str | None = None) -> "Result[T]":
        return cls(success=False, error=error, error_type=error_type)
