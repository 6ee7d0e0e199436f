"""Discriminated result values returned by command handlers."""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from command_handlers.domain.exceptions import ResultUnwrapError

T = TypeVar("T")


@dataclass(frozen=True)
class HandlerError:
    """Structured description of a failed handling operation."""

    message: str
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None

    @classmethod
    def from_exception(cls, exception: BaseException, code: Optional[str] = None) -> "HandlerError":
        return cls(
            message=str(exception) or type(exception).__name__,
            code=code or type(exception).__name__,
            exception=exception,
        )


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of handling a command.

    A result is either a success, optionally carrying a value for query
    commands, or a failure carrying a HandlerError. The registration and
    resolution layer never looks inside it.
    """

    is_success: bool
    value: Optional[T] = None
    error: Optional[HandlerError] = None

    def __post_init__(self) -> None:
        if self.is_success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if not self.is_success and self.error is None:
            raise ValueError("A failed result must carry an error")

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(is_success=True, value=value)

    @classmethod
    def failure(cls, error: Any) -> "Result[T]":
        """
        Create a failed result.

        Args:
            error: A HandlerError, an exception or a message string

        Returns:
            Failed result
        """
        if isinstance(error, BaseException):
            error = HandlerError.from_exception(error)
        elif isinstance(error, str):
            error = HandlerError(message=error)
        return cls(is_success=False, error=error)

    def unwrap(self) -> T:
        """Return the value of a successful result."""
        if not self.is_success:
            raise ResultUnwrapError(f"Cannot unwrap a failed result: {self.error.message}", self.error)
        return self.value
