"""Dependency resolution exceptions."""
from typing import Any, Optional, Sequence

from command_handlers.domain.contracts import describe
from command_handlers.domain.exceptions import HandlerResolutionError


class DependencyResolutionError(HandlerResolutionError):
    """Raised when a dependency cannot be resolved."""

    def __init__(
        self,
        dependency_type: Any,
        message: str,
        parent_type: Optional[Any] = None,
        parameter_name: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        text = f"{describe(dependency_type)}: {message}"
        if parent_type is not None:
            text += f" (required by {describe(parent_type)}"
            text += f".{parameter_name})" if parameter_name else ")"
        super().__init__(
            text,
            {"dependency_type": dependency_type, "parent_type": parent_type, "parameter_name": parameter_name},
        )
        self.dependency_type = dependency_type
        self.parent_type = parent_type
        self.parameter_name = parameter_name
        self.cause = cause


class UnregisteredDependencyError(DependencyResolutionError):
    """Raised when no registration exists for a dependency and it cannot be created directly."""

    def __init__(self, dependency_type: Any, parent_type: Optional[Any] = None, parameter_name: Optional[str] = None):
        super().__init__(dependency_type, "not registered", parent_type, parameter_name)


class UntypedParameterError(DependencyResolutionError):
    """Raised when a constructor parameter has neither an annotation nor a default."""

    def __init__(self, parent_type: Any, parameter_name: str):
        super().__init__(parent_type, f"parameter '{parameter_name}' has no type annotation", None, parameter_name)


class CircularDependencyError(DependencyResolutionError):
    """Raised when resolving a dependency requires itself."""

    def __init__(self, chain: Sequence[Any]):
        self.chain = list(chain)
        super().__init__(
            self.chain[-1], "circular dependency: " + " -> ".join(describe(item) for item in self.chain)
        )


class InstantiationError(DependencyResolutionError):
    """Raised when a constructor or factory fails."""

    def __init__(self, dependency_type: Any, message: str, cause: Optional[BaseException] = None):
        super().__init__(dependency_type, message, cause=cause)


class FactoryError(InstantiationError):
    """Raised when a registered factory fails."""
