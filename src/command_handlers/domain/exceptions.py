"""Domain exceptions for command handler registration and resolution."""
from typing import Any, Optional


class CommandHandlerError(Exception):
    """Base exception for all command handler errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.details = details


class ConfigurationError(CommandHandlerError):
    """Raised when handler registration is misconfigured. Fatal to startup."""


class LifetimeConfigurationError(ConfigurationError):
    """Raised when lifetime metadata is malformed or unsupported for a registration path."""

    def __init__(self, message: str, handler_type: Optional[type] = None, lifetime: Any = None):
        super().__init__(message, {"handler_type": handler_type, "lifetime": lifetime})
        self.handler_type = handler_type
        self.lifetime = lifetime


class DecoratorConfigurationError(ConfigurationError):
    """Raised when a decorator cannot be registered against any handler contract."""

    def __init__(self, message: str, decorator_type: Any = None):
        super().__init__(message, {"decorator_type": decorator_type})
        self.decorator_type = decorator_type


class AdapterConfigurationError(ConfigurationError):
    """Raised when an adapter's source or target service cannot be determined."""


class RegistryFrozenError(ConfigurationError):
    """Raised when registration is attempted after the registration phase ended."""


class HandlerResolutionError(CommandHandlerError):
    """Base exception for lookup failures at resolution time."""


class HandlerNotFoundError(HandlerResolutionError):
    """Raised when no handler is registered for a contract or command type."""

    def __init__(self, service: Any, message: Optional[str] = None):
        super().__init__(message or f"No handler registered for {_describe(service)}", service)
        self.service = service


class InvalidHandlerRequestError(HandlerResolutionError):
    """Raised when a lookup asks for something that is not a handler contract."""


class ScopeResolutionError(HandlerResolutionError):
    """Raised when no lifetime scope can satisfy a registration's sharing boundary."""


class ResultUnwrapError(CommandHandlerError):
    """Raised when the value of a failed result is requested."""


def _describe(service: Any) -> str:
    return getattr(service, "__name__", None) or repr(service)
