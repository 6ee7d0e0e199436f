"""
Application layer decorators for handler registration.

Handlers opt into discovery with ``@command_handler``. Lifetime and
interception metadata is declared with ``@lifetime``, ``@intercepted_by`` and
``@enable_interception``; a handler carrying a lifetime or at least one
interceptor is configured individually, every other handler is registered in
bulk with the configured default lifetime.

Usage:
    @command_handler
    @lifetime(Lifetime.SINGLE_INSTANCE)
    @intercepted_by(AuditInterceptor)
    @intercepted_by(RetryInterceptor, is_async=True)
    class PingHandler(CommandHandler[Ping]):
        ...

Interceptors apply in the order they are written, top to bottom: the first
one listed is outermost.
"""
import inspect
import threading
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, TypeVar, Union

from command_handlers.application.handler_options import (
    HANDLER_OPTIONS_ATTR,
    HandlerOptions,
    get_declared_options,
)
from command_handlers.application.interception import AsyncInterceptor
from command_handlers.domain.exceptions import ConfigurationError
from command_handlers.domain.handlers import CommandHandlerBase
from command_handlers.domain.lifetime import Lifetime, LifetimeSpec, to_lifetime

THandler = TypeVar("THandler", bound=type)


def _set_options(cls: type, options: HandlerOptions) -> None:
    setattr(cls, HANDLER_OPTIONS_ATTR, options)


def lifetime(
    value: Union[Lifetime, str], *, tags: Iterable[Hashable] = (), owner: Optional[Any] = None
) -> Callable[[THandler], THandler]:
    """
    Declare the lifetime policy of a handler type.

    Args:
        value: Lifetime policy
        tags: Scope tags, required for Lifetime.PER_MATCHING_SCOPE
        owner: Owner service, required for Lifetime.PER_OWNER

    Returns:
        Class decorator
    """
    spec = LifetimeSpec(lifetime=to_lifetime(value), tags=tuple(tags), owner=owner)

    def decorator(cls: THandler) -> THandler:
        spec.validate(cls)
        _set_options(cls, get_declared_options(cls).with_lifetime(spec))
        return cls

    return decorator


def intercepted_by(interceptor: type, *, is_async: Optional[bool] = None) -> Callable[[THandler], THandler]:
    """
    Attach an interceptor type to a handler type.

    Args:
        interceptor: Interceptor or AsyncInterceptor subclass
        is_async: Whether the interceptor needs the async bridge; detected
            from the interceptor type when omitted
    """
    if is_async is None:
        is_async = isinstance(interceptor, type) and issubclass(interceptor, AsyncInterceptor)

    def decorator(cls: THandler) -> THandler:
        # Class decorators run bottom-up; prepend so the chain follows source order.
        _set_options(cls, get_declared_options(cls).with_leading_interceptor(interceptor, is_async))
        return cls

    return decorator


def enable_interception(cls: THandler) -> THandler:
    """Allow interceptors to be attached to the contract methods of a handler type."""
    _set_options(cls, get_declared_options(cls).with_interception_enabled())
    return cls


class HandlerCatalog:
    """
    Set of handler types available for registration.

    Holds handler types in the order they were added, optionally with
    options that override those declared on the class.
    """

    def __init__(self) -> None:
        self._handlers: Dict[type, Optional[HandlerOptions]] = {}
        self._lock = threading.RLock()

    def add(self, handler_type: type, options: Optional[HandlerOptions] = None) -> type:
        """
        Add a handler type to the catalog.

        Raises:
            ConfigurationError: If the type is not a handler class
        """
        if not isinstance(handler_type, type) or not issubclass(handler_type, CommandHandlerBase):
            raise ConfigurationError(
                f"{handler_type!r} is not a handler class",
                {"handler_type": handler_type},
            )
        if options is not None and options.lifetime is not None:
            options.lifetime.validate(handler_type)
        with self._lock:
            self._handlers[handler_type] = options
        return handler_type

    def extend(self, handler_types: Iterable[type]) -> "HandlerCatalog":
        for handler_type in handler_types:
            self.add(handler_type)
        return self

    def remove(self, handler_type: type) -> None:
        with self._lock:
            self._handlers.pop(handler_type, None)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def handler_types(self) -> List[type]:
        with self._lock:
            return list(self._handlers)

    def options_for(self, handler_type: type) -> HandlerOptions:
        """Options for a handler type: catalog overrides first, then class declarations."""
        with self._lock:
            options = self._handlers.get(handler_type)
        return options if options is not None else get_declared_options(handler_type)

    def get_stats(self) -> Dict[str, int]:
        types = self.handler_types()
        explicit = sum(1 for handler_type in types if self.options_for(handler_type).is_explicit)
        return {
            "total_handlers": len(types),
            "explicit_handlers": explicit,
            "default_handlers": len(types) - explicit,
            "abstract_handlers": sum(1 for handler_type in types if inspect.isabstract(handler_type)),
        }

    def __contains__(self, handler_type: object) -> bool:
        with self._lock:
            return handler_type in self._handlers

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)


# Catalog populated by @command_handler, consumed by handler registration.
_default_catalog = HandlerCatalog()


def get_default_catalog() -> HandlerCatalog:
    """Get the catalog that @command_handler adds to by default."""
    return _default_catalog


def command_handler(cls: Optional[THandler] = None, *, catalog: Optional[HandlerCatalog] = None) -> Any:
    """
    Mark a class as a handler available for registration.

    Usable bare (``@command_handler``) or with a target catalog
    (``@command_handler(catalog=my_catalog)``).
    """

    def decorator(handler_class: THandler) -> THandler:
        (catalog if catalog is not None else _default_catalog).add(handler_class)
        return handler_class

    if cls is None:
        return decorator
    return decorator(cls)


def get_handler_options(handler_type: type, catalog: Optional[HandlerCatalog] = None) -> HandlerOptions:
    """Get the effective options of a handler type."""
    return (catalog if catalog is not None else _default_catalog).options_for(handler_type)
