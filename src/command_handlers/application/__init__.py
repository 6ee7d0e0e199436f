"""Application layer: handler metadata, interception, configuration and lookup."""

from .bus import BusMiddleware, CommandBus, LoggingMiddleware, ValidationMiddleware
from .configuration import CommandHandlerConfiguration
from .decorators import (
    HandlerCatalog,
    command_handler,
    enable_interception,
    get_default_catalog,
    get_handler_options,
    intercepted_by,
    lifetime,
)
from .factory import CommandHandlerFactory
from .handler_options import HandlerOptions, InterceptorDescriptor
from .interception import (
    AsyncInterceptor,
    AsyncInterceptorAdapter,
    AsyncInterceptorBridge,
    AsyncInvocation,
    Interceptor,
    Invocation,
    ProceedInfo,
)

__all__ = [
    "AsyncInterceptor",
    "AsyncInterceptorAdapter",
    "AsyncInterceptorBridge",
    "AsyncInvocation",
    "BusMiddleware",
    "CommandBus",
    "CommandHandlerConfiguration",
    "CommandHandlerFactory",
    "HandlerCatalog",
    "HandlerOptions",
    "Interceptor",
    "InterceptorDescriptor",
    "Invocation",
    "LoggingMiddleware",
    "ProceedInfo",
    "ValidationMiddleware",
    "command_handler",
    "enable_interception",
    "get_default_catalog",
    "get_handler_options",
    "intercepted_by",
    "lifetime",
]
