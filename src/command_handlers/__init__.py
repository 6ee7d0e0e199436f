"""
Command handler registration and resolution.

Declare commands and handlers, register them into a dependency container with
lifetime management, interception and decoration, and resolve fully composed
handlers by contract or command type.

Usage:
    class Ping(Command):
        pass

    @command_handler
    class PingHandler(CommandHandler[Ping]):
        async def handle(self, command: Ping) -> Result[None]:
            return Result.success()

    container = DIContainer()
    add_command_handlers(container)
    container.build()

    with container.begin_scope() as scope:
        handler = scope.resolve(CommandHandlerFactory).get_for(Ping)
"""
from ._version import __version__
from .application import (
    AsyncInterceptor,
    AsyncInterceptorAdapter,
    AsyncInterceptorBridge,
    AsyncInvocation,
    CommandBus,
    CommandHandlerConfiguration,
    CommandHandlerFactory,
    HandlerCatalog,
    HandlerOptions,
    Interceptor,
    InterceptorDescriptor,
    Invocation,
    command_handler,
    enable_interception,
    get_default_catalog,
    get_handler_options,
    intercepted_by,
    lifetime,
)
from .config import ConfigurationManager, HandlerConfig, LoggingConfig
from .domain import (
    Command,
    CommandBase,
    CommandHandler,
    CommandHandlerError,
    ConfigurationError,
    DecoratorConfigurationError,
    HandlerError,
    HandlerNotFoundError,
    HandlerResolutionError,
    InvalidHandlerRequestError,
    Lifetime,
    LifetimeConfigurationError,
    LifetimeSpec,
    QueryCommand,
    QueryCommandHandler,
    REQUEST_SCOPE_TAG,
    RegistryFrozenError,
    Result,
    ScopeResolutionError,
)
from .domain.ports import DecoratorContext
from .infrastructure.di import (
    DIContainer,
    LifetimeScope,
    Owned,
    add_command_handlers,
    discover_handlers,
)
from .infrastructure.logging import get_logger, setup_logging

__all__ = [
    "AsyncInterceptor",
    "AsyncInterceptorAdapter",
    "AsyncInterceptorBridge",
    "AsyncInvocation",
    "Command",
    "CommandBase",
    "CommandBus",
    "CommandHandler",
    "CommandHandlerConfiguration",
    "CommandHandlerError",
    "CommandHandlerFactory",
    "ConfigurationError",
    "ConfigurationManager",
    "DIContainer",
    "DecoratorConfigurationError",
    "DecoratorContext",
    "HandlerCatalog",
    "HandlerConfig",
    "HandlerError",
    "HandlerNotFoundError",
    "HandlerOptions",
    "HandlerResolutionError",
    "Interceptor",
    "InterceptorDescriptor",
    "InvalidHandlerRequestError",
    "Invocation",
    "Lifetime",
    "LifetimeConfigurationError",
    "LifetimeScope",
    "LifetimeSpec",
    "LoggingConfig",
    "Owned",
    "QueryCommand",
    "QueryCommandHandler",
    "REQUEST_SCOPE_TAG",
    "RegistryFrozenError",
    "Result",
    "ScopeResolutionError",
    "__version__",
    "add_command_handlers",
    "command_handler",
    "discover_handlers",
    "enable_interception",
    "get_default_catalog",
    "get_handler_options",
    "get_logger",
    "intercepted_by",
    "lifetime",
    "setup_logging",
]
