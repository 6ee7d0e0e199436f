"""Domain layer: commands, results, handler contracts and lifetime policies."""

from .commands import Command, CommandBase, QueryCommand
from .exceptions import (
    AdapterConfigurationError,
    CommandHandlerError,
    ConfigurationError,
    DecoratorConfigurationError,
    HandlerNotFoundError,
    HandlerResolutionError,
    InvalidHandlerRequestError,
    LifetimeConfigurationError,
    RegistryFrozenError,
    ResultUnwrapError,
    ScopeResolutionError,
)
from .handlers import CommandHandler, CommandHandlerBase, QueryCommandHandler
from .lifetime import BULK_LIFETIMES, FACTORY_LIFETIMES, REQUEST_SCOPE_TAG, Lifetime, LifetimeSpec, to_lifetime
from .results import HandlerError, Result

__all__ = [
    "AdapterConfigurationError",
    "BULK_LIFETIMES",
    "FACTORY_LIFETIMES",
    "Command",
    "CommandBase",
    "CommandHandler",
    "CommandHandlerBase",
    "CommandHandlerError",
    "ConfigurationError",
    "DecoratorConfigurationError",
    "HandlerError",
    "HandlerNotFoundError",
    "HandlerResolutionError",
    "InvalidHandlerRequestError",
    "Lifetime",
    "LifetimeConfigurationError",
    "LifetimeSpec",
    "QueryCommand",
    "QueryCommandHandler",
    "REQUEST_SCOPE_TAG",
    "RegistryFrozenError",
    "Result",
    "ResultUnwrapError",
    "ScopeResolutionError",
    "to_lifetime",
]
