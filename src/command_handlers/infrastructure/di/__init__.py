"""Dependency injection container and command handler registration."""

from .command_handler_services import RegistrationEmitter, RegistrationPlan
from .container import DIContainer, get_container, reset_container
from .exceptions import (
    CircularDependencyError,
    DependencyResolutionError,
    FactoryError,
    InstantiationError,
    UnregisteredDependencyError,
    UntypedParameterError,
)
from .handler_discovery import CandidateGroup, CandidateScanner, CandidateSet, discover_handlers
from .interception_composer import InterceptionComposer
from .lifetime_resolver import LifetimeResolver
from .scope import LifetimeScope, Owned, OwnedScopeTag
from .services import add_command_handlers

__all__ = [
    "CandidateGroup",
    "CandidateScanner",
    "CandidateSet",
    "CircularDependencyError",
    "DIContainer",
    "DependencyResolutionError",
    "FactoryError",
    "InstantiationError",
    "InterceptionComposer",
    "LifetimeResolver",
    "LifetimeScope",
    "Owned",
    "OwnedScopeTag",
    "RegistrationEmitter",
    "RegistrationPlan",
    "UnregisteredDependencyError",
    "UntypedParameterError",
    "add_command_handlers",
    "get_container",
    "reset_container",
]
