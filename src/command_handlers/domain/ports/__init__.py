"""Domain ports for infrastructure concerns."""

from .registry_port import (
    DecoratorCondition,
    DecoratorContext,
    RegistrationBuilderPort,
    RegistryPort,
    ScopePort,
)

__all__ = [
    "DecoratorCondition",
    "DecoratorContext",
    "RegistrationBuilderPort",
    "RegistryPort",
    "ScopePort",
]
