"""DI container components."""

from .service_registry import ServiceRegistry

__all__ = ["ServiceRegistry"]
