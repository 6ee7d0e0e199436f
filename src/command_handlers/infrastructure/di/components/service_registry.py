"""Service registration management for the DI container."""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from command_handlers.domain.contracts import describe
from command_handlers.domain.exceptions import RegistryFrozenError
from command_handlers.infrastructure.di.registration import (
    AdapterRegistration,
    ComponentRegistration,
    DecoratorRegistration,
)

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """
    Holds component, decorator and adapter registrations.

    Registrations are collected while the registry is open. Freezing indexes
    them by service: the last registration exposing a service is its
    default. A frozen registry is read-only.
    """

    def __init__(self):
        self._registrations: List[ComponentRegistration] = []
        self._decorators: List[DecoratorRegistration] = []
        self._adapters: Dict[Any, AdapterRegistration] = {}
        self._services: Dict[Any, List[ComponentRegistration]] = {}
        self._decorator_cache: Dict[Any, List[Tuple[DecoratorRegistration, Any]]] = {}
        self._frozen = False
        self._lock = threading.RLock()

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def add(self, registration: ComponentRegistration) -> ComponentRegistration:
        """Add a component registration."""
        with self._lock:
            self._ensure_open()
            self._registrations.append(registration)
            logger.debug(f"Registered component: {registration.name}")
            return registration

    def add_decorator(self, registration: DecoratorRegistration) -> None:
        with self._lock:
            self._ensure_open()
            self._decorators.append(registration)

    def add_adapter(self, registration: AdapterRegistration) -> None:
        with self._lock:
            self._ensure_open()
            self._adapters[registration.target] = registration

    def freeze(self) -> None:
        """Index registrations by service and close the registry."""
        with self._lock:
            if self._frozen:
                return
            self._services = self._index()
            self._frozen = True
            logger.debug(
                f"Registry frozen with {len(self._registrations)} components, "
                f"{len(self._services)} services"
            )

    def is_registered(self, service: Any) -> bool:
        """Check whether a service has a component or adapter registration."""
        return service in self._service_index() or service in self._adapters

    def default_for(self, service: Any) -> Optional[ComponentRegistration]:
        """Get the registration that supplies a service, the last one registered."""
        registrations = self._service_index().get(service)
        return registrations[-1] if registrations else None

    def registrations_for(self, service: Any) -> List[ComponentRegistration]:
        return list(self._service_index().get(service, ()))

    def adapter_for(self, target: Any) -> Optional[AdapterRegistration]:
        return self._adapters.get(target)

    def decorators_for(self, service: Any) -> List[Tuple[DecoratorRegistration, Any]]:
        """
        Get the decorators applying to a service with the type to instantiate for each.

        Returns:
            Pairs in registration order; the first pair wraps the component directly
        """
        with self._lock:
            cached = self._decorator_cache.get(service)
            if cached is None:
                cached = []
                for registration in self._decorators:
                    decorator_type = registration.close_for(service)
                    if decorator_type is not None:
                        cached.append((registration, decorator_type))
                if self._frozen:
                    self._decorator_cache[service] = cached
            return list(cached)

    def get_registrations(self) -> List[ComponentRegistration]:
        with self._lock:
            return list(self._registrations)

    def get_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        with self._lock:
            return {
                "components": len(self._registrations),
                "services": len(self._service_index()),
                "decorators": len(self._decorators),
                "adapters": len(self._adapters),
                "frozen": self._frozen,
            }

    def _service_index(self) -> Dict[Any, List[ComponentRegistration]]:
        if self._frozen:
            return self._services
        with self._lock:
            return self._index()

    def _index(self) -> Dict[Any, List[ComponentRegistration]]:
        index: Dict[Any, List[ComponentRegistration]] = {}
        for registration in self._registrations:
            services = registration.services or [registration.implementation_type]
            for service in services:
                if service is not None:
                    index.setdefault(service, []).append(registration)
        return index

    def _ensure_open(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Registrations cannot be added after the container is built")

    def __repr__(self) -> str:
        services = ", ".join(describe(service) for service in self._service_index())
        return f"ServiceRegistry([{services}])"
