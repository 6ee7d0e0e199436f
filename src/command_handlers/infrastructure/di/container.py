"""
Dependency injection container.

Registration happens against an open container; build() freezes the
registry and creates the root lifetime scope. Services are then resolved
from the root scope or from nested scopes started with begin_scope().
"""
import threading
from typing import Any, Callable, Dict, Hashable, List, Optional, TypeVar, Union

from command_handlers.domain.contracts import describe, find_wrapped_parameter
from command_handlers.domain.exceptions import ConfigurationError, DecoratorConfigurationError
from command_handlers.domain.lifetime import Lifetime, LifetimeSpec, to_lifetime
from command_handlers.domain.ports.registry_port import DecoratorCondition, RegistryPort
from command_handlers.infrastructure.di.components.service_registry import ServiceRegistry
from command_handlers.infrastructure.di.registration import (
    AdapterRegistration,
    ComponentRegistration,
    DecoratorRegistration,
    RegistrationBuilder,
)
from command_handlers.infrastructure.di.scope import LifetimeScope, Owned
from command_handlers.infrastructure.logging.logger import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


class DIContainer(RegistryPort):
    """
    Dependency injection container.

    Features:
    - Fluent type registration, individually or in bulk
    - Instance, singleton and factory registrations
    - Decorators and adapters around registered services
    - Lifetime scopes with tagged and owned sharing
    - Constructor injection from type annotations, with circular dependency detection
    """

    def __init__(self):
        self._registry = ServiceRegistry()
        self._root: Optional[LifetimeScope] = None
        self._lock = threading.RLock()

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    @property
    def is_frozen(self) -> bool:
        return self._registry.is_frozen

    def register_type(self, implementation: type) -> RegistrationBuilder:
        """
        Register an implementation type.

        The registration is exposed as the type itself until a service is
        added with as_service() or as_closed_interfaces_of().
        """
        registration = self._registry.add(ComponentRegistration(implementation_type=implementation))
        return RegistrationBuilder(self._registry, [registration])

    def register_bulk(self, implementations: List[type]) -> RegistrationBuilder:
        """Register many implementation types configured together."""
        registrations = [
            self._registry.add(ComponentRegistration(implementation_type=implementation))
            for implementation in implementations
        ]
        logger.debug(f"Registered {len(registrations)} types in bulk")
        return RegistrationBuilder(self._registry, registrations, bulk=True)

    def register_instance(self, service: Any, instance: Any) -> None:
        """Register a pre-created instance. It is not disposed by the container."""
        self._registry.add(
            ComponentRegistration(
                instance=instance,
                services=[service],
                lifetime=LifetimeSpec(Lifetime.SINGLE_INSTANCE),
            )
        )
        logger.debug(f"Registered instance for {describe(service)}")

    def register_singleton(self, cls: type, instance_or_factory: Any = None) -> None:
        """
        Register a singleton service.

        Args:
            cls: Service type
            instance_or_factory: Pre-created instance, factory taking the
                resolving scope, or None to create cls itself
        """
        if instance_or_factory is None:
            self.register_type(cls).single_instance()
        elif callable(instance_or_factory) and not isinstance(instance_or_factory, type):
            self.register_factory(cls, instance_or_factory, Lifetime.SINGLE_INSTANCE)
        else:
            self.register_instance(cls, instance_or_factory)

    def register_factory(
        self,
        cls: Any,
        factory: Callable[[LifetimeScope], Any],
        lifetime: Union[Lifetime, str] = Lifetime.PER_DEPENDENCY,
    ) -> None:
        """Register a factory called with the resolving scope to create instances."""
        self._registry.add(
            ComponentRegistration(
                factory=factory,
                services=[cls],
                lifetime=LifetimeSpec(to_lifetime(lifetime)).validate(),
            )
        )
        logger.debug(f"Registered factory for {describe(cls)}")

    def register_decorator(
        self, decorator: type, shape: type, condition: Optional[DecoratorCondition] = None
    ) -> None:
        self._registry.add_decorator(
            DecoratorRegistration(
                decorator=decorator,
                shape=shape,
                wrapped_parameter=self._wrapped_parameter(decorator),
                condition=condition,
            )
        )

    def register_generic_decorator(
        self, template: type, shape: type, condition: Optional[DecoratorCondition] = None
    ) -> None:
        self._registry.add_decorator(
            DecoratorRegistration(
                decorator=template,
                shape=shape,
                wrapped_parameter=self._wrapped_parameter(template),
                condition=condition,
                is_generic=True,
            )
        )

    def register_adapter(self, adapter: Callable[[Any], Any], source: Any, target: Any) -> None:
        self._registry.add_adapter(AdapterRegistration(adapter=adapter, source=source, target=target))

    def build(self) -> "DIContainer":
        """Freeze registrations and create the root scope."""
        with self._lock:
            if self._root is None:
                self._registry.freeze()
                self._root = LifetimeScope(self._registry)
                logger.info(f"Container built: {self._registry.get_stats()}")
        return self

    @property
    def root_scope(self) -> LifetimeScope:
        if self._root is None:
            raise ConfigurationError("Container has not been built; call build() first")
        return self._root

    def begin_scope(self, tag: Optional[Hashable] = None) -> LifetimeScope:
        """Start a scope nested in the root scope."""
        return self.root_scope.begin_scope(tag)

    def resolve(self, service: Any) -> Any:
        """Resolve a service from the root scope."""
        return self.root_scope.resolve(service)

    def resolve_owned(self, service: Any) -> Owned:
        return self.root_scope.resolve_owned(service)

    def get(self, service: Any) -> Any:
        """Alias of resolve()."""
        return self.resolve(service)

    def is_registered(self, service: Any) -> bool:
        """Check whether a service has a registration."""
        return self._registry.is_registered(service)

    def has(self, service: Any) -> bool:
        return self.is_registered(service)

    def get_stats(self) -> Dict[str, Any]:
        return self._registry.get_stats()

    def close(self) -> None:
        """Dispose the root scope and everything it owns."""
        if self._root is not None:
            self._root.close()

    async def aclose(self) -> None:
        if self._root is not None:
            await self._root.aclose()

    @staticmethod
    def _wrapped_parameter(decorator: type) -> str:
        parameter = find_wrapped_parameter(decorator)
        if parameter is None:
            raise DecoratorConfigurationError(
                f"{describe(decorator)} has no constructor parameter annotated with a handler contract",
                decorator,
            )
        return parameter


_container: Optional[DIContainer] = None
_container_lock = threading.Lock()


def get_container() -> DIContainer:
    """
    Get the global container instance.

    Returns:
        Global container instance
    """
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = DIContainer()
    return _container


def reset_container() -> None:
    """Reset the global container instance."""
    global _container
    with _container_lock:
        if _container is not None:
            _container.close()
        _container = None
