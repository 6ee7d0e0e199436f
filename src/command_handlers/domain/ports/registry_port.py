"""Registry port: the narrow container capability handler registration relies on."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, List, Optional, Type, TypeVar

from command_handlers.domain.lifetime import Lifetime, LifetimeSpec

T = TypeVar("T")


@dataclass
class DecoratorContext:
    """State handed to a decorator's activation predicate at resolution time."""

    implementation_type: type
    service_type: Any
    applied_decorator_types: List[type] = field(default_factory=list)
    applied_decorators: List[Any] = field(default_factory=list)
    current_instance: Any = None


DecoratorCondition = Callable[[DecoratorContext], bool]


class RegistrationBuilderPort(ABC):
    """Fluent configuration of one registration (single type or bulk)."""

    @abstractmethod
    def as_closed_interfaces_of(self, contract: type) -> "RegistrationBuilderPort":
        """Expose the registration under every closed shape of an open contract."""

    @abstractmethod
    def as_service(self, service: Any) -> "RegistrationBuilderPort":
        """Expose the registration under an explicit service key."""

    @abstractmethod
    def single_instance(self) -> "RegistrationBuilderPort":
        """Share one instance for the whole container."""

    @abstractmethod
    def per_request(self) -> "RegistrationBuilderPort":
        """Share one instance per request scope."""

    @abstractmethod
    def per_scope(self) -> "RegistrationBuilderPort":
        """Share one instance per lifetime scope."""

    @abstractmethod
    def per_dependency(self) -> "RegistrationBuilderPort":
        """Create a new instance for every resolution."""

    @abstractmethod
    def per_matching_scope(self, *tags: Hashable) -> "RegistrationBuilderPort":
        """Share one instance per nearest scope carrying one of the tags."""

    @abstractmethod
    def per_owner(self, owner: Any) -> "RegistrationBuilderPort":
        """Share one instance per owned resolution of the owner service."""

    @abstractmethod
    def enable_interface_interception(self) -> "RegistrationBuilderPort":
        """Allow interceptors to wrap the contract methods of resolved instances."""

    @abstractmethod
    def intercepted_by(self, interceptor: Any) -> "RegistrationBuilderPort":
        """Attach an interceptor type or interceptor factory, outermost first."""

    def with_lifetime(self, spec: LifetimeSpec) -> "RegistrationBuilderPort":
        """Apply a lifetime policy value through the matching lifetime operation."""
        lifetime = spec.lifetime
        if lifetime is Lifetime.SINGLE_INSTANCE:
            return self.single_instance()
        if lifetime is Lifetime.PER_REQUEST:
            return self.per_request()
        if lifetime is Lifetime.PER_SCOPE:
            return self.per_scope()
        if lifetime is Lifetime.PER_DEPENDENCY:
            return self.per_dependency()
        if lifetime is Lifetime.PER_MATCHING_SCOPE:
            return self.per_matching_scope(*spec.tags)
        if lifetime is Lifetime.PER_OWNER:
            return self.per_owner(spec.owner)
        raise ValueError(f"Unknown lifetime: {lifetime!r}")


class ScopePort(ABC):
    """Scope-aware lookups against a built registry."""

    @abstractmethod
    def resolve(self, service: Type[T]) -> T:
        """Resolve a fully composed instance of a service."""

    @abstractmethod
    def is_registered(self, service: Any) -> bool:
        """Check whether a service key has a registration."""

    @abstractmethod
    def begin_scope(self, tag: Optional[Hashable] = None) -> "ScopePort":
        """Start a nested scope."""


class RegistryPort(ABC):
    """Registration-phase operations of a dependency registry."""

    @property
    @abstractmethod
    def is_frozen(self) -> bool:
        """Whether the registration phase has ended."""

    @abstractmethod
    def register_type(self, implementation: type) -> RegistrationBuilderPort:
        """Register one implementation type."""

    @abstractmethod
    def register_bulk(self, implementations: List[type]) -> RegistrationBuilderPort:
        """Register many implementation types with one shared configuration."""

    @abstractmethod
    def register_instance(self, service: Any, instance: Any) -> None:
        """Register a pre-created instance as a single instance."""

    @abstractmethod
    def register_decorator(
        self, decorator: type, shape: type, condition: Optional[DecoratorCondition] = None
    ) -> None:
        """Register a concrete decorator for closed shapes of an open contract."""

    @abstractmethod
    def register_generic_decorator(
        self, template: type, shape: type, condition: Optional[DecoratorCondition] = None
    ) -> None:
        """Register a generic decorator template for every closed shape of an open contract."""

    @abstractmethod
    def register_adapter(self, adapter: Callable[[Any], Any], source: Any, target: Any) -> None:
        """Register a mapping that derives the target service from the source service."""
