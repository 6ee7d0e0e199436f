"""
Registration records and the fluent registration builder.

A registration is stored as soon as it is created and configured in place by
its builder; services are indexed when the container is built.
"""
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Any, Callable, Hashable, List, Optional, Tuple, get_args, get_origin

from command_handlers.domain.contracts import closed_contracts_of, contract_bindings, describe, unify
from command_handlers.domain.exceptions import LifetimeConfigurationError, RegistryFrozenError
from command_handlers.domain.lifetime import BULK_LIFETIMES, Lifetime, LifetimeSpec
from command_handlers.domain.ports.registry_port import DecoratorCondition, RegistrationBuilderPort

if TYPE_CHECKING:
    from command_handlers.infrastructure.di.components.service_registry import ServiceRegistry

_ids = count(1)


@dataclass(eq=False)
class ComponentRegistration:
    """How to create a component, which services expose it and how it is shared."""

    implementation_type: Optional[type] = None
    factory: Optional[Callable[[Any], Any]] = None
    instance: Any = None
    services: List[Any] = field(default_factory=list)
    lifetime: LifetimeSpec = field(default_factory=lambda: LifetimeSpec(Lifetime.PER_DEPENDENCY))
    interface_interception_enabled: bool = False
    interceptors: List[Any] = field(default_factory=list)
    id: int = field(default_factory=lambda: next(_ids))

    @property
    def has_instance(self) -> bool:
        return self.implementation_type is None and self.factory is None

    @property
    def name(self) -> str:
        if self.implementation_type is not None:
            return describe(self.implementation_type)
        if self.factory is not None:
            return f"factory {getattr(self.factory, '__qualname__', repr(self.factory))}"
        return f"instance of {type(self.instance).__name__}"

    def add_service(self, service: Any) -> None:
        if service not in self.services:
            self.services.append(service)


@dataclass(frozen=True)
class DecoratorRegistration:
    """A decorator (concrete or generic template) applied around one open contract shape."""

    decorator: type
    shape: type
    wrapped_parameter: str
    condition: Optional[DecoratorCondition] = None
    is_generic: bool = False

    def close_for(self, service: Any) -> Optional[Any]:
        """
        Get the decorator type to instantiate around a closed service.

        Returns:
            The concrete decorator, the template closed over the service's
            arguments, or None when the decorator does not apply
        """
        if get_origin(service) is not self.shape:
            return None
        if not self.is_generic:
            return self.decorator if service in closed_contracts_of(self.decorator, self.shape) else None
        parameters = self.decorator.__parameters__
        for pattern in contract_bindings(self.decorator, self.shape):
            bindings = unify(pattern, get_args(service))
            if bindings is not None and all(p in bindings for p in parameters):
                return self.decorator[tuple(bindings[p] for p in parameters)]
        return None


@dataclass(frozen=True)
class AdapterRegistration:
    """Derives a target service from a resolved source service."""

    adapter: Callable[[Any], Any]
    source: Any
    target: Any


class RegistrationBuilder(RegistrationBuilderPort):
    """
    Fluent configuration of one or many component registrations.

    A bulk builder applies every call to all of its registrations and
    supports only the lifetimes that need no per-type data.
    """

    def __init__(
        self,
        registry: "ServiceRegistry",
        registrations: List[ComponentRegistration],
        bulk: bool = False,
    ):
        self._registry = registry
        self._registrations = registrations
        self._bulk = bulk

    @property
    def registrations(self) -> Tuple[ComponentRegistration, ...]:
        return tuple(self._registrations)

    def as_closed_interfaces_of(self, contract: type) -> "RegistrationBuilder":
        self._ensure_open()
        for registration in self._registrations:
            for closed in closed_contracts_of(registration.implementation_type, contract):
                registration.add_service(closed)
        return self

    def as_service(self, service: Any) -> "RegistrationBuilder":
        self._ensure_open()
        for registration in self._registrations:
            registration.add_service(service)
        return self

    def single_instance(self) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.SINGLE_INSTANCE))

    def per_request(self) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.PER_REQUEST))

    def per_scope(self) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.PER_SCOPE))

    def per_dependency(self) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.PER_DEPENDENCY))

    def per_matching_scope(self, *tags: Hashable) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.PER_MATCHING_SCOPE, tags=tuple(tags)))

    def per_owner(self, owner: Any) -> "RegistrationBuilder":
        return self._set_lifetime(LifetimeSpec(Lifetime.PER_OWNER, owner=owner))

    def enable_interface_interception(self) -> "RegistrationBuilder":
        self._ensure_open()
        for registration in self._registrations:
            registration.interface_interception_enabled = True
        return self

    def intercepted_by(self, interceptor: Any) -> "RegistrationBuilder":
        self._ensure_open()
        for registration in self._registrations:
            registration.interceptors.append(interceptor)
        return self

    def _set_lifetime(self, spec: LifetimeSpec) -> "RegistrationBuilder":
        self._ensure_open()
        if self._bulk and spec.lifetime not in BULK_LIFETIMES:
            raise LifetimeConfigurationError(
                f"Lifetime {spec.lifetime.value} is not supported for bulk registration",
                None,
                spec.lifetime,
            )
        for registration in self._registrations:
            registration.lifetime = spec.validate(registration.implementation_type)
        return self

    def _ensure_open(self) -> None:
        if self._registry.is_frozen:
            raise RegistryFrozenError("Registrations cannot be changed after the container is built")
