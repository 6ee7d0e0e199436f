"""
Command handler registrations for dependency injection.

RegistrationEmitter commits candidate handler types to a registry:
explicitly configured types one by one with their own lifetime and
interceptors, all other types in one bulk registration per contract with
the default lifetime. Every lifetime is resolved before the first
registration is written, so a configuration error leaves the registry
untouched.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from command_handlers.application.bus import CommandBus
from command_handlers.application.configuration import CommandHandlerConfiguration
from command_handlers.application.decorators import HandlerCatalog, get_default_catalog
from command_handlers.application.factory import CommandHandlerFactory
from command_handlers.application.handler_options import HandlerOptions
from command_handlers.domain.exceptions import LifetimeConfigurationError
from command_handlers.domain.lifetime import FACTORY_LIFETIMES, LifetimeSpec
from command_handlers.domain.ports.registry_port import RegistryPort
from command_handlers.infrastructure.di.handler_discovery import CandidateSet
from command_handlers.infrastructure.di.interception_composer import InterceptionComposer
from command_handlers.infrastructure.di.lifetime_resolver import LifetimeResolver
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExplicitRegistration:
    """An individually registered handler type."""

    handler_type: type
    contract: type
    lifetime: LifetimeSpec
    options: HandlerOptions


@dataclass(frozen=True)
class BulkRegistration:
    """Handler types registered together under the default lifetime."""

    contract: type
    handler_types: Tuple[type, ...]
    lifetime: LifetimeSpec


@dataclass
class RegistrationPlan:
    explicit: List[ExplicitRegistration] = field(default_factory=list)
    bulk: List[BulkRegistration] = field(default_factory=list)
    factory_lifetime: Optional[LifetimeSpec] = None
    interceptors: Dict[type, List[Any]] = field(default_factory=dict)

    def get_stats(self) -> Dict[str, int]:
        return {
            "explicit_registrations": len(self.explicit),
            "bulk_registrations": len(self.bulk),
            "bulk_handler_types": sum(len(b.handler_types) for b in self.bulk),
        }


class RegistrationEmitter:
    """Registers handler candidates, the handler factory and the command bus."""

    def __init__(
        self,
        registry: RegistryPort,
        configuration: CommandHandlerConfiguration,
        catalog: Optional[HandlerCatalog] = None,
        composer: Optional[InterceptionComposer] = None,
    ):
        self.registry = registry
        self.configuration = configuration
        self.catalog = catalog if catalog is not None else get_default_catalog()
        self.lifetime_resolver = LifetimeResolver(configuration.default_lifetime)
        self.composer = composer or InterceptionComposer()

    def plan(self, candidates: CandidateSet) -> RegistrationPlan:
        """
        Resolve every registration without touching the registry.

        Raises:
            LifetimeConfigurationError: If an explicit lifetime lacks its data,
                the default lifetime cannot be used in bulk or the factory
                lifetime would share the factory across scopes
        """
        plan = RegistrationPlan(factory_lifetime=self._factory_lifetime())
        for group in candidates.groups:
            for handler_type in group.explicit:
                options = self.catalog.options_for(handler_type)
                plan.explicit.append(
                    ExplicitRegistration(
                        handler_type=handler_type,
                        contract=group.contract,
                        lifetime=self.lifetime_resolver.resolve_explicit(handler_type, options),
                        options=options,
                    )
                )
            if group.default:
                plan.bulk.append(
                    BulkRegistration(
                        contract=group.contract,
                        handler_types=group.default,
                        lifetime=self.lifetime_resolver.resolve_bulk(),
                    )
                )
        return plan

    def emit(self, candidates: CandidateSet) -> RegistrationPlan:
        """Plan every registration, then write the configured decorators and adapters and the handlers."""
        plan = self.plan(candidates)
        self.configuration.commit()

        for item in plan.explicit:
            builder = (
                self.registry.register_type(item.handler_type)
                .as_closed_interfaces_of(item.contract)
                .with_lifetime(item.lifetime)
            )
            plan.interceptors[item.handler_type] = self.composer.compose(builder, item.handler_type, item.options)
            logger.debug(
                f"Registered {item.handler_type.__name__} as {item.contract.__name__} "
                f"({item.lifetime.lifetime.value})"
            )

        for item in plan.bulk:
            self.registry.register_bulk(list(item.handler_types)).as_closed_interfaces_of(item.contract).with_lifetime(
                item.lifetime
            )
            logger.debug(
                f"Registered {len(item.handler_types)} {item.contract.__name__} types in bulk "
                f"({item.lifetime.lifetime.value})"
            )

        self.registry.register_type(CommandHandlerFactory).as_service(CommandHandlerFactory).with_lifetime(
            plan.factory_lifetime
        )
        self.registry.register_type(CommandBus).as_service(CommandBus).with_lifetime(plan.factory_lifetime)

        logger.info(f"Command handler registration complete: {plan.get_stats()}")
        return plan

    def _factory_lifetime(self) -> LifetimeSpec:
        lifetime = self.configuration.default_handler_factory_lifetime
        if lifetime not in FACTORY_LIFETIMES:
            raise LifetimeConfigurationError(
                f"Handler factory lifetime cannot be {lifetime.value}; the factory resolves handlers from "
                f"the scope it was created in. Use one of "
                f"{', '.join(sorted(value.value for value in FACTORY_LIFETIMES))}",
                CommandHandlerFactory,
                lifetime,
            )
        return LifetimeSpec(lifetime)
