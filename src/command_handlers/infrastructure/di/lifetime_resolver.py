"""Effective lifetime of handler registrations."""
from typing import Union

from command_handlers.application.handler_options import HandlerOptions
from command_handlers.domain.exceptions import LifetimeConfigurationError
from command_handlers.domain.lifetime import BULK_LIFETIMES, Lifetime, LifetimeSpec, to_lifetime


class LifetimeResolver:
    """Computes lifetimes from explicit options and the configured default."""

    def __init__(self, default_lifetime: Union[Lifetime, str]):
        self.default_lifetime = to_lifetime(default_lifetime)

    def resolve_explicit(self, handler_type: type, options: HandlerOptions) -> LifetimeSpec:
        """
        Lifetime of an individually registered handler.

        The declared lifetime wins over the default; either way the policy
        must carry the data it needs.

        Raises:
            LifetimeConfigurationError: If tags or the owner are missing
        """
        spec = options.lifetime if options.lifetime is not None else LifetimeSpec(self.default_lifetime)
        return spec.validate(handler_type)

    def resolve_bulk(self) -> LifetimeSpec:
        """
        Lifetime of handlers registered in bulk.

        Raises:
            LifetimeConfigurationError: If the default needs per-type data
        """
        if self.default_lifetime not in BULK_LIFETIMES:
            raise LifetimeConfigurationError(
                f"Default lifetime {self.default_lifetime.value} requires per-type data and cannot be used "
                f"for handlers registered in bulk; declare a lifetime on each handler or choose one of "
                f"{', '.join(sorted(lifetime.value for lifetime in BULK_LIFETIMES))}",
                None,
                self.default_lifetime,
            )
        return LifetimeSpec(self.default_lifetime)
