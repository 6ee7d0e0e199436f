"""Lifetime policy values for handler registrations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Optional, Tuple, Union

from command_handlers.domain.exceptions import LifetimeConfigurationError

# Tag carried by scopes that represent a single inbound request.
REQUEST_SCOPE_TAG = "request"


class Lifetime(str, Enum):
    """How broadly a resolved instance is shared before a new one is created."""

    SINGLE_INSTANCE = "single_instance"
    PER_REQUEST = "per_request"
    PER_SCOPE = "per_scope"
    PER_DEPENDENCY = "per_dependency"
    PER_MATCHING_SCOPE = "per_matching_scope"
    PER_OWNER = "per_owner"

    @property
    def requires_extra_data(self) -> bool:
        """Whether the policy needs per-type data (scope tags or an owner)."""
        return self in (Lifetime.PER_MATCHING_SCOPE, Lifetime.PER_OWNER)


# Policies that can be applied to many types at once.
BULK_LIFETIMES = frozenset(
    {
        Lifetime.SINGLE_INSTANCE,
        Lifetime.PER_REQUEST,
        Lifetime.PER_SCOPE,
        Lifetime.PER_DEPENDENCY,
    }
)

# Policies the handler factory may use; it resolves handlers from the scope it was created in.
FACTORY_LIFETIMES = frozenset({Lifetime.PER_REQUEST, Lifetime.PER_SCOPE, Lifetime.PER_DEPENDENCY})


def to_lifetime(value: Union[Lifetime, str], handler_type: Optional[type] = None) -> Lifetime:
    """
    Convert a lifetime value or its string form.

    Raises:
        LifetimeConfigurationError: If the value names no lifetime policy
    """
    try:
        return Lifetime(value)
    except ValueError as e:
        raise LifetimeConfigurationError(
            f"{value!r} is not a lifetime; expected one of {', '.join(lifetime.value for lifetime in Lifetime)}",
            handler_type,
            value,
        ) from e


@dataclass(frozen=True)
class LifetimeSpec:
    """A lifetime policy together with the data some policies need."""

    lifetime: Lifetime
    tags: Tuple[Hashable, ...] = field(default_factory=tuple)
    owner: Optional[Any] = None

    def validate(self, handler_type: Optional[type] = None) -> "LifetimeSpec":
        """Ensure the policy carries the extra data it requires."""
        name = getattr(handler_type, "__name__", "handler")
        if self.lifetime is Lifetime.PER_MATCHING_SCOPE and not self.tags:
            raise LifetimeConfigurationError(
                f"{name}: {self.lifetime.value} requires at least one scope tag",
                handler_type,
                self.lifetime,
            )
        if self.lifetime is Lifetime.PER_OWNER and self.owner is None:
            raise LifetimeConfigurationError(
                f"{name}: {self.lifetime.value} requires an owner type",
                handler_type,
                self.lifetime,
            )
        return self
