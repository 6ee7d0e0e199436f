"""Handler registration configuration schema."""
from pydantic import BaseModel, ConfigDict, Field, field_validator

from command_handlers.domain.lifetime import FACTORY_LIFETIMES, Lifetime


class HandlerConfig(BaseModel):
    """Default lifetimes used when registering handlers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_lifetime: Lifetime = Field(
        Lifetime.PER_SCOPE, description="Lifetime of handlers that declare none"
    )
    default_handler_factory_lifetime: Lifetime = Field(
        Lifetime.PER_SCOPE, description="Lifetime of the handler factory registration"
    )

    @field_validator("default_handler_factory_lifetime")
    @classmethod
    def validate_factory_lifetime(cls, v: Lifetime) -> Lifetime:
        """The factory resolves handlers from the scope it belongs to, so it cannot be shared globally."""
        if v not in FACTORY_LIFETIMES:
            raise ValueError(f"Handler factory lifetime cannot be {v.value}")
        return v
