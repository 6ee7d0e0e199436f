"""Explicit per-type handler configuration."""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from command_handlers.domain.lifetime import LifetimeSpec

HANDLER_OPTIONS_ATTR = "__handler_options__"


@dataclass(frozen=True)
class InterceptorDescriptor:
    """Reference to an interceptor type and where it sits in the declared chain."""

    interceptor: type
    is_async: bool = False
    order: int = 0


@dataclass(frozen=True)
class HandlerOptions:
    """Lifetime and interception settings declared for one handler type."""

    lifetime: Optional[LifetimeSpec] = None
    interceptors: Tuple[InterceptorDescriptor, ...] = ()
    interception_enabled: bool = False

    @property
    def is_explicit(self) -> bool:
        """Whether the type needs individual registration."""
        return self.lifetime is not None or bool(self.interceptors)

    def with_lifetime(self, spec: LifetimeSpec) -> "HandlerOptions":
        return replace(self, lifetime=spec)

    def with_leading_interceptor(self, interceptor: type, is_async: bool) -> "HandlerOptions":
        """Return options with an interceptor placed before the current ones."""
        chain = ((interceptor, is_async),) + tuple((d.interceptor, d.is_async) for d in self.interceptors)
        return replace(
            self,
            interceptors=tuple(
                InterceptorDescriptor(interceptor=item, is_async=flag, order=index)
                for index, (item, flag) in enumerate(chain)
            ),
        )

    def with_interception_enabled(self) -> "HandlerOptions":
        return replace(self, interception_enabled=True)


def get_declared_options(cls: type) -> HandlerOptions:
    """Options declared on the class itself. Options of base classes are not inherited."""
    return cls.__dict__.get(HANDLER_OPTIONS_ATTR) or HandlerOptions()
