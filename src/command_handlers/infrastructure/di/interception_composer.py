"""Attaches declared interceptors to a handler registration."""
from typing import Any, List

from command_handlers.application.handler_options import HandlerOptions
from command_handlers.application.interception import AsyncInterceptorBridge
from command_handlers.domain.ports.registry_port import RegistrationBuilderPort
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class InterceptionComposer:
    """
    Builds the interceptor chain of one registration.

    Interceptors are attached in declaration order, so the first declared
    one is outermost. Asynchronous interceptors are attached through
    AsyncInterceptorBridge.
    """

    def compose(self, builder: RegistrationBuilderPort, handler_type: type, options: HandlerOptions) -> List[Any]:
        """
        Attach the interceptors of a handler type to its registration.

        Returns:
            The interceptor references attached, outermost first
        """
        if not options.interception_enabled:
            if options.interceptors:
                logger.warning(
                    f"{handler_type.__name__} declares interceptors but does not enable interception; "
                    "they are not attached"
                )
            return []

        attached: List[Any] = []
        interface_enabled = False
        for descriptor in sorted(options.interceptors, key=lambda d: d.order):
            if not interface_enabled:
                builder.enable_interface_interception()
                interface_enabled = True
            reference = AsyncInterceptorBridge(descriptor.interceptor) if descriptor.is_async else descriptor.interceptor
            builder.intercepted_by(reference)
            attached.append(reference)
        if attached:
            logger.debug(
                f"Intercepting {handler_type.__name__} with "
                f"{', '.join(d.interceptor.__name__ for d in options.interceptors)}"
            )
        return attached
