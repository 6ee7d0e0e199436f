"""Entry point wiring command handlers into a container."""
from typing import Callable, Iterable, Optional

from command_handlers.application.configuration import CommandHandlerConfiguration
from command_handlers.application.decorators import HandlerCatalog, get_default_catalog
from command_handlers.config.manager import ConfigurationManager
from command_handlers.config.schemas.handler_schema import HandlerConfig
from command_handlers.infrastructure.di.command_handler_services import RegistrationEmitter
from command_handlers.infrastructure.di.container import DIContainer
from command_handlers.infrastructure.di.handler_discovery import CandidateScanner
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


def add_command_handlers(
    container: DIContainer,
    configure: Optional[Callable[[CommandHandlerConfiguration], None]] = None,
    *,
    catalog: Optional[HandlerCatalog] = None,
    settings: Optional[HandlerConfig] = None,
    handler_types: Optional[Iterable[type]] = None,
) -> CommandHandlerConfiguration:
    """
    Register command handlers, the handler factory and the command bus.

    Args:
        container: Container still in its registration phase
        configure: Setup callback; may change default lifetimes and add
            decorators and adapters
        catalog: Handler catalog; defaults to the one @command_handler fills
        settings: Initial defaults; loaded through ConfigurationManager when omitted
        handler_types: Handler types to register instead of the whole catalog

    Returns:
        The frozen configuration, also registered in the container

    Raises:
        ConfigurationError: If any handler, decorator or adapter is misconfigured
    """
    if settings is None:
        settings = ConfigurationManager().handlers
    configuration = CommandHandlerConfiguration(
        container,
        default_lifetime=settings.default_lifetime,
        default_handler_factory_lifetime=settings.default_handler_factory_lifetime,
    )
    if configure is not None:
        configure(configuration)
    configuration.freeze()

    catalog = catalog if catalog is not None else get_default_catalog()
    candidates = CandidateScanner(catalog).scan(handler_types)
    RegistrationEmitter(container, configuration, catalog).emit(candidates)
    container.register_instance(CommandHandlerConfiguration, configuration)

    logger.info(
        f"Command handlers added with default lifetime {configuration.default_lifetime.value}, "
        f"factory lifetime {configuration.default_handler_factory_lifetime.value}"
    )
    return configuration
