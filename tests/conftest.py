"""Shared test fixtures."""
import pytest

from command_handlers import DIContainer, HandlerCatalog, HandlerConfig, Lifetime
from command_handlers.infrastructure.di import reset_container
from tests.sample_handlers import CallLog


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep configuration independent of the host environment."""
    for variable in (
        "COMMAND_HANDLERS_DEFAULT_LIFETIME",
        "COMMAND_HANDLERS_FACTORY_LIFETIME",
        "COMMAND_HANDLERS_LOG_LEVEL",
        "COMMAND_HANDLERS_LOG_DESTINATION",
        "COMMAND_HANDLERS_LOG_FILE",
    ):
        monkeypatch.delenv(variable, raising=False)
    yield
    reset_container()


@pytest.fixture
def container():
    """Unbuilt container."""
    return DIContainer()


@pytest.fixture
def catalog():
    """Empty handler catalog."""
    return HandlerCatalog()


@pytest.fixture
def call_log():
    return CallLog()


@pytest.fixture
def settings():
    """Default handler settings, independent of environment variables."""
    return HandlerConfig(
        default_lifetime=Lifetime.PER_SCOPE,
        default_handler_factory_lifetime=Lifetime.PER_SCOPE,
    )
