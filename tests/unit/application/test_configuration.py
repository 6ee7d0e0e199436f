"""Tests for handler registration configuration."""
from typing import Generic, TypeVar
from unittest.mock import Mock, call

import pytest

from command_handlers import (
    CommandHandler,
    CommandHandlerConfiguration,
    DecoratorConfigurationError,
    Lifetime,
    LifetimeConfigurationError,
    QueryCommandHandler,
    RegistryFrozenError,
)
from command_handlers.domain.exceptions import AdapterConfigurationError
from command_handlers.domain.ports import RegistryPort
from tests.sample_handlers import (
    CountText,
    GetCount,
    LoggingDecorator,
    NotAHandler,
    NotifyAndLookupDecorator,
    Ping,
    PingAuditDecorator,
    PingHandler,
    count_text,
)

T = TypeVar("T")


class TestCommandHandlerConfiguration:
    """Test decorator, adapter and default lifetime configuration."""

    def setup_method(self):
        """Set up test fixtures."""
        self.registry = Mock(spec=RegistryPort)
        self.registry.is_frozen = False
        self.configuration = CommandHandlerConfiguration(self.registry)

    def test_defaults(self):
        assert self.configuration.default_lifetime is Lifetime.PER_SCOPE
        assert self.configuration.default_handler_factory_lifetime is Lifetime.PER_SCOPE

    def test_default_lifetime_accepts_strings(self):
        self.configuration.default_lifetime = "single_instance"

        assert self.configuration.default_lifetime is Lifetime.SINGLE_INSTANCE

    def test_frozen_configuration_rejects_changes(self):
        self.configuration.freeze()

        with pytest.raises(RegistryFrozenError):
            self.configuration.default_lifetime = Lifetime.PER_DEPENDENCY
        with pytest.raises(RegistryFrozenError):
            self.configuration.add_decorator(PingAuditDecorator)

    def test_concrete_decorator_registers_for_its_shape(self):
        condition = Mock(return_value=True)

        self.configuration.add_decorator(PingAuditDecorator, condition)
        self.configuration.commit()

        self.registry.register_decorator.assert_called_once_with(PingAuditDecorator, CommandHandler, condition)

    def test_decorator_assignable_to_both_shapes_registers_for_both(self):
        self.configuration.add_decorator(NotifyAndLookupDecorator)
        self.configuration.commit()

        assert self.registry.register_decorator.call_args_list == [
            call(NotifyAndLookupDecorator, CommandHandler, None),
            call(NotifyAndLookupDecorator, QueryCommandHandler, None),
        ]

    def test_decorator_assignable_to_no_shape_registers_nothing(self):
        with pytest.raises(DecoratorConfigurationError, match="can't decorate any command handler"):
            self.configuration.add_decorator(NotAHandler)
        self.configuration.commit()

        self.registry.register_decorator.assert_not_called()
        self.registry.register_generic_decorator.assert_not_called()

    def test_generic_template_rejected_as_concrete_decorator(self):
        with pytest.raises(DecoratorConfigurationError, match="use add_generic_decorator"):
            self.configuration.add_decorator(LoggingDecorator)

        self.registry.register_decorator.assert_not_called()

    def test_concrete_decorator_rejected_as_generic_template(self):
        with pytest.raises(DecoratorConfigurationError, match="use add_decorator"):
            self.configuration.add_generic_decorator(PingAuditDecorator)

        self.registry.register_generic_decorator.assert_not_called()

    def test_generic_decorator_registers_for_its_shape(self):
        self.configuration.add_generic_decorator(LoggingDecorator)
        self.configuration.commit()

        self.registry.register_generic_decorator.assert_called_once_with(LoggingDecorator, CommandHandler, None)

    def test_generic_decorator_with_undeterminable_parameter(self):
        """Test that a template parameter no contract argument fixes is rejected."""

        class Unbound(CommandHandler[Ping], Generic[T]):
            def __init__(self, inner: CommandHandler[Ping]):
                self.inner = inner

            async def handle(self, command):
                return await self.inner.handle(command)

        with pytest.raises(DecoratorConfigurationError, match="cannot be determined"):
            self.configuration.add_generic_decorator(Unbound)

        self.registry.register_generic_decorator.assert_not_called()

    def test_decorator_without_wrapped_parameter(self):
        class NoInner(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        with pytest.raises(DecoratorConfigurationError, match="no constructor parameter"):
            self.configuration.add_decorator(NoInner)

        self.registry.register_decorator.assert_not_called()

    def test_abstract_decorator_rejected(self):
        class Abstract(CommandHandler[Ping]):
            def __init__(self, inner: CommandHandler[Ping]):
                self.inner = inner

        with pytest.raises(DecoratorConfigurationError, match="is abstract"):
            self.configuration.add_decorator(Abstract)

    def test_adapter_types_inferred_from_annotations(self):
        self.configuration.add_adapter(count_text)
        self.configuration.commit()

        self.registry.register_adapter.assert_called_once_with(
            count_text, QueryCommandHandler[GetCount, int], CountText
        )

    def test_adapter_with_explicit_types(self):
        adapter = Mock()

        self.configuration.add_adapter(adapter, CommandHandler[Ping], str)
        self.configuration.commit()

        self.registry.register_adapter.assert_called_once_with(adapter, CommandHandler[Ping], str)

    def test_adapter_without_types_rejected(self):
        with pytest.raises(AdapterConfigurationError, match="Cannot determine source and target"):
            self.configuration.add_adapter(lambda handler: handler)

    def test_adapter_source_must_be_contract(self):
        with pytest.raises(AdapterConfigurationError, match="is not a handler contract"):
            self.configuration.add_adapter(str, PingHandler, str)

        self.registry.register_adapter.assert_not_called()

    def test_registrations_wait_for_commit(self):
        self.configuration.add_generic_decorator(LoggingDecorator)
        self.configuration.add_decorator(NotifyAndLookupDecorator)
        self.configuration.add_adapter(count_text)

        assert self.configuration.pending_registrations == 4
        self.registry.register_decorator.assert_not_called()
        self.registry.register_generic_decorator.assert_not_called()
        self.registry.register_adapter.assert_not_called()

        self.configuration.commit()

        assert self.configuration.pending_registrations == 0
        assert self.registry.register_decorator.call_count == 2
        self.registry.register_generic_decorator.assert_called_once()
        self.registry.register_adapter.assert_called_once()

    def test_commit_writes_each_registration_once(self):
        self.configuration.add_generic_decorator(LoggingDecorator)

        self.configuration.commit()
        self.configuration.commit()

        self.registry.register_generic_decorator.assert_called_once()

    def test_unknown_default_lifetime_rejected(self):
        with pytest.raises(LifetimeConfigurationError, match="'bogus' is not a lifetime"):
            self.configuration.default_lifetime = "bogus"

        assert self.configuration.default_lifetime is Lifetime.PER_SCOPE

    def test_unknown_factory_lifetime_rejected(self):
        with pytest.raises(LifetimeConfigurationError, match="'per_thread' is not a lifetime"):
            self.configuration.default_handler_factory_lifetime = "per_thread"

    def test_unknown_lifetime_rejected_by_constructor(self):
        with pytest.raises(LifetimeConfigurationError):
            CommandHandlerConfiguration(self.registry, default_lifetime="bogus")
