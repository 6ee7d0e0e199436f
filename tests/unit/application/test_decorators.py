"""Tests for handler metadata decorators and the handler catalog."""
import pytest

from command_handlers import (
    CommandHandler,
    ConfigurationError,
    HandlerCatalog,
    HandlerOptions,
    Lifetime,
    LifetimeConfigurationError,
    LifetimeSpec,
    command_handler,
    enable_interception,
    get_default_catalog,
    get_handler_options,
    intercepted_by,
    lifetime,
)
from tests.sample_handlers import (
    SAMPLE_CATALOG,
    Ping,
    PingHandler,
    PongHandler,
    RecordingAsyncInterceptor,
    RecordingInterceptor,
)


class TestHandlerMetadata:
    """Test metadata declared with class decorators."""

    def test_undecorated_handler_has_no_explicit_options(self):
        options = get_handler_options(PingHandler, SAMPLE_CATALOG)

        assert options == HandlerOptions()
        assert not options.is_explicit

    def test_interceptors_follow_source_order(self):
        """Test that the first interceptor written is first in the chain."""
        options = get_handler_options(PongHandler, SAMPLE_CATALOG)

        assert [d.interceptor for d in options.interceptors] == [
            RecordingInterceptor,
            RecordingAsyncInterceptor,
        ]
        assert [d.order for d in options.interceptors] == [0, 1]
        assert [d.is_async for d in options.interceptors] == [False, True]
        assert options.interception_enabled
        assert options.lifetime == LifetimeSpec(Lifetime.SINGLE_INSTANCE)
        assert options.is_explicit

    def test_async_flag_can_be_forced(self):
        @intercepted_by(RecordingInterceptor, is_async=True)
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        assert get_handler_options(Handler, HandlerCatalog()).interceptors[0].is_async

    def test_interceptor_alone_makes_type_explicit(self):
        @intercepted_by(RecordingInterceptor)
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        options = get_handler_options(Handler, HandlerCatalog())

        assert options.is_explicit
        assert options.lifetime is None
        assert not options.interception_enabled

    def test_options_are_not_inherited(self):
        """Test that a subclass does not pick up its parent's declarations."""

        class SubPongHandler(PongHandler):
            pass

        assert get_handler_options(SubPongHandler, HandlerCatalog()) == HandlerOptions()

    def test_lifetime_with_tags(self):
        @lifetime(Lifetime.PER_MATCHING_SCOPE, tags=["tenant"])
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        assert get_handler_options(Handler, HandlerCatalog()).lifetime == LifetimeSpec(
            Lifetime.PER_MATCHING_SCOPE, tags=("tenant",)
        )

    def test_malformed_lifetime_fails_at_declaration(self):
        with pytest.raises(LifetimeConfigurationError, match="requires an owner type"):

            @lifetime(Lifetime.PER_OWNER)
            class Handler(CommandHandler[Ping]):
                async def handle(self, command):
                    return None

    def test_unknown_lifetime_name_fails_at_declaration(self):
        with pytest.raises(ConfigurationError, match="'per_thread' is not a lifetime"):
            lifetime("per_thread")

    def test_lifetime_name_accepted(self):
        @lifetime("per_dependency")
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        assert get_handler_options(Handler, HandlerCatalog()).lifetime == LifetimeSpec(Lifetime.PER_DEPENDENCY)

    def test_enable_interception_without_interceptors(self):
        @enable_interception
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        options = get_handler_options(Handler, HandlerCatalog())

        assert options.interception_enabled
        assert not options.is_explicit


class TestHandlerCatalog:
    """Test the handler catalog."""

    def test_bare_decorator_adds_to_default_catalog(self):
        @command_handler
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        try:
            assert Handler in get_default_catalog()
        finally:
            get_default_catalog().remove(Handler)

        assert Handler not in get_default_catalog()

    def test_decorator_with_catalog(self, catalog):
        @command_handler(catalog=catalog)
        class Handler(CommandHandler[Ping]):
            async def handle(self, command):
                return None

        assert catalog.handler_types() == [Handler]
        assert len(catalog) == 1

    def test_rejects_non_handler_types(self, catalog):
        with pytest.raises(ConfigurationError, match="is not a handler class"):
            catalog.add(Ping)

    def test_explicit_options_override_declarations(self, catalog):
        options = HandlerOptions(lifetime=LifetimeSpec(Lifetime.PER_DEPENDENCY))

        catalog.add(PongHandler, options)

        assert catalog.options_for(PongHandler) is options

    def test_explicit_options_are_validated(self, catalog):
        with pytest.raises(LifetimeConfigurationError):
            catalog.add(PingHandler, HandlerOptions(lifetime=LifetimeSpec(Lifetime.PER_MATCHING_SCOPE)))

    def test_stats(self):
        stats = SAMPLE_CATALOG.get_stats()

        assert stats["total_handlers"] == len(SAMPLE_CATALOG)
        assert stats["explicit_handlers"] >= 1
        assert stats["explicit_handlers"] + stats["default_handlers"] == stats["total_handlers"]
