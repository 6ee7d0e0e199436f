"""Tests for handler discovery and candidate scanning."""
from typing import Generic, TypeVar

import pytest

from command_handlers import (
    CommandHandler,
    HandlerCatalog,
    HandlerOptions,
    Lifetime,
    LifetimeSpec,
    QueryCommandHandler,
)
from command_handlers.infrastructure.di import CandidateScanner, discover_handlers
from tests.sample_handlers import (
    GetCountHandler,
    NotifyAndLookupHandler,
    Ping,
    PingHandler,
    PongHandler,
)

T = TypeVar("T")

DISCOVERY_CATALOG = HandlerCatalog()


class TestCandidateScanner:
    """Test classification of handler types."""

    def test_empty_catalog_gives_empty_candidates(self, catalog):
        candidates = CandidateScanner(catalog).scan()

        assert candidates.is_empty
        assert candidates.action.explicit == ()
        assert candidates.query.default == ()

    def test_groups_by_contract_and_configuration(self, catalog):
        catalog.extend([PingHandler, GetCountHandler, PongHandler])

        candidates = CandidateScanner(catalog).scan()

        assert candidates.action.contract is CommandHandler
        assert candidates.action.explicit == (PongHandler,)
        assert candidates.action.default == (PingHandler,)
        assert candidates.query.contract is QueryCommandHandler
        assert candidates.query.explicit == ()
        assert candidates.query.default == (GetCountHandler,)

    def test_type_may_appear_in_both_groups(self, catalog):
        catalog.add(NotifyAndLookupHandler)

        candidates = CandidateScanner(catalog).scan()

        assert candidates.action.default == (NotifyAndLookupHandler,)
        assert candidates.query.default == (NotifyAndLookupHandler,)

    def test_catalog_options_decide_explicit_set(self, catalog):
        catalog.add(PingHandler, HandlerOptions(lifetime=LifetimeSpec(Lifetime.SINGLE_INSTANCE)))

        candidates = CandidateScanner(catalog).scan()

        assert candidates.action.explicit == (PingHandler,)
        assert candidates.action.default == ()

    def test_abstract_and_generic_types_are_skipped(self, catalog):
        class AbstractPing(CommandHandler[Ping]):
            pass

        class OpenHandler(CommandHandler[T], Generic[T]):
            async def handle(self, command):
                return None

        catalog.extend([AbstractPing, OpenHandler, PingHandler])

        candidates = CandidateScanner(catalog).scan()

        assert candidates.action.handler_types == (PingHandler,)

    def test_scan_given_types(self, catalog):
        candidates = CandidateScanner(catalog).scan([GetCountHandler, GetCountHandler])

        assert candidates.query.default == (GetCountHandler,)
        assert len(candidates.action) == 0


class TestDiscoverHandlers:
    def test_imports_package_modules(self, catalog, tmp_path, monkeypatch):
        """Test that importing a package runs the self-registration decorators."""
        package = tmp_path / "sample_app"
        (package / "handlers").mkdir(parents=True)
        (package / "__init__.py").write_text("")
        (package / "handlers" / "__init__.py").write_text("")
        (package / "handlers" / "ping.py").write_text(
            "from command_handlers import CommandHandler, Result, command_handler\n"
            "from tests.sample_handlers import Ping\n"
            "from tests.unit.infrastructure.di.test_handler_discovery import DISCOVERY_CATALOG\n"
            "\n"
            "@command_handler(catalog=DISCOVERY_CATALOG)\n"
            "class DiscoveredPingHandler(CommandHandler[Ping]):\n"
            "    async def handle(self, command):\n"
            "        return Result.success()\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        discovered = discover_handlers("sample_app", DISCOVERY_CATALOG)

        assert [handler.__name__ for handler in discovered] == ["DiscoveredPingHandler"]

    def test_import_errors_propagate(self, tmp_path, monkeypatch):
        package = tmp_path / "broken_app"
        package.mkdir()
        (package / "__init__.py").write_text("")
        (package / "broken.py").write_text("raise RuntimeError('broken module')\n")
        monkeypatch.syspath_prepend(str(tmp_path))

        with pytest.raises(RuntimeError, match="broken module"):
            discover_handlers("broken_app")



