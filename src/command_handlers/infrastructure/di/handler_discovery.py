"""
Handler discovery.

discover_handlers() imports every module below a package so the
@command_handler decorators run and fill the catalog. CandidateScanner then
turns the catalog into candidate sets: for each open contract, the concrete
types implementing a closed shape of it, split into types with explicit
options and types taking the defaults.
"""
import importlib
import inspect
import pkgutil
from dataclasses import dataclass
from types import ModuleType
from typing import Iterable, List, Optional, Tuple, Union

from command_handlers.application.decorators import HandlerCatalog, get_default_catalog
from command_handlers.domain.contracts import closed_contracts_of
from command_handlers.domain.handlers import HANDLER_CONTRACTS, CommandHandler, QueryCommandHandler
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CandidateGroup:
    """Implementations of one open contract, split by configuration."""

    contract: type
    explicit: Tuple[type, ...] = ()
    default: Tuple[type, ...] = ()

    @property
    def handler_types(self) -> Tuple[type, ...]:
        return self.explicit + self.default

    def __len__(self) -> int:
        return len(self.explicit) + len(self.default)


@dataclass(frozen=True)
class CandidateSet:
    """Action and query handler candidates. A type may appear in both groups."""

    action: CandidateGroup
    query: CandidateGroup

    @property
    def groups(self) -> Tuple[CandidateGroup, CandidateGroup]:
        return (self.action, self.query)

    @property
    def is_empty(self) -> bool:
        return not len(self.action) and not len(self.query)


class CandidateScanner:
    """Classifies handler types by contract shape and by configuration."""

    def __init__(self, catalog: Optional[HandlerCatalog] = None):
        self.catalog = catalog if catalog is not None else get_default_catalog()

    def scan(self, handler_types: Optional[Iterable[type]] = None) -> CandidateSet:
        """
        Build candidate sets.

        Args:
            handler_types: Types to classify; defaults to the catalog contents

        Returns:
            Candidate set, possibly empty
        """
        types = list(dict.fromkeys(self.catalog.handler_types() if handler_types is None else handler_types))
        concrete = [handler_type for handler_type in types if self._is_candidate(handler_type)]
        candidates = CandidateSet(
            action=self._group(concrete, CommandHandler),
            query=self._group(concrete, QueryCommandHandler),
        )
        logger.debug(
            f"Scanned {len(types)} types: {len(candidates.action)} action handlers, "
            f"{len(candidates.query)} query handlers"
        )
        return candidates

    def _group(self, types: List[type], contract: type) -> CandidateGroup:
        members = [handler_type for handler_type in types if closed_contracts_of(handler_type, contract)]
        explicit = tuple(t for t in members if self.catalog.options_for(t).is_explicit)
        default = tuple(t for t in members if not self.catalog.options_for(t).is_explicit)
        return CandidateGroup(contract=contract, explicit=explicit, default=default)

    @staticmethod
    def _is_candidate(handler_type: type) -> bool:
        if not isinstance(handler_type, type) or inspect.isabstract(handler_type):
            return False
        if getattr(handler_type, "__parameters__", ()):
            return False
        return any(closed_contracts_of(handler_type, contract) for contract in HANDLER_CONTRACTS)


def discover_handlers(
    package: Union[str, ModuleType], catalog: Optional[HandlerCatalog] = None
) -> List[type]:
    """
    Import every module below a package so its handlers self-register.

    Args:
        package: Package name or module
        catalog: Catalog to report from; defaults to the default catalog

    Returns:
        Catalog handler types defined in the imported modules
    """
    catalog = catalog if catalog is not None else get_default_catalog()
    if isinstance(package, str):
        package = importlib.import_module(package)
    names = [package.__name__]
    package_path = getattr(package, "__path__", None)
    if package_path is not None:
        for module_info in pkgutil.walk_packages(package_path, f"{package.__name__}."):
            importlib.import_module(module_info.name)
            logger.debug(f"Imported module: {module_info.name}")
            names.append(module_info.name)
    discovered = [handler_type for handler_type in catalog.handler_types() if handler_type.__module__ in names]
    logger.info(f"Discovered {len(discovered)} handlers in {package.__name__}")
    return discovered
