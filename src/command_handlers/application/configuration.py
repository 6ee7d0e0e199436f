"""
Handler registration configuration.

CommandHandlerConfiguration carries the default lifetimes used during
registration and the operations that add decorators and adapters around
registered handlers. Decorators and adapters are validated when added and
written to the registry only by commit(), which handler registration calls
once every handler lifetime has been resolved.
"""
import functools
import inspect
from typing import Any, Callable, List, Optional, TypeVar, Union, get_type_hints

from command_handlers.domain.contracts import (
    contract_bindings,
    describe,
    find_wrapped_parameter,
    is_handler_contract,
)
from command_handlers.domain.exceptions import (
    AdapterConfigurationError,
    DecoratorConfigurationError,
    RegistryFrozenError,
)
from command_handlers.domain.handlers import HANDLER_CONTRACTS
from command_handlers.domain.lifetime import Lifetime, to_lifetime
from command_handlers.domain.ports.registry_port import DecoratorCondition, RegistryPort
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class CommandHandlerConfiguration:
    """Options and extension points for command handler registration."""

    def __init__(
        self,
        registry: RegistryPort,
        default_lifetime: Union[Lifetime, str] = Lifetime.PER_SCOPE,
        default_handler_factory_lifetime: Union[Lifetime, str] = Lifetime.PER_SCOPE,
    ):
        self._registry = registry
        self._default_lifetime = to_lifetime(default_lifetime)
        self._default_handler_factory_lifetime = to_lifetime(default_handler_factory_lifetime)
        self._frozen = False
        self._pending: List[Callable[[], None]] = []

    @property
    def registry(self) -> RegistryPort:
        return self._registry

    @property
    def default_lifetime(self) -> Lifetime:
        """Lifetime applied to handlers that declare none."""
        return self._default_lifetime

    @default_lifetime.setter
    def default_lifetime(self, value: Union[Lifetime, str]) -> None:
        self._ensure_not_frozen("default_lifetime")
        self._default_lifetime = to_lifetime(value)

    @property
    def default_handler_factory_lifetime(self) -> Lifetime:
        """Lifetime of the handler factory registration."""
        return self._default_handler_factory_lifetime

    @default_handler_factory_lifetime.setter
    def default_handler_factory_lifetime(self, value: Union[Lifetime, str]) -> None:
        self._ensure_not_frozen("default_handler_factory_lifetime")
        self._default_handler_factory_lifetime = to_lifetime(value)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Fix the default lifetimes once handler registration has read them."""
        self._frozen = True

    @property
    def pending_registrations(self) -> int:
        """Number of decorator and adapter registrations not yet written to the registry."""
        return len(self._pending)

    def commit(self) -> None:
        """Write the recorded decorator and adapter registrations to the registry."""
        pending, self._pending = self._pending, []
        for register in pending:
            register()
        if pending:
            logger.debug(f"Committed {len(pending)} decorator and adapter registrations")

    def add_decorator(self, decorator: type, condition: Optional[DecoratorCondition] = None) -> "CommandHandlerConfiguration":
        """
        Add a concrete decorator around handlers of the contract shapes it implements.

        A decorator implementing closed shapes of both contracts is registered
        for both.

        Args:
            decorator: Concrete handler class wrapping another handler
            condition: Optional predicate deciding per resolution whether to apply it

        Raises:
            DecoratorConfigurationError: If the decorator is generic, abstract,
                implements no handler contract or has no handler parameter
        """
        self._ensure_not_frozen("decorators")
        name = describe(decorator)
        if not isinstance(decorator, type) or getattr(decorator, "__parameters__", ()):
            raise DecoratorConfigurationError(
                f"{name} is a generic type, use add_generic_decorator instead", decorator
            )
        if inspect.isabstract(decorator):
            raise DecoratorConfigurationError(f"{name} is abstract and cannot decorate handlers", decorator)
        shapes = self._decorator_shapes(decorator)
        self._require_wrapped_parameter(decorator)
        for shape in shapes:
            self._pending.append(
                functools.partial(self._registry.register_decorator, decorator, shape, condition)
            )
            logger.debug(f"Added decorator {name} for {shape.__name__}")
        return self

    def add_generic_decorator(self, template: type, condition: Optional[DecoratorCondition] = None) -> "CommandHandlerConfiguration":
        """
        Add a generic decorator template closed over every matching handler contract.

        Args:
            template: Generic handler class, e.g. ``class Logging(CommandHandler[TCommand])``
            condition: Optional predicate deciding per resolution whether to apply it

        Raises:
            DecoratorConfigurationError: If the template is not generic,
                implements no handler contract or leaves type parameters
                that a contract cannot determine
        """
        self._ensure_not_frozen("decorators")
        name = describe(template)
        parameters = getattr(template, "__parameters__", ()) if isinstance(template, type) else ()
        if not parameters:
            raise DecoratorConfigurationError(f"{name} is not a generic type, use add_decorator instead", template)
        shapes = self._decorator_shapes(template)
        for shape in shapes:
            bound = {
                variable
                for args in contract_bindings(template, shape)
                for arg in args
                for variable in ((arg,) if isinstance(arg, TypeVar) else getattr(arg, "__parameters__", ()))
            }
            missing = [p for p in parameters if p not in bound]
            if missing:
                raise DecoratorConfigurationError(
                    f"{name}: type parameters {', '.join(map(str, missing))} cannot be determined "
                    f"from {shape.__name__}",
                    template,
                )
        self._require_wrapped_parameter(template)
        for shape in shapes:
            self._pending.append(
                functools.partial(self._registry.register_generic_decorator, template, shape, condition)
            )
            logger.debug(f"Added generic decorator {name} for {shape.__name__}")
        return self

    def add_adapter(
        self, adapter: Callable[[Any], Any], source: Any = None, target: Any = None
    ) -> "CommandHandlerConfiguration":
        """
        Add an adapter deriving a target service from a resolved handler.

        Source and target default to the annotations of the adapter's first
        parameter and return value.

        Raises:
            AdapterConfigurationError: If the source or target cannot be
                determined, or the source is not a handler contract
        """
        self._ensure_not_frozen("adapters")
        if source is None or target is None:
            inferred_source, inferred_target = self._adapter_annotations(adapter)
            source = source if source is not None else inferred_source
            target = target if target is not None else inferred_target
        if source is None or target is None:
            raise AdapterConfigurationError(
                f"Cannot determine source and target of adapter {describe(adapter)}; "
                "annotate it or pass source and target",
                {"adapter": adapter},
            )
        if not is_handler_contract(source):
            raise AdapterConfigurationError(
                f"Adapter source {describe(source)} is not a handler contract",
                {"adapter": adapter, "source": source},
            )
        self._pending.append(functools.partial(self._registry.register_adapter, adapter, source, target))
        logger.debug(f"Added adapter {describe(source)} -> {describe(target)}")
        return self

    def _decorator_shapes(self, decorator: type) -> List[type]:
        shapes = [contract for contract in HANDLER_CONTRACTS if issubclass(decorator, contract)]
        if not shapes:
            raise DecoratorConfigurationError(
                f"{describe(decorator)} can't decorate any command handler: it implements neither "
                f"{' nor '.join(contract.__name__ for contract in HANDLER_CONTRACTS)}",
                decorator,
            )
        return shapes

    @staticmethod
    def _require_wrapped_parameter(decorator: type) -> str:
        parameter = find_wrapped_parameter(decorator)
        if parameter is None:
            raise DecoratorConfigurationError(
                f"{describe(decorator)} has no constructor parameter annotated with a handler contract",
                decorator,
            )
        return parameter

    @staticmethod
    def _adapter_annotations(adapter: Callable[[Any], Any]) -> Any:
        try:
            hints = get_type_hints(adapter)
        except Exception:
            hints = getattr(adapter, "__annotations__", {})
        try:
            parameters = list(inspect.signature(adapter).parameters)
        except (TypeError, ValueError):
            return None, None
        source = hints.get(parameters[0]) if parameters else None
        return source, hints.get("return")

    def _ensure_not_frozen(self, name: str) -> None:
        if self._frozen or self._registry.is_frozen:
            raise RegistryFrozenError(f"Cannot change {name} after handlers have been registered")

    def __repr__(self) -> str:
        return (
            f"CommandHandlerConfiguration(default_lifetime={self._default_lifetime.value}, "
            f"default_handler_factory_lifetime={self._default_handler_factory_lifetime.value})"
        )
