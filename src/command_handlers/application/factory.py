"""Handler factory: scope-aware lookup of handlers by contract or command type."""
from typing import Any, Optional, Type

from command_handlers.domain.commands import CommandBase, QueryCommand
from command_handlers.domain.contracts import describe, is_handler_contract
from command_handlers.domain.exceptions import HandlerNotFoundError, InvalidHandlerRequestError
from command_handlers.domain.handlers import CommandHandler, QueryCommandHandler
from command_handlers.domain.ports.registry_port import ScopePort
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class CommandHandlerFactory:
    """
    Resolves handlers from the lifetime scope the factory was created in.

    Handlers come back fully composed: interceptors, decorators and adapters
    are already applied, and instances are shared according to the lifetime
    of their registration within this factory's scope.
    """

    def __init__(self, scope: ScopePort):
        self._scope = scope

    @property
    def scope(self) -> ScopePort:
        return self._scope

    def get(self, contract: Any) -> Any:
        """
        Get the handler registered for a handler contract.

        Args:
            contract: Closed handler contract, e.g. ``CommandHandler[Ping]``

        Raises:
            InvalidHandlerRequestError: If a concrete implementation type is requested
            HandlerNotFoundError: If nothing is registered for the contract
        """
        if not is_handler_contract(contract):
            raise InvalidHandlerRequestError(
                f"Only handler contracts can be requested; {describe(contract)} is not one. "
                "Request e.g. CommandHandler[MyCommand] instead of an implementation class.",
                {"requested": contract},
            )
        return self._resolve(contract)

    def get_for(self, command_type: Type[CommandBase], result_type: Optional[Any] = None) -> Any:
        """
        Get the handler for a command type.

        Args:
            command_type: Command class
            result_type: Result type for query commands; taken from the
                command's declaration when omitted

        Returns:
            The handler registered for ``CommandHandler[command_type]`` or
            ``QueryCommandHandler[command_type, result_type]``
        """
        if not isinstance(command_type, type) or not issubclass(command_type, CommandBase):
            raise InvalidHandlerRequestError(
                f"{describe(command_type)} is not a command type", {"requested": command_type}
            )
        if issubclass(command_type, QueryCommand):
            if result_type is None:
                result_type = command_type.result_type()
            if result_type is None:
                raise InvalidHandlerRequestError(
                    f"Result type of {describe(command_type)} cannot be determined",
                    {"requested": command_type},
                )
            return self._resolve(QueryCommandHandler[command_type, result_type])
        if result_type is not None:
            raise InvalidHandlerRequestError(
                f"{describe(command_type)} produces no result; request it without a result type",
                {"requested": command_type, "result_type": result_type},
            )
        return self._resolve(CommandHandler[command_type])

    def _resolve(self, contract: Any) -> Any:
        if not self._scope.is_registered(contract):
            logger.debug(f"No handler registered for {describe(contract)}")
            raise HandlerNotFoundError(contract, f"No handler registered for {describe(contract)}")
        return self._scope.resolve(contract)
