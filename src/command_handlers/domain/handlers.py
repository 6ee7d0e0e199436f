"""Handler contracts that application code implements."""
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from command_handlers.domain.commands import Command, QueryCommand
from command_handlers.domain.results import Result

TCommand = TypeVar("TCommand", bound=Command)
TQueryCommand = TypeVar("TQueryCommand", bound=QueryCommand)
TResult = TypeVar("TResult")


class CommandHandlerBase(ABC):
    """Marker base for every handler contract. Implement one of its subclasses instead."""


class CommandHandler(CommandHandlerBase, Generic[TCommand]):
    """Handles a command that produces no result value."""

    @abstractmethod
    async def handle(self, command: TCommand) -> Result[None]:
        """Handle the given command."""


class QueryCommandHandler(CommandHandlerBase, Generic[TQueryCommand, TResult]):
    """Handles a command that produces a typed result value."""

    @abstractmethod
    async def handle(self, command: TQueryCommand) -> Result[TResult]:
        """Handle the given command and return its result."""


# The two open contract shapes handlers are registered against.
HANDLER_CONTRACTS = (CommandHandler, QueryCommandHandler)
