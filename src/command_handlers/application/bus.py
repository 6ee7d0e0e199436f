"""
Command bus.

Mediates between callers and handlers: the handler for a command is looked
up through the handler factory and executed through a middleware chain.
"""
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List

from command_handlers.application.factory import CommandHandlerFactory
from command_handlers.domain.commands import CommandBase
from command_handlers.domain.results import Result
from command_handlers.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

NextHandler = Callable[[], Awaitable[Any]]


class BusMiddleware(ABC):
    """Base class for bus middleware."""

    @abstractmethod
    async def execute(self, command: CommandBase, next_handler: NextHandler) -> Any:
        """Execute middleware logic."""


class LoggingMiddleware(BusMiddleware):
    """Middleware for logging bus operations."""

    async def execute(self, command: CommandBase, next_handler: NextHandler) -> Any:
        command_type = type(command).__name__
        start_time = time.time()

        logger.debug(f"Executing {command_type}")

        try:
            result = await next_handler()
            execution_time = time.time() - start_time
            logger.debug(f"Completed {command_type} in {execution_time:.3f}s")
            return result
        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"Failed {command_type} after {execution_time:.3f}s: {str(e)}")
            raise


class ValidationMiddleware(BusMiddleware):
    """Middleware for validating commands."""

    async def execute(self, command: CommandBase, next_handler: NextHandler) -> Any:
        if command is None:
            raise ValueError("Command cannot be None")
        if not isinstance(command, CommandBase):
            raise TypeError(f"Expected a command, got {type(command).__name__}")
        return await next_handler()


class CommandBus:
    """Executes commands by resolving their handler from a handler factory."""

    def __init__(self, factory: CommandHandlerFactory):
        self.factory = factory
        self.middleware: List[BusMiddleware] = []

        self.add_middleware(LoggingMiddleware())
        self.add_middleware(ValidationMiddleware())

    def add_middleware(self, middleware: BusMiddleware) -> None:
        """Add middleware to the bus. Middleware added first runs outermost."""
        self.middleware.append(middleware)
        logger.debug(f"Added middleware: {type(middleware).__name__}")

    async def execute(self, command: CommandBase) -> Result[Any]:
        """
        Execute a command through the bus.

        Args:
            command: Command or query command to execute

        Returns:
            The handler's result

        Raises:
            HandlerNotFoundError: If no handler is registered for the command type
        """

        async def final_handler() -> Result[Any]:
            handler = self.factory.get_for(type(command))
            return await handler.handle(command)

        handler: NextHandler = final_handler
        for middleware in reversed(self.middleware):
            handler = self._chain(middleware, command, handler)

        return await handler()

    @staticmethod
    def _chain(middleware: BusMiddleware, command: CommandBase, next_handler: NextHandler) -> NextHandler:
        async def run() -> Any:
            return await middleware.execute(command, next_handler)

        return run
