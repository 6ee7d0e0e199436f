"""Commands, handlers, interceptors and decorators shared by the tests."""
import inspect
from typing import Any, List, TypeVar

from command_handlers import (
    AsyncInterceptor,
    AsyncInvocation,
    Command,
    CommandHandler,
    HandlerCatalog,
    Interceptor,
    Invocation,
    Lifetime,
    QueryCommand,
    QueryCommandHandler,
    Result,
    command_handler,
    enable_interception,
    intercepted_by,
    lifetime,
)

TCommand = TypeVar("TCommand", bound=Command)


class CallLog:
    """Records calls in the order they happen."""

    def __init__(self):
        self.entries: List[str] = []

    def record(self, entry: str) -> None:
        self.entries.append(entry)


class Ping(Command):
    message: str = "ping"


class Pong(Command):
    pass


class Notify(Command):
    recipient: str = "ops"


class GetCount(QueryCommand[int]):
    pass


class Lookup(QueryCommand[str]):
    key: str = "name"


SAMPLE_CATALOG = HandlerCatalog()


@command_handler(catalog=SAMPLE_CATALOG)
class PingHandler(CommandHandler[Ping]):
    async def handle(self, command: Ping) -> Result[None]:
        return Result.success()


@command_handler(catalog=SAMPLE_CATALOG)
class GetCountHandler(QueryCommandHandler[GetCount, int]):
    async def handle(self, command: GetCount) -> Result[int]:
        return Result.success(42)


class RecordingInterceptor(Interceptor):
    def __init__(self, log: CallLog):
        self.log = log

    def intercept(self, invocation: Invocation) -> None:
        self.log.record("sync:before")
        invocation.proceed()
        inner = invocation.return_value
        if not inspect.isawaitable(inner):
            self.log.record("sync:after")
            return

        async def completed() -> Any:
            result = await inner
            self.log.record("sync:after")
            return result

        invocation.return_value = completed()


class RecordingAsyncInterceptor(AsyncInterceptor):
    def __init__(self, log: CallLog):
        self.log = log

    async def intercept_asynchronous(self, invocation: AsyncInvocation) -> Any:
        self.log.record("async:before")
        result = await invocation.proceed()
        self.log.record("async:after")
        return result


@command_handler(catalog=SAMPLE_CATALOG)
@lifetime(Lifetime.SINGLE_INSTANCE)
@enable_interception
@intercepted_by(RecordingInterceptor)
@intercepted_by(RecordingAsyncInterceptor)
class PongHandler(CommandHandler[Pong]):
    def __init__(self, log: CallLog):
        self.log = log

    async def handle(self, command: Pong) -> Result[None]:
        self.log.record("handler")
        return Result.success()


class NotifyAndLookupHandler(CommandHandler[Notify], QueryCommandHandler[Lookup, str]):
    """Implements one closed shape of each contract."""

    async def handle(self, command: Any) -> Result[Any]:
        if isinstance(command, Lookup):
            return Result.success(f"value-of-{command.key}")
        return Result.success()


class LoggingDecorator(CommandHandler[TCommand]):
    """Generic decorator closed over any action command."""

    def __init__(self, inner: CommandHandler[TCommand], log: CallLog):
        self.inner = inner
        self.log = log

    async def handle(self, command: TCommand) -> Result[None]:
        self.log.record(f"logging:{type(command).__name__}")
        return await self.inner.handle(command)


class PingAuditDecorator(CommandHandler[Ping]):
    def __init__(self, inner: CommandHandler[Ping], log: CallLog):
        self.inner = inner
        self.log = log

    async def handle(self, command: Ping) -> Result[None]:
        self.log.record("audit:Ping")
        return await self.inner.handle(command)


class NotifyAndLookupDecorator(CommandHandler[Notify], QueryCommandHandler[Lookup, str]):
    """Concrete decorator assignable to both contract shapes."""

    def __init__(self, inner: CommandHandler[Notify]):
        self.inner = inner

    async def handle(self, command: Any) -> Result[Any]:
        return await self.inner.handle(command)


class NotAHandler:
    def __init__(self, inner: CommandHandler[Ping]):
        self.inner = inner


class CountText:
    """Adapter target: renders a count handler's result as text."""

    def __init__(self, handler: QueryCommandHandler[GetCount, int]):
        self.handler = handler

    async def render(self) -> str:
        result = await self.handler.handle(GetCount())
        return f"count={result.unwrap()}"


def count_text(handler: QueryCommandHandler[GetCount, int]) -> CountText:
    return CountText(handler)
