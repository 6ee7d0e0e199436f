"""
Interception primitives.

An Interceptor wraps calls to the contract methods of a resolved handler.
Interceptors form a chain in attachment order: the first attached one is the
outermost and sees the call first. Asynchronous interceptors implement
AsyncInterceptor and are attached through AsyncInterceptorAdapter, which
exposes them through the synchronous Interceptor.intercept slot.
"""
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence


class Invocation:
    """A single call to a contract method travelling through an interceptor chain."""

    def __init__(
        self,
        target: Any,
        method_name: str,
        arguments: Sequence[Any],
        keyword_arguments: Dict[str, Any],
        interceptors: Sequence["Interceptor"],
    ):
        self.target = target
        self.method_name = method_name
        self.arguments: List[Any] = list(arguments)
        self.keyword_arguments = dict(keyword_arguments)
        self.return_value: Any = None
        self._interceptors = tuple(interceptors)
        self._position = 0

    @property
    def method(self) -> Any:
        """The bound target method being invoked."""
        return getattr(self.target, self.method_name)

    def proceed(self) -> Any:
        """Pass the call to the next interceptor, or to the target when none remain."""
        return self._proceed_from(self._position)

    def capture_proceed_info(self) -> "ProceedInfo":
        """Capture the current chain position so the call can proceed later."""
        return ProceedInfo(self, self._position)

    def _proceed_from(self, position: int) -> Any:
        if position < len(self._interceptors):
            previous = self._position
            self._position = position + 1
            try:
                self._interceptors[position].intercept(self)
            finally:
                self._position = previous
        else:
            self.return_value = self.method(*self.arguments, **self.keyword_arguments)
        return self.return_value


class ProceedInfo:
    """A chain position captured before an interceptor suspended."""

    def __init__(self, invocation: Invocation, position: int):
        self._invocation = invocation
        self._position = position

    def invoke(self) -> Any:
        return self._invocation._proceed_from(self._position)


class Interceptor(ABC):
    """Cross-cutting behaviour wrapped around contract method calls."""

    @abstractmethod
    def intercept(self, invocation: Invocation) -> None:
        """
        Intercept a call.

        Call invocation.proceed() to continue the chain; the value it returns
        (a coroutine for async contract methods) is also left in
        invocation.return_value and may be replaced.
        """


class AsyncInvocation:
    """View of an invocation handed to an asynchronous interceptor."""

    def __init__(self, invocation: Invocation, proceed_info: ProceedInfo):
        self._invocation = invocation
        self._proceed_info = proceed_info

    @property
    def target(self) -> Any:
        return self._invocation.target

    @property
    def method_name(self) -> str:
        return self._invocation.method_name

    @property
    def arguments(self) -> List[Any]:
        return self._invocation.arguments

    @property
    def keyword_arguments(self) -> Dict[str, Any]:
        return self._invocation.keyword_arguments

    async def proceed(self) -> Any:
        """Continue the chain and await the inner result."""
        value = self._proceed_info.invoke()
        if inspect.isawaitable(value):
            value = await value
        return value


class AsyncInterceptor(ABC):
    """Interceptor whose behaviour may suspend around awaited contract methods."""

    def intercept_synchronous(self, invocation: Invocation) -> None:
        """Intercept a call to a non-async method. Proceeds unchanged by default."""
        invocation.proceed()

    @abstractmethod
    async def intercept_asynchronous(self, invocation: AsyncInvocation) -> Any:
        """Intercept a call to an async method and return its (possibly replaced) result."""


class AsyncInterceptorAdapter(Interceptor):
    """Exposes an AsyncInterceptor through the synchronous interceptor slot."""

    def __init__(self, interceptor: AsyncInterceptor):
        self.interceptor = interceptor

    def intercept(self, invocation: Invocation) -> None:
        if inspect.iscoroutinefunction(invocation.method):
            proceed_info = invocation.capture_proceed_info()
            invocation.return_value = self.interceptor.intercept_asynchronous(
                AsyncInvocation(invocation, proceed_info)
            )
        else:
            self.interceptor.intercept_synchronous(invocation)

    def __repr__(self) -> str:
        return f"AsyncInterceptorAdapter({type(self.interceptor).__name__})"


@dataclass(frozen=True)
class AsyncInterceptorBridge:
    """Interceptor factory that resolves an async interceptor and adapts it."""

    interceptor_type: type

    def __call__(self, scope: Any) -> AsyncInterceptorAdapter:
        return AsyncInterceptorAdapter(scope.resolve(self.interceptor_type))
