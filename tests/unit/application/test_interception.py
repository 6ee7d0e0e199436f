"""Tests for interception primitives."""
import asyncio
from unittest.mock import Mock

from command_handlers import (
    AsyncInterceptor,
    AsyncInterceptorAdapter,
    AsyncInterceptorBridge,
    Interceptor,
    Invocation,
)


class Target:
    def __init__(self):
        self.calls = []

    def compute(self, value, factor=1):
        self.calls.append(value)
        return value * factor

    async def compute_async(self, value):
        await asyncio.sleep(0)
        self.calls.append(value)
        return value + 1


class Recording(Interceptor):
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def intercept(self, invocation):
        self.log.append(f"{self.name}:before")
        invocation.proceed()
        self.log.append(f"{self.name}:after")


class Doubling(Interceptor):
    def intercept(self, invocation):
        invocation.arguments[0] *= 2
        invocation.proceed()


class AsyncRecording(AsyncInterceptor):
    def __init__(self, log):
        self.log = log

    async def intercept_asynchronous(self, invocation):
        self.log.append(f"async:before:{invocation.method_name}")
        await asyncio.sleep(0)
        result = await invocation.proceed()
        self.log.append("async:after")
        return result * 10


class TestInvocation:
    """Test the interceptor chain."""

    def test_without_interceptors_calls_target(self):
        target = Target()

        invocation = Invocation(target, "compute", (3,), {"factor": 2}, [])

        assert invocation.proceed() == 6
        assert target.calls == [3]

    def test_chain_runs_outermost_first(self):
        log = []
        target = Target()
        interceptors = [Recording("first", log), Recording("second", log)]

        result = Invocation(target, "compute", (2,), {}, interceptors).proceed()

        assert result == 2
        assert log == ["first:before", "second:before", "second:after", "first:after"]

    def test_interceptor_may_change_arguments(self):
        target = Target()

        assert Invocation(target, "compute", (5,), {}, [Doubling()]).proceed() == 10
        assert target.calls == [10]

    def test_interceptor_may_replace_return_value(self):
        class Override(Interceptor):
            def intercept(self, invocation):
                invocation.proceed()
                invocation.return_value = "overridden"

        assert Invocation(Target(), "compute", (1,), {}, [Override()]).proceed() == "overridden"

    def test_interceptor_may_short_circuit(self):
        class Block(Interceptor):
            def intercept(self, invocation):
                invocation.return_value = None

        target = Target()

        assert Invocation(target, "compute", (1,), {}, [Block()]).proceed() is None
        assert target.calls == []


class TestAsyncInterceptorAdapter:
    """Test bridging asynchronous interceptors."""

    def test_async_method_is_intercepted_after_suspension(self):
        """Test that proceeding works after the chain has already returned."""
        log = []
        target = Target()
        invocation = Invocation(
            target,
            "compute_async",
            (1,),
            {},
            [Recording("sync", log), AsyncInterceptorAdapter(AsyncRecording(log))],
        )

        awaitable = invocation.proceed()
        assert log == ["sync:before", "sync:after"]
        assert target.calls == []

        assert asyncio.run(awaitable) == 20
        assert log == ["sync:before", "sync:after", "async:before:compute_async", "async:after"]
        assert target.calls == [1]

    def test_inner_interceptors_run_after_async_interceptor_proceeds(self):
        log = []
        target = Target()
        invocation = Invocation(
            target,
            "compute_async",
            (1,),
            {},
            [AsyncInterceptorAdapter(AsyncRecording(log)), Doubling()],
        )

        assert asyncio.run(invocation.proceed()) == 30
        assert target.calls == [2]

    def test_sync_method_uses_synchronous_path(self):
        log = []
        interceptor = AsyncRecording(log)
        target = Target()

        result = Invocation(target, "compute", (4,), {}, [AsyncInterceptorAdapter(interceptor)]).proceed()

        assert result == 4
        assert log == []

    def test_bridge_resolves_interceptor_from_scope(self):
        interceptor = AsyncRecording([])
        scope = Mock()
        scope.resolve.return_value = interceptor

        adapter = AsyncInterceptorBridge(AsyncRecording)(scope)

        scope.resolve.assert_called_once_with(AsyncRecording)
        assert isinstance(adapter, AsyncInterceptorAdapter)
        assert adapter.interceptor is interceptor

    def test_bridges_are_equal_by_interceptor_type(self):
        assert AsyncInterceptorBridge(AsyncRecording) == AsyncInterceptorBridge(AsyncRecording)
