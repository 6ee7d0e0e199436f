"""Interface proxies routing contract method calls through interceptors."""
import functools
import types
from typing import Any, Iterable, Sequence, Tuple, get_origin

from command_handlers.application.interception import Interceptor, Invocation


class InterfaceProxy:
    """
    Base of generated proxies.

    A proxy subclasses the open contracts of its target, so it satisfies the
    same isinstance checks. Contract methods go through the interceptor
    chain; any other attribute is read from the target.
    """

    def __init__(self, target: Any, interceptors: Sequence[Interceptor]):
        self._proxy_target = target
        self._proxy_interceptors = tuple(interceptors)

    @property
    def proxy_target(self) -> Any:
        return self._proxy_target

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_proxy_"):
            raise AttributeError(name)
        return getattr(self._proxy_target, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} for {self._proxy_target!r}>"


def _intercepted(name: str) -> Any:
    def method(self: InterfaceProxy, *args: Any, **kwargs: Any) -> Any:
        invocation = Invocation(self._proxy_target, name, args, kwargs, self._proxy_interceptors)
        return invocation.proceed()

    method.__name__ = name
    return method


@functools.lru_cache(maxsize=None)
def _proxy_type(target_type: type, contracts: Tuple[type, ...]) -> type:
    method_names = sorted({name for contract in contracts for name in getattr(contract, "__abstractmethods__", ())})

    def body(namespace: dict) -> None:
        namespace["__module__"] = __name__
        for name in method_names:
            namespace[name] = _intercepted(name)

    return types.new_class(f"{target_type.__name__}Proxy", (InterfaceProxy,) + contracts, exec_body=body)


def create_interface_proxy(target: Any, services: Iterable[Any], interceptors: Sequence[Interceptor]) -> Any:
    """
    Wrap a component in a proxy exposing its contract services.

    Args:
        target: Component instance
        services: Service keys of the registration; classes and closed generic aliases
        interceptors: Chain, outermost first
    """
    contracts = tuple(
        dict.fromkeys(
            origin
            for origin in (get_origin(service) or service for service in services)
            if isinstance(origin, type) and getattr(origin, "__abstractmethods__", None)
        )
    )
    return _proxy_type(type(target), contracts)(target, interceptors)
