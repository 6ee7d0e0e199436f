"""
Lifetime scopes.

A scope resolves services against a built registry and owns the instances
it shares. Scopes form a tree rooted at the container's root scope; each
registration's lifetime decides which scope in the chain from the
requesting scope up to the root holds its shared instance.
"""
import inspect
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from command_handlers.domain.contracts import describe, is_handler_contract
from command_handlers.domain.exceptions import ScopeResolutionError
from command_handlers.domain.lifetime import REQUEST_SCOPE_TAG, Lifetime
from command_handlers.domain.ports.registry_port import DecoratorContext, ScopePort
from command_handlers.infrastructure.di.components.service_registry import ServiceRegistry
from command_handlers.infrastructure.di.exceptions import (
    CircularDependencyError,
    DependencyResolutionError,
    FactoryError,
    InstantiationError,
    UnregisteredDependencyError,
    UntypedParameterError,
)
from command_handlers.infrastructure.di.proxy import create_interface_proxy
from command_handlers.infrastructure.di.registration import ComponentRegistration
from command_handlers.infrastructure.logging.logger import get_logger

T = TypeVar("T")
logger = get_logger(__name__)

ROOT_SCOPE_TAG = "root"


@contextmanager
def timed_operation(operation_name: str) -> Iterator[None]:
    """Context manager to time and log an operation."""
    start_time = time.time()
    try:
        yield
    finally:
        elapsed_time = time.time() - start_time
        logger.debug(f"{operation_name} completed in {elapsed_time:.4f}s")


@dataclass(frozen=True)
class OwnedScopeTag:
    """Tag of the scope created for an owned resolution of a service."""

    owner: Any


class Owned(Generic[T]):
    """A resolved value together with the scope that owns it and its dependencies."""

    def __init__(self, value: T, scope: "LifetimeScope"):
        self.value = value
        self.scope = scope

    def dispose(self) -> None:
        self.scope.close()

    async def adispose(self) -> None:
        await self.scope.aclose()

    def __enter__(self) -> T:
        return self.value

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    async def __aenter__(self) -> T:
        return self.value

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.adispose()


class LifetimeScope(ScopePort):
    """A node in the scope tree: resolves services and owns shared instances."""

    def __init__(
        self,
        registry: ServiceRegistry,
        parent: Optional["LifetimeScope"] = None,
        tag: Optional[Hashable] = None,
    ):
        self._registry = registry
        self._parent = parent
        self.tag = ROOT_SCOPE_TAG if parent is None and tag is None else tag
        self._components: Dict[int, Any] = {}
        self._shared: Dict[Tuple[int, Any], Any] = {}
        self._disposables: List[Any] = []
        self._lock = threading.RLock()
        self._disposed = False

    @property
    def parent(self) -> Optional["LifetimeScope"]:
        return self._parent

    @property
    def root(self) -> "LifetimeScope":
        scope = self
        while scope._parent is not None:
            scope = scope._parent
        return scope

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def begin_scope(self, tag: Optional[Hashable] = None) -> "LifetimeScope":
        """Start a nested scope, optionally tagged."""
        self._ensure_active()
        logger.debug(f"Beginning scope {tag!r} under {self.tag!r}")
        return LifetimeScope(self._registry, self, tag)

    def resolve(self, service: Any) -> Any:
        """
        Resolve a fully composed instance of a service.

        Raises:
            UnregisteredDependencyError: If nothing supplies the service
            ScopeResolutionError: If the registration's sharing scope is not visible
            DependencyResolutionError: If the component or a dependency cannot be created
        """
        return self._resolve(service, ())

    def resolve_owned(self, service: Any) -> Owned:
        """Resolve a service in a new scope owned by the returned value."""
        scope = self.begin_scope(OwnedScopeTag(service))
        try:
            return Owned(scope.resolve(service), scope)
        except Exception:
            scope.close()
            raise

    def is_registered(self, service: Any) -> bool:
        return service in (LifetimeScope, ScopePort) or self._registry.is_registered(service)

    def close(self) -> None:
        """Dispose instances owned by this scope, most recently created first."""
        disposables = self._release()
        first_error: Optional[BaseException] = None
        for instance in disposables:
            close = getattr(instance, "close", None)
            if not callable(close) or inspect.iscoroutinefunction(close):
                logger.warning(f"{type(instance).__name__} requires async disposal; use aclose()")
                continue
            try:
                close()
            except Exception as e:
                logger.error(f"Failed to dispose {type(instance).__name__}: {str(e)}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    async def aclose(self) -> None:
        """Dispose instances owned by this scope, awaiting async disposal."""
        disposables = self._release()
        first_error: Optional[BaseException] = None
        for instance in disposables:
            close = getattr(instance, "aclose", None) or getattr(instance, "close", None)
            try:
                result = close()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Failed to dispose {type(instance).__name__}: {str(e)}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    def __enter__(self) -> "LifetimeScope":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    async def __aenter__(self) -> "LifetimeScope":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _release(self) -> List[Any]:
        with self._lock:
            if self._disposed:
                return []
            self._disposed = True
            disposables = list(reversed(self._disposables))
            self._disposables.clear()
            self._components.clear()
            self._shared.clear()
        logger.debug(f"Disposing scope {self.tag!r} ({len(disposables)} disposable instances)")
        return disposables

    def _ensure_active(self) -> None:
        if self._disposed:
            raise ScopeResolutionError(f"Scope {self.tag!r} has been disposed", {"tag": self.tag})

    def _resolve(
        self,
        service: Any,
        chain: Tuple[Any, ...],
        parent_type: Optional[Any] = None,
        parameter_name: Optional[str] = None,
    ) -> Any:
        self._ensure_active()
        if service in (LifetimeScope, ScopePort):
            return self
        if service in chain:
            raise CircularDependencyError(chain + (service,))
        chain = chain + (service,)

        registration = self._registry.default_for(service)
        if registration is not None:
            return self._resolve_registration(registration, service, chain)

        adapter = self._registry.adapter_for(service)
        if adapter is not None:
            return adapter.adapter(self._resolve(adapter.source, chain))

        if self._can_autowire(service):
            logger.debug(f"{describe(service)} not registered, attempting direct creation")
            return self._activate(service, chain)

        raise UnregisteredDependencyError(service, parent_type, parameter_name)

    def _resolve_registration(self, registration: ComponentRegistration, service: Any, chain: Tuple[Any, ...]) -> Any:
        owner = self._sharing_scope(registration)
        if owner is None:
            return self._compose(registration, service, chain, share=False)
        return owner._shared_instance(registration, service, chain)

    def _shared_instance(self, registration: ComponentRegistration, service: Any, chain: Tuple[Any, ...]) -> Any:
        key = (registration.id, service)
        with self._lock:
            self._ensure_active()
            if key not in self._shared:
                self._shared[key] = self._compose(registration, service, chain, share=True)
            return self._shared[key]

    def _sharing_scope(self, registration: ComponentRegistration) -> Optional["LifetimeScope"]:
        """Get the scope holding the shared instance of a registration, None for no sharing."""
        spec = registration.lifetime
        lifetime = spec.lifetime
        if lifetime is Lifetime.SINGLE_INSTANCE:
            return self.root
        if lifetime is Lifetime.PER_SCOPE:
            return self
        if lifetime is Lifetime.PER_DEPENDENCY:
            return None
        if lifetime is Lifetime.PER_REQUEST:
            # Outside a request scope every resolution gets its own instance.
            return self._find_scope(lambda tag: tag == REQUEST_SCOPE_TAG)
        if lifetime is Lifetime.PER_MATCHING_SCOPE:
            scope = self._find_scope(lambda tag: tag in spec.tags)
            if scope is None:
                raise ScopeResolutionError(
                    f"No scope tagged {', '.join(map(repr, spec.tags))} is visible from scope {self.tag!r} "
                    f"where {registration.name} was requested",
                    {"registration": registration.name, "tags": spec.tags},
                )
            return scope
        if lifetime is Lifetime.PER_OWNER:
            owner_tag = OwnedScopeTag(spec.owner)
            scope = self._find_scope(lambda tag: tag == owner_tag)
            if scope is None:
                raise ScopeResolutionError(
                    f"{registration.name} is shared per owner {describe(spec.owner)} and must be "
                    f"resolved within an owned resolution of it",
                    {"registration": registration.name, "owner": spec.owner},
                )
            return scope
        raise ScopeResolutionError(f"Unknown lifetime {lifetime!r}")

    def _find_scope(self, predicate: Callable[[Any], bool]) -> Optional["LifetimeScope"]:
        scope: Optional[LifetimeScope] = self
        while scope is not None:
            if predicate(scope.tag):
                return scope
            scope = scope._parent
        return None

    def _compose(self, registration: ComponentRegistration, service: Any, chain: Tuple[Any, ...], share: bool) -> Any:
        component = self._components.get(registration.id) if share else None
        if component is None:
            component = self._create(registration, chain)
            if registration.interface_interception_enabled and registration.interceptors:
                interceptors = [self._interceptor(reference, chain) for reference in registration.interceptors]
                component = create_interface_proxy(component, registration.services, interceptors)
            if share:
                self._components[registration.id] = component
        return self._decorate(registration, service, component, chain)

    def _create(self, registration: ComponentRegistration, chain: Tuple[Any, ...]) -> Any:
        if registration.has_instance:
            return registration.instance
        if registration.factory is not None:
            try:
                instance = registration.factory(self)
            except DependencyResolutionError:
                raise
            except Exception as e:
                logger.error(f"Factory for {registration.name} failed: {str(e)}")
                raise FactoryError(registration.name, f"factory failed: {str(e)}", cause=e) from e
            self._track(instance)
            return instance
        return self._activate(registration.implementation_type, chain)

    def _interceptor(self, reference: Any, chain: Tuple[Any, ...]) -> Any:
        if isinstance(reference, type):
            interceptor = self._resolve(reference, chain)
        elif callable(reference):
            interceptor = reference(self)
        else:
            interceptor = reference
        if not callable(getattr(interceptor, "intercept", None)):
            raise DependencyResolutionError(
                reference,
                "is not an interceptor; attach asynchronous interceptors through AsyncInterceptorBridge",
            )
        return interceptor

    def _decorate(self, registration: ComponentRegistration, service: Any, instance: Any, chain: Tuple[Any, ...]) -> Any:
        decorators = self._registry.decorators_for(service)
        if not decorators:
            return instance
        context = DecoratorContext(
            implementation_type=registration.implementation_type or type(registration.instance),
            service_type=service,
            current_instance=instance,
        )
        for decorator_registration, decorator_type in decorators:
            if decorator_registration.condition is not None and not decorator_registration.condition(context):
                continue
            instance = self._activate(
                decorator_type, chain, overrides={decorator_registration.wrapped_parameter: instance}
            )
            context.applied_decorator_types.append(decorator_type)
            context.applied_decorators.append(instance)
            context.current_instance = instance
        return instance

    def _activate(self, cls: Any, chain: Tuple[Any, ...], overrides: Optional[Dict[str, Any]] = None) -> Any:
        """
        Create an instance of a class, resolving constructor dependencies from this scope.

        Args:
            cls: Class, or a subscripted generic alias of one
            chain: Services being resolved, to detect circular dependencies
            overrides: Constructor arguments supplied directly

        Raises:
            DependencyResolutionError: If dependencies cannot be resolved
        """
        target = get_origin(cls) or cls
        class_name = describe(cls)

        with timed_operation(f"Create instance of {class_name}"):
            try:
                signature = inspect.signature(target.__init__)
            except (ValueError, TypeError) as e:
                raise InstantiationError(cls, f"Failed to get constructor signature: {str(e)}", cause=e) from e
            try:
                hints = get_type_hints(target.__init__)
            except Exception:
                hints = {}

            kwargs: Dict[str, Any] = {}
            for name, param in list(signature.parameters.items())[1:]:
                if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                    continue
                if overrides and name in overrides:
                    kwargs[name] = overrides[name]
                    continue
                annotation = hints.get(name, param.annotation)
                if annotation is inspect.Parameter.empty or isinstance(annotation, (str, TypeVar)):
                    if param.default is not inspect.Parameter.empty:
                        continue
                    raise UntypedParameterError(cls, name)
                annotation, optional = _unwrap_optional(annotation)
                try:
                    kwargs[name] = self._resolve(annotation, chain, cls, name)
                except UnregisteredDependencyError as e:
                    if e.dependency_type != annotation:
                        raise
                    if param.default is not inspect.Parameter.empty:
                        continue
                    if optional:
                        kwargs[name] = None
                        continue
                    raise

            try:
                instance = cls(**kwargs)
            except Exception as e:
                logger.error(f"Failed to instantiate {class_name} with resolved dependencies: {str(e)}")
                raise InstantiationError(cls, f"Failed to instantiate: {str(e)}", cause=e) from e

        self._track(instance)
        return instance

    def _track(self, instance: Any) -> None:
        if instance is self:
            return
        if callable(getattr(instance, "close", None)) or callable(getattr(instance, "aclose", None)):
            with self._lock:
                self._disposables.append(instance)

    @staticmethod
    def _can_autowire(service: Any) -> bool:
        return (
            isinstance(service, type)
            and service.__module__ != "builtins"
            and not inspect.isabstract(service)
            and not is_handler_contract(service)
        )

    def __repr__(self) -> str:
        return f"LifetimeScope(tag={self.tag!r}, parent={self._parent.tag if self._parent else None!r})"


def _unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split Optional[X] into (X, True); other annotations into (annotation, False)."""
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1 and len(get_args(annotation)) == 2:
            return args[0], True
    return annotation, False
