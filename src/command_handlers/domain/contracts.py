"""
Handler contract introspection.

Python erases generic arguments at runtime except on the class objects that
were declared with subscripted bases. These helpers walk ``__orig_bases__``
through the whole class hierarchy, substituting type variables through
generic intermediate classes, to find which closed contract shapes a class
implements (``CommandHandler[Ping]``) or which open bindings a generic
template carries (``CommandHandler[TCommand]``).
"""
import inspect
from typing import (
    Any,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

from command_handlers.domain.handlers import HANDLER_CONTRACTS, CommandHandlerBase


def iter_generic_bases(cls: type, bindings: Optional[Dict[Any, Any]] = None) -> Iterator[Tuple[type, Tuple[Any, ...]]]:
    """
    Yield every subscripted base of a class as (origin, arguments).

    Args:
        cls: Class to inspect
        bindings: Type variable substitutions inherited from a subclass

    Yields:
        Origin class and its arguments with known type variables substituted
    """
    bindings = bindings or {}
    for base in cls.__dict__.get("__orig_bases__", cls.__bases__):
        origin = get_origin(base) or base
        if not isinstance(origin, type) or origin in (object, Generic) or origin is Protocol:
            continue
        args = tuple(substitute(arg, bindings) for arg in get_args(base))
        if args:
            yield origin, args
        parameters = getattr(origin, "__parameters__", ())
        yield from iter_generic_bases(origin, dict(zip(parameters, args)))


def substitute(arg: Any, bindings: Dict[Any, Any]) -> Any:
    """Replace type variables inside a type argument using the given bindings."""
    if isinstance(arg, TypeVar):
        return bindings.get(arg, arg)
    parameters = getattr(arg, "__parameters__", ())
    if parameters and get_origin(arg) is not None:
        return arg[tuple(bindings.get(p, p) for p in parameters)]
    return arg


def is_closed(arg: Any) -> bool:
    """Whether a type argument contains no free type variables."""
    if isinstance(arg, TypeVar):
        return False
    return all(is_closed(inner) for inner in get_args(arg))


def contract_bindings(cls: type, contract: type) -> List[Tuple[Any, ...]]:
    """Return every argument tuple with which a class implements an open contract."""
    found: List[Tuple[Any, ...]] = []
    for origin, args in iter_generic_bases(cls):
        if origin is contract and args not in found:
            found.append(args)
    return found


def closed_contracts_of(cls: type, contract: type) -> List[Any]:
    """
    Get the closed shapes of an open contract that a class implements.

    Args:
        cls: Implementation class
        contract: Open contract, e.g. CommandHandler

    Returns:
        Subscripted contract aliases in declaration order
    """
    return [
        contract[args] for args in contract_bindings(cls, contract) if all(is_closed(arg) for arg in args)
    ]


def open_contract_of(service: Any) -> Optional[type]:
    """Return the open handler contract of a service key, if it is one."""
    origin = get_origin(service) or service
    return origin if origin in HANDLER_CONTRACTS else None


def is_handler_contract(service: Any) -> bool:
    """
    Whether a service key is a handler abstraction rather than an implementation.

    Closed shapes (``CommandHandler[Ping]``) and abstract subclasses of the
    handler base qualify; concrete implementation classes do not.
    """
    origin = get_origin(service)
    if origin is not None:
        return isinstance(origin, type) and issubclass(origin, CommandHandlerBase) and inspect.isabstract(origin)
    return isinstance(service, type) and issubclass(service, CommandHandlerBase) and inspect.isabstract(service)


def describe(service: Any) -> str:
    """Readable name for a class or a subscripted alias."""
    origin = get_origin(service)
    if origin is not None:
        return f"{describe(origin)}[{', '.join(describe(arg) for arg in get_args(service))}]"
    return getattr(service, "__qualname__", None) or getattr(service, "__name__", None) or repr(service)


def find_wrapped_parameter(decorator: type) -> Optional[str]:
    """
    Find the constructor parameter a handler decorator receives its inner handler through.

    The parameter is the first one annotated with a handler contract,
    either an open/closed contract alias or a type variable bound to one.
    """
    init = decorator.__init__
    try:
        hints = get_type_hints(init)
    except Exception:
        hints = getattr(init, "__annotations__", {})
    for name in list(inspect.signature(init).parameters)[1:]:
        annotation = hints.get(name)
        if annotation is None:
            continue
        if isinstance(annotation, TypeVar):
            annotation = annotation.__bound__
        if open_contract_of(annotation) is not None or is_handler_contract(annotation):
            return name
    return None


def unify(pattern: Tuple[Any, ...], actual: Tuple[Any, ...]) -> Optional[Dict[Any, Any]]:
    """
    Match contract arguments containing type variables against closed arguments.

    Returns:
        Type variable bindings, or None when the arguments cannot match
    """
    if len(pattern) != len(actual):
        return None
    bindings: Dict[Any, Any] = {}
    for expected, value in zip(pattern, actual):
        if isinstance(expected, TypeVar):
            if bindings.setdefault(expected, value) != value:
                return None
        elif expected != value:
            return None
    return bindings
