import functools
import inspect
import types
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from src.dispatch.domain.exceptions import (
    AmbiguousCapability,
    CapabilityNotProxied,
    CapabilityProxyError,
)

T = TypeVar("T")

DEFAULT_CALLBACK_PARAM = "completion"
_CALLBACK_MARKER = "__completion_callback__"
_UNMARKED = object()


def completion_callback(param: Optional[str]):
    """
    Names the completion parameter of one interface method, overriding the
    interface-wide default. `None` marks the method as synchronous.
    """
    def mark(function):
        setattr(function, _CALLBACK_MARKER, param)
        return function
    return mark


@dataclass(frozen=True)
class CapabilityMethod:
    name: str
    function: Callable[..., Any]
    signature: inspect.Signature
    callback_param: Optional[str] = None
    callback_index: Optional[int] = None

    @property
    def is_asynchronous(self) -> bool:
        return self.callback_param is not None

    def callback_from(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Optional[Callable[..., Any]]:
        if self.callback_param is None:
            return None
        if self.callback_param in kwargs:
            return kwargs[self.callback_param]
        if self.callback_index is not None and self.callback_index < len(args):
            return args[self.callback_index]
        return None

    def replace_callback(
        self,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
        wrap: Callable[[Callable[..., Any]], Callable[..., Any]],
    ) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        """
        Returns the call arguments with only the callback swapped for wrap(callback).
        A missing or None callback is left exactly as the caller passed it.
        """
        callback = self.callback_from(args, kwargs)
        if callback is None:
            return args, kwargs
        if self.callback_param in kwargs:
            return args, {**kwargs, self.callback_param: wrap(callback)}
        index = self.callback_index
        return args[:index] + (wrap(callback),) + args[index + 1:], kwargs


@dataclass(frozen=True)
class CapabilityProxy:
    """
    Forwarding description of one capability interface.
    bind() turns it into a concrete class that is both a decorator and the interface.
    """
    interface: type
    methods: Tuple[CapabilityMethod, ...]

    @classmethod
    def describe(cls, interface: type, callback: Optional[str] = DEFAULT_CALLBACK_PARAM) -> "CapabilityProxy":
        functions: Dict[str, Callable[..., Any]] = {}
        for klass in reversed(interface.__mro__):
            if klass is object:
                continue
            for name, member in vars(klass).items():
                if name.startswith("_"):
                    continue
                if inspect.isfunction(member):
                    functions[name] = member
                elif getattr(member, "__isabstractmethod__", False):
                    raise CapabilityProxyError(
                        f"{interface.__name__}.{name} is an abstract {type(member).__name__}; only methods can be forwarded"
                    )
                else:
                    functions.pop(name, None)

        uncovered = set(getattr(interface, "__abstractmethods__", ())) - set(functions)
        if uncovered:
            raise CapabilityProxyError(
                f"{interface.__name__} has abstract members that cannot be forwarded: {', '.join(sorted(uncovered))}"
            )

        methods = tuple(_describe_method(interface, name, fn, callback) for name, fn in sorted(functions.items()))
        return cls(interface=interface, methods=methods)

    def method(self, name: str) -> CapabilityMethod:
        for method in self.methods:
            if method.name == name:
                return method
        raise KeyError(name)

    def bind(self, decorator_cls: type) -> type:
        clashes = sorted(m.name for m in self.methods if hasattr(decorator_cls, m.name))
        if clashes:
            raise CapabilityProxyError(
                f"{self.interface.__name__} methods collide with {decorator_cls.__name__} members: {', '.join(clashes)}"
            )

        namespace: Dict[str, Any] = {m.name: _forwarder(m) for m in self.methods}
        namespace["__capability__"] = self.interface
        namespace["__module__"] = decorator_cls.__module__
        namespace["__doc__"] = decorator_cls.__doc__
        bound = types.new_class(
            f"{decorator_cls.__name__}[{self.interface.__name__}]",
            (decorator_cls, self.interface),
            exec_body=lambda ns: ns.update(namespace),
        )
        if getattr(bound, "__abstractmethods__", None):
            raise CapabilityProxyError(
                f"{bound.__name__} is still abstract: {', '.join(sorted(bound.__abstractmethods__))}"
            )
        return bound


def _describe_method(interface: type, name: str, function: Callable[..., Any], default_callback: Optional[str]) -> CapabilityMethod:
    full = inspect.signature(function)
    # Drop `self`; forwarders are called as bound methods
    parameters = list(full.parameters.values())[1:]
    signature = full.replace(parameters=parameters)

    marked = getattr(function, _CALLBACK_MARKER, _UNMARKED)
    if marked is _UNMARKED:
        param = default_callback if default_callback in signature.parameters else None
    elif marked is None:
        param = None
    elif marked in signature.parameters:
        param = marked
    else:
        raise CapabilityProxyError(f"{interface.__name__}.{name} has no parameter named {marked!r}")

    index = None
    if param is not None:
        kind = signature.parameters[param].kind
        if kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise CapabilityProxyError(f"{interface.__name__}.{name}: callback {param!r} cannot be variadic")
        if kind is not inspect.Parameter.KEYWORD_ONLY:
            index = list(signature.parameters).index(param)

    return CapabilityMethod(
        name=name,
        function=function,
        signature=signature,
        callback_param=param,
        callback_index=index,
    )


def _forwarder(method: CapabilityMethod) -> Callable[..., Any]:
    def forward(self, *args, **kwargs):
        return self.forward_call(method, args, kwargs)

    # updated=() keeps __isabstractmethod__ and markers off the forwarder
    return functools.update_wrapper(forward, method.function, updated=())


def _is_instance(obj: Any, interface: type) -> bool:
    try:
        return isinstance(obj, interface)
    except TypeError:
        # Non runtime-checkable Protocol
        return False


class CapabilityProxyRegistry:
    """
    Interfaces that decorators may stand in for.
    Decorating against an interface that was never registered is an error.
    """

    def __init__(self):
        self._proxies: Dict[type, CapabilityProxy] = {}
        self._bound: Dict[Tuple[type, type], type] = {}
        self._lock = RLock()

    def register(self, interface: type, callback: Optional[str] = DEFAULT_CALLBACK_PARAM) -> CapabilityProxy:
        proxy = CapabilityProxy.describe(interface, callback=callback)
        with self._lock:
            self._proxies[interface] = proxy
            for key in [key for key in self._bound if key[1] is interface]:
                del self._bound[key]
        return proxy

    def is_registered(self, interface: type) -> bool:
        with self._lock:
            return interface in self._proxies

    def interfaces(self) -> Tuple[type, ...]:
        with self._lock:
            return tuple(self._proxies)

    def get(self, interface: type) -> CapabilityProxy:
        with self._lock:
            proxy = self._proxies.get(interface)
        if proxy is None:
            raise CapabilityNotProxied(interface)
        return proxy

    def resolve_interface(self, decoratee: Any) -> type:
        carried = getattr(type(decoratee), "__capability__", None)
        if carried is not None:
            return carried

        candidates = [iface for iface in self.interfaces() if _is_instance(decoratee, iface)]
        most_specific = [
            iface for iface in candidates
            if not any(other is not iface and issubclass(other, iface) for other in candidates)
        ]
        if not most_specific:
            raise CapabilityNotProxied(type(decoratee))
        if len(most_specific) > 1:
            raise AmbiguousCapability(decoratee, most_specific)
        return most_specific[0]

    def bound_class(self, decorator_cls: type, interface: type) -> type:
        key = (decorator_cls, interface)
        with self._lock:
            bound = self._bound.get(key)
            if bound is None:
                bound = self.get(interface).bind(decorator_cls)
                self._bound[key] = bound
            return bound

    def create(self, decorator_cls: type, decoratee: Any, interface: Optional[type] = None, **options: Any) -> Any:
        interface = interface or self.resolve_interface(decoratee)
        return self.bound_class(decorator_cls, interface)(decoratee, **options)


default_registry = CapabilityProxyRegistry()


def capability(interface: Optional[type] = None, *, callback: Optional[str] = DEFAULT_CALLBACK_PARAM, registry: Optional[CapabilityProxyRegistry] = None):
    """
    Class decorator declaring a capability interface decoratable.
    Usable bare (@capability) or configured (@capability(callback="on_done")).
    """
    def register(cls):
        (registry or default_registry).register(cls, callback=callback)
        return cls

    if interface is not None:
        return register(interface)
    return register


def decorate(
    decorator_cls: type,
    decoratee: T,
    interface: Optional[Type[T]] = None,
    registry: Optional[CapabilityProxyRegistry] = None,
    **options: Any,
) -> T:
    return (registry or default_registry).create(decorator_cls, decoratee, interface=interface, **options)
