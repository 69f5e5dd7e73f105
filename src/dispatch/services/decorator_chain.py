from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from src.dispatch.proxy.capability_proxy import CapabilityProxyRegistry, default_registry
from src.dispatch.services.capability_decorator import CapabilityDecorator

T = TypeVar("T")


class DecoratorChain(Generic[T]):
    """
    Ordered stack of decorators over one capability interface.

    Layers are listed innermost first: the first added wraps the real
    service, the last added is what callers talk to. Completions travel
    back through the layers in the same innermost-first order, so a
    concern added after a DispatchDecorator already observes callbacks on
    that decorator's context.
    """

    def __init__(self, interface: Type[T], registry: Optional[CapabilityProxyRegistry] = None):
        self.registry = registry or default_registry
        # Fail at assembly time rather than on first apply()
        self.registry.get(interface)
        self.interface = interface
        self._layers: List[Tuple[type, Dict[str, Any]]] = []

    def add(self, decorator_cls: type, **options: Any) -> "DecoratorChain[T]":
        self.registry.bound_class(decorator_cls, self.interface)
        self._layers.append((decorator_cls, options))
        return self

    @property
    def layers(self) -> Tuple[type, ...]:
        return tuple(decorator_cls for decorator_cls, _ in self._layers)

    def apply(self, decoratee: T) -> T:
        decorated = decoratee
        for decorator_cls, options in self._layers:
            decorated = self.registry.create(decorator_cls, decorated, interface=self.interface, **options)
        return decorated


def unwrap(decorated: Any) -> Any:
    """The undecorated implementation underneath any number of decorators."""
    current = decorated
    while isinstance(current, CapabilityDecorator):
        current = current.decoratee
    return current


def describe_chain(decorated: Any) -> List[str]:
    """Decorator class names, outermost first."""
    names = []
    current = decorated
    while isinstance(current, CapabilityDecorator):
        names.append(type(current).__name__)
        current = current.decoratee
    return names
