from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from src.dispatch.proxy.capability_proxy import CapabilityMethod

T = TypeVar("T")


class CapabilityDecorator(Generic[T]):
    """
    Common seam for cross-cutting decorators over a capability interface.

    A decorator class alone is not a T. The proxy registry derives a class
    that inherits from both the decorator and T and routes every interface
    method through forward_call(). Subclasses override wrap_completion() to
    intercept the callback path, or forward_call() to intercept the call.

    Subclasses keep instance state under leading-underscore names: public
    instance attributes would shadow the generated interface forwarders.
    """

    __capability__: Optional[type] = None

    def __init__(self, decoratee: T):
        self._decoratee = decoratee

    @property
    def decoratee(self) -> T:
        return self._decoratee

    @property
    def capability_name(self) -> str:
        if self.__capability__ is not None:
            return self.__capability__.__name__
        return type(self._decoratee).__name__

    def forward_call(self, method: CapabilityMethod, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        if method.is_asynchronous:
            args, kwargs = method.replace_callback(args, kwargs, lambda callback: self.wrap_completion(method, callback))
        return getattr(self._decoratee, method.name)(*args, **kwargs)

    def wrap_completion(self, method: CapabilityMethod, callback: Callable[..., Any]) -> Callable[..., Any]:
        return callback

    def __repr__(self) -> str:
        return f"<{type(self).__name__} over {self._decoratee!r}>"
