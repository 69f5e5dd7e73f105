import logging
import weakref
from functools import partial
from typing import Any, Callable, Optional, Type, TypeVar

from src.config.settings import settings
from src.dispatch.domain.callback_capture import CallbackCapture
from src.dispatch.interfaces.execution_context import ExecutionContext
from src.dispatch.logging.structured_runtime_logger import StructuredRuntimeLogger
from src.dispatch.proxy.capability_proxy import CapabilityMethod, CapabilityProxyRegistry, decorate
from src.dispatch.services.capability_decorator import CapabilityDecorator

T = TypeVar("T")


class DispatchDecorator(CapabilityDecorator[T]):
    """
    Delivers every completion of the decoratee on one execution context.

    Calls are forwarded untouched; only the callback is replaced by one that
    runs the caller's callback inline when the decoratee completes on the
    target context already, and submits it to the context otherwise.
    Payloads are passed through without being looked at.

    The context is shared and externally owned: the decorator never stops it.
    See CallbackCapture for what happens to completions that arrive after the
    decorator has been released.
    """

    def __init__(
        self,
        decoratee: T,
        context: ExecutionContext,
        capture: "CallbackCapture | str | None" = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        super().__init__(decoratee)
        self._context = context
        self._capture = CallbackCapture.parse(settings.CALLBACK_CAPTURE if capture is None else capture)
        self._structured_logger = structured_logger or StructuredRuntimeLogger()

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def capture(self) -> CallbackCapture:
        return self._capture

    def dispatch(self, action: Callable[[], None]) -> None:
        if self._context.is_current():
            action()
        else:
            self._context.submit(action)

    def wrap_completion(self, method: CapabilityMethod, callback: Callable[..., Any]) -> Callable[..., Any]:
        if self._capture is CallbackCapture.WEAK:
            return _weak_redispatch(
                weakref.ref(self), self.capability_name, method.name, callback, self._structured_logger
            )

        def redispatch(*payload, **extra):
            self.dispatch(partial(callback, *payload, **extra))

        return redispatch


def _weak_redispatch(
    decorator_ref: "weakref.ref[DispatchDecorator[Any]]",
    capability: str,
    method_name: str,
    callback: Callable[..., Any],
    structured_logger: StructuredRuntimeLogger,
) -> Callable[..., Any]:
    # Must not close over the decorator itself
    def redispatch(*payload, **extra):
        decorator = decorator_ref()
        if decorator is None:
            structured_logger.emit(
                "COMPLETION_DROPPED",
                level=logging.WARNING,
                capability=capability,
                method=method_name,
                reason="decorator released before completion",
            )
            return
        decorator.dispatch(partial(callback, *payload, **extra))

    return redispatch


def make_dispatch_decorator(
    decoratee: T,
    context: ExecutionContext,
    interface: Optional[Type[T]] = None,
    capture: "CallbackCapture | str | None" = None,
    registry: Optional[CapabilityProxyRegistry] = None,
    structured_logger: Optional[StructuredRuntimeLogger] = None,
) -> T:
    return decorate(
        DispatchDecorator,
        decoratee,
        interface=interface,
        registry=registry,
        context=context,
        capture=capture,
        structured_logger=structured_logger,
    )
