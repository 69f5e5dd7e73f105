from src.dispatch.contexts.asyncio_context import AsyncioExecutionContext
from src.dispatch.contexts.main_context import main_context
from src.dispatch.contexts.run_loop_context import RunLoopExecutionContext
from src.dispatch.contexts.serial_thread_context import SerialThreadExecutionContext
from src.dispatch.domain.callback_capture import CallbackCapture
from src.dispatch.domain.exceptions import (
    AmbiguousCapability,
    AuthenticationRequired,
    CapabilityNotProxied,
    CapabilityProxyError,
    ExecutionContextError,
    ExecutionContextStopped,
    RedispatchError,
)
from src.dispatch.domain.result import Completion, Result
from src.dispatch.interfaces.execution_context import ExecutionContext
from src.dispatch.proxy.capability_proxy import (
    CapabilityProxy,
    CapabilityProxyRegistry,
    capability,
    completion_callback,
    decorate,
    default_registry,
)
from src.dispatch.services.authentication_decorator import AuthenticationDecorator
from src.dispatch.services.capability_decorator import CapabilityDecorator
from src.dispatch.services.decorator_chain import DecoratorChain, describe_chain, unwrap
from src.dispatch.services.dispatch_decorator import DispatchDecorator, make_dispatch_decorator
from src.dispatch.services.logging_decorator import LoggingDecorator

__all__ = [
    "AmbiguousCapability",
    "AsyncioExecutionContext",
    "AuthenticationDecorator",
    "AuthenticationRequired",
    "CallbackCapture",
    "CapabilityDecorator",
    "CapabilityNotProxied",
    "CapabilityProxy",
    "CapabilityProxyError",
    "CapabilityProxyRegistry",
    "Completion",
    "DecoratorChain",
    "DispatchDecorator",
    "ExecutionContext",
    "ExecutionContextError",
    "ExecutionContextStopped",
    "LoggingDecorator",
    "RedispatchError",
    "Result",
    "RunLoopExecutionContext",
    "SerialThreadExecutionContext",
    "capability",
    "completion_callback",
    "decorate",
    "default_registry",
    "describe_chain",
    "main_context",
    "make_dispatch_decorator",
    "unwrap",
]
