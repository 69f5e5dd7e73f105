import itertools
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from src.config.settings import settings
from src.dispatch.logging.structured_runtime_logger import StructuredRuntimeLogger
from src.dispatch.proxy.capability_proxy import CapabilityMethod
from src.dispatch.services.capability_decorator import CapabilityDecorator

T = TypeVar("T")


class LoggingDecorator(CapabilityDecorator[T]):
    """
    Emits one CAPABILITY_CALL per call and one CAPABILITY_COMPLETION each time
    the decoratee completes, tagged with the thread the completion arrived on.
    """

    def __init__(self, decoratee: T, structured_logger: Optional[StructuredRuntimeLogger] = None):
        super().__init__(decoratee)
        self._structured_logger = structured_logger or StructuredRuntimeLogger()
        self._call_ids = itertools.count(1)
        self._call_ids_lock = threading.Lock()

    def forward_call(self, method: CapabilityMethod, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        with self._call_ids_lock:
            call_id = next(self._call_ids)
        self._structured_logger.emit(
            "CAPABILITY_CALL",
            capability=self.capability_name,
            method=method.name,
            call_id=call_id,
            thread=threading.current_thread().name,
        )
        if method.is_asynchronous:
            started = time.monotonic()
            args, kwargs = method.replace_callback(
                args, kwargs, lambda callback: self._logged(method, call_id, started, callback)
            )
        return getattr(self.decoratee, method.name)(*args, **kwargs)

    def _logged(self, method: CapabilityMethod, call_id: int, started: float, callback: Callable[..., Any]) -> Callable[..., Any]:
        def completion(*payload, **extra):
            fields: Dict[str, Any] = {
                "capability": self.capability_name,
                "method": method.name,
                "call_id": call_id,
                "thread": threading.current_thread().name,
                "elapsed_ms": round((time.monotonic() - started) * 1000.0, 3),
            }
            if settings.LOG_RESULT_PAYLOADS:
                fields["payload"] = payload[0] if len(payload) == 1 else payload
            self._structured_logger.emit("CAPABILITY_COMPLETION", **fields)
            callback(*payload, **extra)

        return completion
