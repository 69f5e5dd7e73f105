import threading
from typing import Optional

from src.config.settings import settings
from src.dispatch.contexts.run_loop_context import RunLoopExecutionContext
from src.dispatch.domain.exceptions import ExecutionContextError
from src.dispatch.logging.structured_runtime_logger import StructuredRuntimeLogger


class SerialThreadExecutionContext(RunLoopExecutionContext):
    """
    Run loop backed by its own daemon thread, e.g. a background lane
    for network or storage completions.
    """

    def __init__(self, name: str, structured_logger: Optional[StructuredRuntimeLogger] = None):
        thread = threading.Thread(target=self.run_forever, name=f"context-{name}", daemon=True)
        super().__init__(name, owner=thread, structured_logger=structured_logger)
        self._thread = thread

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> "SerialThreadExecutionContext":
        self._thread.start()
        self.structured_logger.emit("CONTEXT_STARTED", context=self.name, thread=self._thread.name)
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        super().stop()
        if self.is_current() or not self._thread.is_alive():
            return
        self._thread.join(timeout=settings.CONTEXT_STOP_TIMEOUT_SECONDS if timeout is None else timeout)
        self.structured_logger.emit("CONTEXT_STOPPED", context=self.name, alive=self._thread.is_alive())

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until everything submitted so far has run. Not callable from the context itself."""
        if self.is_current():
            raise ExecutionContextError(f"flush() would deadlock on context {self.name!r}")
        drained = threading.Event()
        self.submit(drained.set)
        return drained.wait(timeout)

    def __enter__(self) -> "SerialThreadExecutionContext":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
