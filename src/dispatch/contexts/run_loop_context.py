import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from src.config.settings import settings
from src.dispatch.domain.exceptions import ExecutionContextError, ExecutionContextStopped
from src.dispatch.interfaces.execution_context import ExecutionContext
from src.dispatch.logging.structured_runtime_logger import StructuredRuntimeLogger


class RunLoopExecutionContext(ExecutionContext):
    """
    Serial run loop owned by a single thread.

    Any thread may submit work; only the owner thread drains it, either
    explicitly (run_pending / run_once / run_until) or by parking in
    run_forever until stop() is called. The owner defaults to the thread
    that constructs the context.
    """

    def __init__(
        self,
        name: str,
        owner: Optional[threading.Thread] = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self._name = name
        self._owner = owner or threading.current_thread()
        self._pending: Deque[Callable[[], None]] = deque()
        self._condition = threading.Condition()
        self._stopped = False
        self.structured_logger = structured_logger or StructuredRuntimeLogger()

    @property
    def name(self) -> str:
        return self._name

    @property
    def owner(self) -> threading.Thread:
        return self._owner

    @property
    def is_stopped(self) -> bool:
        with self._condition:
            return self._stopped

    def is_current(self) -> bool:
        return threading.current_thread() is self._owner

    def submit(self, work: Callable[[], None]) -> None:
        with self._condition:
            if self._stopped:
                raise ExecutionContextStopped(f"Execution context {self._name!r} is stopped")
            self._pending.append(work)
            self._condition.notify()

    def pending_count(self) -> int:
        with self._condition:
            return len(self._pending)

    def stop(self) -> None:
        with self._condition:
            self._stopped = True
            self._condition.notify_all()

    def run_once(self, timeout: Optional[float] = 0.0) -> bool:
        """
        Run the oldest queued item, waiting up to `timeout` seconds for one
        (None waits until work arrives or the context stops).
        Returns False when nothing ran.
        """
        self._require_owner("run_once")
        work = self._take(timeout)
        if work is None:
            return False
        self._run(work)
        return True

    def run_pending(self) -> int:
        self._require_owner("run_pending")
        executed = 0
        while True:
            work = self._take(0.0)
            if work is None:
                return executed
            self._run(work)
            executed += 1

    def run_until(self, predicate: Callable[[], bool], timeout: float) -> bool:
        self._require_owner("run_until")
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return predicate()
            work = self._take(min(remaining, settings.CONTEXT_POLL_INTERVAL_SECONDS))
            if work is not None:
                self._run(work)
        return True

    def run_forever(self) -> None:
        self._require_owner("run_forever")
        while not self.is_stopped:
            work = self._take(None)
            if work is not None:
                self._run(work)
        # Work accepted before stop() still runs
        self.run_pending()

    def _take(self, timeout: Optional[float]) -> Optional[Callable[[], None]]:
        with self._condition:
            if not self._pending and timeout != 0:
                self._condition.wait_for(lambda: self._pending or self._stopped, timeout)
            if not self._pending:
                return None
            return self._pending.popleft()

    def _run(self, work: Callable[[], None]) -> None:
        try:
            work()
        except Exception as exc:
            self.structured_logger.emit(
                "WORK_ITEM_FAILED",
                level=logging.ERROR,
                exc_info=True,
                context=self._name,
                error=repr(exc),
            )

    def _require_owner(self, operation: str) -> None:
        if not self.is_current():
            raise ExecutionContextError(
                f"{operation}() on context {self._name!r} must run on thread "
                f"{self._owner.name!r}, not {threading.current_thread().name!r}"
            )
