import asyncio
from typing import Callable

from src.dispatch.domain.exceptions import ExecutionContextStopped
from src.dispatch.interfaces.execution_context import ExecutionContext


class AsyncioExecutionContext(ExecutionContext):
    """
    Targets an asyncio event loop. Work runs as plain loop callbacks,
    in the order call_soon_threadsafe received them.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, name: str = "asyncio"):
        self._loop = loop
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def is_current(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def submit(self, work: Callable[[], None]) -> None:
        if self._loop.is_closed():
            raise ExecutionContextStopped(f"Event loop behind context {self._name!r} is closed")
        try:
            self._loop.call_soon_threadsafe(work)
        except RuntimeError as exc:
            # The loop may close between the check above and scheduling
            raise ExecutionContextStopped(f"Event loop behind context {self._name!r} is closed") from exc
