import threading
from typing import Optional

from src.config.settings import settings
from src.dispatch.contexts.run_loop_context import RunLoopExecutionContext

_LOCK = threading.Lock()
_MAIN_CONTEXT: Optional[RunLoopExecutionContext] = None


def main_context() -> RunLoopExecutionContext:
    """
    Process-wide run loop owned by the interpreter's main thread.
    Created on first use and never torn down; tests should build their own.
    """
    global _MAIN_CONTEXT
    with _LOCK:
        if _MAIN_CONTEXT is None:
            _MAIN_CONTEXT = RunLoopExecutionContext(settings.MAIN_CONTEXT_NAME, owner=threading.main_thread())
        return _MAIN_CONTEXT
