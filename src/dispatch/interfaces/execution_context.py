from abc import ABC, abstractmethod
from typing import Callable


class ExecutionContext(ABC):
    """
    One logical serial lane of execution (e.g. the UI thread).

    Implementations must make both operations safe to call concurrently from
    any thread. Work submitted to the same context runs in submission order,
    one item at a time.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def is_current(self) -> bool:
        """True iff the caller is already running inside this context. Never blocks."""
        pass

    @abstractmethod
    def submit(self, work: Callable[[], None]) -> None:
        """Enqueue `work` to run later inside this context. Returns immediately."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
