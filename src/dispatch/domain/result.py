from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class Result(Generic[V]):
    """
    Value-or-error outcome handed to a capability's completion callback.
    Decorators forward it as-is; only capabilities and their consumers read it.
    """
    value: Optional[V] = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, value: V) -> "Result[V]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result[V]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> V:
        if self.error is not None:
            raise self.error
        return self.value


# Shape of the terminal callback every capability method receives
Completion = Callable[[Result[Any]], None]
