from enum import Enum


class CallbackCapture(Enum):
    """
    How a pending callback refers back to the decorator that will redispatch it.

    STRONG: the pending callback owns the decorator until it has run, so a
    completion is always delivered even if every caller released the decorator.

    WEAK: the pending callback holds a weak reference only. Releasing the
    decorator before the decoratee completes drops that completion: the
    caller's callback never runs and no error is raised.
    """
    STRONG = "strong"
    WEAK = "weak"

    @classmethod
    def parse(cls, value: "str | CallbackCapture") -> "CallbackCapture":
        if isinstance(value, CallbackCapture):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown callback capture policy: {value!r}") from None
