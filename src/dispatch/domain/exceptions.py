class RedispatchError(Exception):
    """Base class for errors raised by the redispatch layer itself."""
    pass


class CapabilityProxyError(RedispatchError):
    """Raised when an interface cannot be given a forwarding proxy."""
    pass


class CapabilityNotProxied(RedispatchError):
    """Raised when decorating against an interface that has no registered proxy."""

    def __init__(self, interface):
        name = getattr(interface, "__name__", repr(interface))
        super().__init__(f"No capability proxy registered for {name}")
        self.interface = interface


class AmbiguousCapability(RedispatchError):
    """Raised when a decoratee matches more than one registered interface."""

    def __init__(self, decoratee, candidates):
        names = ", ".join(sorted(c.__name__ for c in candidates))
        super().__init__(
            f"{type(decoratee).__name__} implements several capabilities ({names}); pass interface= explicitly"
        )
        self.candidates = tuple(candidates)


class ExecutionContextError(RedispatchError):
    """Raised when an execution context is driven from the wrong thread."""
    pass


class ExecutionContextStopped(ExecutionContextError):
    """Raised when work is submitted to a context that no longer runs."""
    pass


class AuthenticationRequired(RedispatchError):
    """Delivered (or raised) when a call is attempted without a credential."""

    def __init__(self, capability: str, method: str):
        super().__init__(f"Authentication required for {capability}.{method}")
        self.capability = capability
        self.method = method
