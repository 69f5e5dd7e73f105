import logging
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

from src.dispatch.domain.exceptions import AuthenticationRequired
from src.dispatch.domain.result import Result
from src.dispatch.logging.structured_runtime_logger import StructuredRuntimeLogger
from src.dispatch.proxy.capability_proxy import CapabilityMethod
from src.dispatch.services.capability_decorator import CapabilityDecorator

T = TypeVar("T")


class AuthenticationDecorator(CapabilityDecorator[T]):
    """
    Refuses calls while no credential is available.

    A refused callback method completes once, synchronously on the calling
    thread, with Result.failure(AuthenticationRequired) unless a `denial`
    factory supplies another payload. A refused synchronous method raises.
    """

    def __init__(
        self,
        decoratee: T,
        credential_provider: Callable[[], Optional[str]],
        denial: Optional[Callable[[str], Any]] = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        super().__init__(decoratee)
        self._credential_provider = credential_provider
        self._denial = denial
        self._structured_logger = structured_logger or StructuredRuntimeLogger()

    def forward_call(self, method: CapabilityMethod, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        if self._credential_provider():
            return super().forward_call(method, args, kwargs)

        error = AuthenticationRequired(self.capability_name, method.name)
        self._structured_logger.emit(
            "CAPABILITY_DENIED",
            level=logging.WARNING,
            capability=self.capability_name,
            method=method.name,
        )
        if not method.is_asynchronous:
            raise error

        callback = method.callback_from(args, kwargs)
        if callback is not None:
            callback(self._denial(method.name) if self._denial else Result.failure(error))
        return None
