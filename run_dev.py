import logging
import os
import sys
import threading
from abc import ABC, abstractmethod

# Ensure project root is in python path
sys.path.append(os.path.dirname(__file__))

from src.config.settings import settings
from src.dispatch.contexts.main_context import main_context
from src.dispatch.contexts.serial_thread_context import SerialThreadExecutionContext
from src.dispatch.domain.result import Completion, Result
from src.dispatch.interfaces.execution_context import ExecutionContext
from src.dispatch.proxy.capability_proxy import capability
from src.dispatch.services.decorator_chain import DecoratorChain, describe_chain
from src.dispatch.services.dispatch_decorator import DispatchDecorator
from src.dispatch.services.logging_decorator import LoggingDecorator


@capability
class ProfileLookup(ABC):
    @abstractmethod
    def fetch_profile(self, user_id: str, completion: Completion) -> None:
        pass


class InMemoryProfileLookup(ProfileLookup):
    """Completes on a background lane, the way a network client would."""

    def __init__(self, network: ExecutionContext):
        self.network = network
        self.profiles = {"123": "Ada Lovelace", "456": "Alan Turing"}

    def fetch_profile(self, user_id: str, completion: Completion) -> None:
        def respond():
            if user_id in self.profiles:
                completion(Result.ok(self.profiles[user_id]))
            else:
                completion(Result.failure(KeyError(user_id)))

        self.network.submit(respond)


def main():
    logging.basicConfig(level=logging.INFO, format="%(threadName)s %(message)s")
    print("Initializing DEV environment...")

    # 1. Contexts
    ui = main_context()
    network = SerialThreadExecutionContext("network").start()

    # 2. Assembly: logging inside, threading outside
    lookup = (
        DecoratorChain(ProfileLookup)
        .add(LoggingDecorator)
        .add(DispatchDecorator, context=ui)
        .apply(InMemoryProfileLookup(network))
    )
    print(f"Assembled: {' -> '.join(describe_chain(lookup))}")

    # 3. Consumer assumes every completion lands on the UI loop
    received = []

    def render(result: Result) -> None:
        if not ui.is_current():
            print(f"[warn] completion arrived off {ui.name} on {threading.current_thread().name}")
        status = result.value if result.is_success else f"error: {result.error!r}"
        print(f"[{settings.MAIN_CONTEXT_NAME}] {status}")
        received.append(result)

    for user_id in ("123", "456", "789"):
        lookup.fetch_profile(user_id, render)

    ui.run_until(lambda: len(received) == 3, timeout=2.0)
    network.stop()
    print("Dev run complete.")


if __name__ == "__main__":
    main()
