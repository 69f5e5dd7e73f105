import asyncio
import logging
import threading
import time

import pytest

from src.dispatch.contexts.asyncio_context import AsyncioExecutionContext
from src.dispatch.contexts.main_context import main_context
from src.dispatch.contexts.run_loop_context import RunLoopExecutionContext
from src.dispatch.contexts.serial_thread_context import SerialThreadExecutionContext
from src.dispatch.domain.exceptions import ExecutionContextError, ExecutionContextStopped
from src.dispatch.tests.harness.capability_doubles import RecordingStructuredLogger


def _run_on_thread(target) -> None:
    thread = threading.Thread(target=target)
    thread.start()
    thread.join(timeout=2.0)
    assert not thread.is_alive()


# --- RunLoopExecutionContext ---

def test_run_loop_is_current_only_on_owner_thread():
    context = RunLoopExecutionContext("main")
    seen = []

    _run_on_thread(lambda: seen.append(context.is_current()))

    assert context.is_current() is True
    assert seen == [False]


def test_run_loop_runs_work_in_submission_order():
    context = RunLoopExecutionContext("main")
    order = []

    def submit_batch():
        for i in range(5):
            context.submit(lambda i=i: order.append(i))

    _run_on_thread(submit_batch)
    assert order == []

    assert context.run_pending() == 5
    assert order == [0, 1, 2, 3, 4]


def test_run_loop_runs_work_submitted_while_draining_after_queued_work():
    context = RunLoopExecutionContext("main")
    order = []

    def first():
        order.append("first")
        context.submit(lambda: order.append("nested"))

    context.submit(first)
    context.submit(lambda: order.append("second"))

    assert context.run_pending() == 3
    assert order == ["first", "second", "nested"]


def test_run_loop_rejects_draining_from_other_thread():
    context = RunLoopExecutionContext("main")
    errors = []

    def drain():
        try:
            context.run_pending()
        except ExecutionContextError as exc:
            errors.append(exc)

    _run_on_thread(drain)

    assert len(errors) == 1
    assert "main" in str(errors[0])


def test_run_loop_rejects_submit_after_stop():
    context = RunLoopExecutionContext("main")
    context.stop()

    with pytest.raises(ExecutionContextStopped):
        context.submit(lambda: None)


def test_run_loop_logs_failing_work_and_keeps_going():
    structured_logger = RecordingStructuredLogger()
    context = RunLoopExecutionContext("main", structured_logger=structured_logger)
    ran = []

    def explode():
        raise RuntimeError("Boom")

    context.submit(explode)
    context.submit(lambda: ran.append("after"))

    assert context.run_pending() == 2
    assert ran == ["after"]
    failures = structured_logger.of_type("WORK_ITEM_FAILED")
    assert len(failures) == 1
    assert failures[0]["level"] == logging.ERROR
    assert failures[0]["context"] == "main"
    assert "Boom" in failures[0]["error"]


def test_run_once_without_timeout_runs_one_item_or_returns_immediately():
    context = RunLoopExecutionContext("main")
    ran = []
    context.submit(lambda: ran.append(1))
    context.submit(lambda: ran.append(2))

    assert context.run_once(timeout=0) is True
    assert ran == [1]
    assert context.pending_count() == 1

    context.run_pending()
    assert context.run_once(timeout=0) is False


def test_run_once_gives_up_after_timeout_with_no_work():
    context = RunLoopExecutionContext("main")

    started = time.monotonic()
    assert context.run_once(timeout=0.1) is False
    assert time.monotonic() - started >= 0.1


def test_run_once_with_no_timeout_wakes_on_submit():
    context = RunLoopExecutionContext("main")
    ran = []

    def late_submit():
        time.sleep(0.05)
        context.submit(lambda: ran.append("late"))

    worker = threading.Thread(target=late_submit)
    worker.start()

    assert context.run_once(timeout=None) is True
    worker.join()
    assert ran == ["late"]


def test_run_once_with_no_timeout_returns_when_stopped():
    context = RunLoopExecutionContext("main")

    def late_stop():
        time.sleep(0.05)
        context.stop()

    worker = threading.Thread(target=late_stop)
    worker.start()

    assert context.run_once(timeout=None) is False
    worker.join()
    assert context.is_stopped is True


def test_run_once_rejects_other_threads():
    context = RunLoopExecutionContext("main")
    errors = []

    def run_elsewhere():
        try:
            context.run_once()
        except ExecutionContextError as exc:
            errors.append(exc)

    _run_on_thread(run_elsewhere)

    assert len(errors) == 1
    assert "run_once" in str(errors[0])


def test_run_until_waits_for_cross_thread_work():
    context = RunLoopExecutionContext("main")
    done = []

    def late_submit():
        time.sleep(0.05)
        context.submit(lambda: done.append(True))

    worker = threading.Thread(target=late_submit)
    worker.start()

    assert context.run_until(lambda: done, timeout=2.0) is True
    worker.join()


def test_run_until_gives_up_after_timeout():
    context = RunLoopExecutionContext("main")

    started = time.monotonic()
    assert context.run_until(lambda: False, timeout=0.1) is False
    assert time.monotonic() - started >= 0.1


# --- SerialThreadExecutionContext ---

def test_serial_thread_runs_work_on_its_own_thread():
    with SerialThreadExecutionContext("background") as context:
        observed = []
        context.submit(lambda: observed.append((threading.current_thread().name, context.is_current())))
        assert context.flush(timeout=2.0)

    assert observed == [("context-background", True)]
    assert context.is_current() is False


def test_serial_thread_never_overlaps_work_from_concurrent_submitters():
    active = []
    overlaps = []
    per_submitter = {0: [], 1: [], 2: [], 3: []}

    with SerialThreadExecutionContext("background") as context:
        def work(submitter, seq):
            active.append(1)
            if len(active) > 1:
                overlaps.append((submitter, seq))
            per_submitter[submitter].append(seq)
            active.pop()

        def submit_many(submitter):
            for seq in range(50):
                context.submit(lambda s=submitter, n=seq: work(s, n))

        submitters = [threading.Thread(target=submit_many, args=(i,)) for i in range(4)]
        for thread in submitters:
            thread.start()
        for thread in submitters:
            thread.join()
        assert context.flush(timeout=2.0)

    assert overlaps == []
    for seqs in per_submitter.values():
        assert seqs == list(range(50))


def test_serial_thread_flush_from_inside_is_refused():
    errors = []
    with SerialThreadExecutionContext("background") as context:
        def flush_inside():
            try:
                context.flush(timeout=0.1)
            except ExecutionContextError as exc:
                errors.append(exc)

        context.submit(flush_inside)
        assert context.flush(timeout=2.0)

    assert len(errors) == 1


def test_serial_thread_runs_accepted_work_before_stopping():
    context = SerialThreadExecutionContext("background").start()
    ran = []
    gate = threading.Event()

    context.submit(gate.wait)
    context.submit(lambda: ran.append("queued before stop"))
    gate.set()
    context.stop(timeout=2.0)

    assert ran == ["queued before stop"]
    assert context.is_running is False
    with pytest.raises(ExecutionContextStopped):
        context.submit(lambda: None)


# --- AsyncioExecutionContext ---

def test_asyncio_context_knows_its_loop():
    async def scenario():
        context = AsyncioExecutionContext(asyncio.get_running_loop(), name="ui")
        from_other_thread = []
        worker = threading.Thread(target=lambda: from_other_thread.append(context.is_current()))
        worker.start()
        worker.join()
        return context.is_current(), from_other_thread

    inside, from_other_thread = asyncio.run(scenario())

    assert inside is True
    assert from_other_thread == [False]


def test_asyncio_context_runs_cross_thread_work_on_loop():
    async def scenario():
        loop = asyncio.get_running_loop()
        context = AsyncioExecutionContext(loop, name="ui")
        ran = loop.create_future()
        worker = threading.Thread(
            target=lambda: context.submit(lambda: ran.set_result(context.is_current()))
        )
        worker.start()
        result = await asyncio.wait_for(ran, timeout=2.0)
        worker.join()
        return result

    assert asyncio.run(scenario()) is True


def test_asyncio_context_rejects_closed_loop():
    loop = asyncio.new_event_loop()
    context = AsyncioExecutionContext(loop)
    loop.close()

    with pytest.raises(ExecutionContextStopped):
        context.submit(lambda: None)


def test_asyncio_context_reports_loop_closed_while_scheduling():
    class ClosingLoop:
        def is_closed(self):
            return False

        def call_soon_threadsafe(self, callback):
            raise RuntimeError("Event loop is closed")

    context = AsyncioExecutionContext(ClosingLoop(), name="ui")

    with pytest.raises(ExecutionContextStopped, match="ui") as excinfo:
        context.submit(lambda: None)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


# --- main_context ---

def test_main_context_is_a_single_instance_owned_by_main_thread():
    first = main_context()
    seen = []

    _run_on_thread(lambda: seen.append(main_context()))

    assert seen == [first]
    assert first.owner is threading.main_thread()
    assert first.name == "main"
