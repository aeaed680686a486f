"""Unit tests for tabcaption.engine.dispatcher — SerialDispatcher and timers."""

import threading
import time

import pytest

from tabcaption.engine.dispatcher import SerialDispatcher, TimerHandle
from tabcaption.engine.errors import DispatcherError


@pytest.fixture
def serial():
    d = SerialDispatcher(name="test-dispatch")
    d.start()
    yield d
    d.stop()


class TestSerialDispatcher:
    def test_runs_in_post_order(self, serial):
        seen = []
        for i in range(20):
            serial.post(seen.append, i)
        assert serial.flush()
        assert seen == list(range(20))

    def test_runs_on_worker_thread(self, serial):
        threads = []
        serial.post(lambda: threads.append(threading.current_thread().name))
        serial.flush()
        assert threads == ["test-dispatch"]

    def test_tasks_do_not_overlap(self, serial):
        active = []
        overlaps = []

        def task():
            if active:
                overlaps.append(True)
            active.append(1)
            time.sleep(0.005)
            active.pop()

        for _ in range(5):
            serial.post(task)
        serial.flush()
        assert overlaps == []

    def test_failing_task_does_not_kill_worker(self, serial):
        seen = []

        def boom():
            raise RuntimeError("boom")

        serial.post(boom)
        serial.post(seen.append, "after")
        serial.flush()
        assert seen == ["after"]

    def test_post_when_stopped_raises(self):
        d = SerialDispatcher()
        with pytest.raises(DispatcherError, match="not running"):
            d.post(lambda: None)

    def test_stop_lets_queued_tasks_finish(self):
        d = SerialDispatcher()
        d.start()
        seen = []
        d.post(seen.append, 1)
        d.stop()
        assert seen == [1]
        assert not d.running

    def test_start_and_stop_are_idempotent(self):
        d = SerialDispatcher()
        d.start()
        d.start()
        d.stop()
        d.stop()
        assert not d.running

    def test_on_dispatch_thread(self, serial):
        inside = []
        serial.post(lambda: inside.append(serial.on_dispatch_thread()))
        serial.flush()
        assert inside == [True]
        assert not serial.on_dispatch_thread()

    def test_flush_from_worker_raises(self, serial):
        errors = []

        def task():
            try:
                serial.flush()
            except DispatcherError as e:
                errors.append(e)

        serial.post(task)
        serial.flush()
        assert len(errors) == 1


class TestCallLater:
    def test_fires_on_worker_thread(self, serial):
        fired = threading.Event()
        threads = []

        def callback(value):
            threads.append((threading.current_thread().name, value))
            fired.set()

        handle = serial.call_later(10, callback, "x")
        assert isinstance(handle, TimerHandle)
        assert fired.wait(2.0)
        assert threads == [("test-dispatch", "x")]

    def test_cancel(self, serial):
        seen = []
        handle = serial.call_later(50, seen.append, 1)
        handle.cancel()
        assert handle.cancelled
        time.sleep(0.15)
        serial.flush()
        assert seen == []

    def test_stop_cancels_timers(self):
        d = SerialDispatcher()
        d.start()
        seen = []
        d.call_later(50, seen.append, 1)
        d.stop()
        time.sleep(0.15)
        assert seen == []

    def test_runs_after_earlier_posts(self, serial):
        seen = []
        gate = threading.Event()
        serial.post(gate.wait, 2.0)
        serial.call_later(20, seen.append, "timer")
        serial.post(seen.append, "post")
        time.sleep(0.1)
        gate.set()
        serial.flush()
        # the timer was queued behind the blocked task and the earlier post
        time.sleep(0.05)
        serial.flush()
        assert seen == ["post", "timer"]

    def test_cancel_after_fire_drops_queued_callback(self, serial):
        ran = []
        gate = threading.Event()
        serial.post(gate.wait, 2.0)
        handle = serial.call_later(10, ran.append, "stale")
        # the timer fires and queues the callback behind the blocked task
        time.sleep(0.1)
        handle.cancel()
        gate.set()
        serial.flush()
        assert ran == []

    def test_cancel_forgets_timer(self, serial):
        handles = [serial.call_later(60000, lambda: None) for _ in range(100)]
        assert serial.timer_count == 100
        for handle in handles:
            handle.cancel()
        assert serial.timer_count == 0

    def test_fired_timer_is_forgotten(self, serial):
        fired = threading.Event()
        serial.call_later(10, fired.set)
        assert fired.wait(2.0)
        assert serial.timer_count == 0

    def test_cancel_twice(self, serial):
        handle = serial.call_later(60000, lambda: None)
        handle.cancel()
        handle.cancel()
        assert handle.cancelled
        assert serial.timer_count == 0
