"""
TabCaption Dispatcher — the single serial execution context.

Every piece of engine state (Synchronizer counters, option reads, calls into
the environment ports) is touched from one worker thread only. Work reaches
that thread by post(); deferred work (the retry timer) is armed with
call_later(), whose timer thread does nothing but post() the callback back
onto the queue.

Implements:
- Dispatcher: the post / call_later contract the Synchronizer depends on
- TimerHandle: cancellable handle for a deferred callback
- SerialDispatcher: FIFO queue drained by one daemon worker thread
"""

from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Any, Callable, Optional, Set, Tuple

from tabcaption.engine.errors import DispatcherError

logger = logging.getLogger("tabcaption.engine.dispatcher")

_STOP = object()


class TimerHandle:
    """
    A deferred callback that can be cancelled until it runs, including after
    its timer fired and the callback is still waiting in the queue.
    """

    def __init__(
        self,
        timer: Optional[threading.Timer] = None,
        on_cancel: Optional[Callable[["TimerHandle"], None]] = None,
    ):
        self._timer = timer
        self._on_cancel = on_cancel
        self._cancelled = False

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        if self._on_cancel is not None:
            self._on_cancel(self)

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class Dispatcher:
    """Contract for a serial execution context."""

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        raise NotImplementedError

    def call_later(self, delay_ms: int, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        raise NotImplementedError


class SerialDispatcher(Dispatcher):
    """
    FIFO task queue with one worker thread.

    Tasks run strictly in the order they were posted and never overlap, so
    a full reconciliation pass always finishes before the next event is
    looked at. Exceptions raised by a task are logged and do not kill the
    worker.

    Usage:
        dispatcher = SerialDispatcher()
        dispatcher.start()
        dispatcher.post(synchronizer.fix_all_documents)
        dispatcher.stop()
    """

    def __init__(self, name: str = "tabcaption-dispatch"):
        self._name = name
        self._queue: "Queue[Any]" = Queue()
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._timers: Set[TimerHandle] = set()
        self._timers_lock = threading.Lock()

    def start(self) -> None:
        """Start the worker thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._run,
            name=self._name,
            daemon=True,
        )
        self._thread.start()
        logger.info("Dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel pending timers, let queued tasks finish, stop the worker."""
        if not self._running:
            return
        self._running = False

        with self._timers_lock:
            handles = list(self._timers)
            self._timers.clear()
        for handle in handles:
            handle.cancel()

        self._queue.put(_STOP)
        if self._thread and self._thread.is_alive() and not self.on_dispatch_thread():
            self._thread.join(timeout=timeout)
        logger.info("Dispatcher stopped")

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue fn(*args) for the worker thread. Non-blocking."""
        if not self._running:
            raise DispatcherError(
                f"Dispatcher '{self._name}' is not running",
                task=getattr(fn, "__name__", repr(fn)),
            )
        self._queue.put((fn, args))

    def call_later(self, delay_ms: int, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        """
        Post fn(*args) after delay_ms milliseconds.

        The timer thread never runs fn itself; it only hands fn back to the
        worker through post(). Cancelling the returned handle also drops a
        callback that is already queued but has not run yet.
        """
        timer = threading.Timer(delay_ms / 1000.0, lambda: self._on_timer(handle, fn, args))
        timer.daemon = True
        handle = TimerHandle(timer, on_cancel=self._forget_timer)

        with self._timers_lock:
            self._timers.add(handle)
        timer.start()
        return handle

    def flush(self, timeout: float = 5.0) -> bool:
        """
        Block until every task queued before this call has run.

        Returns:
            True if the queue drained within timeout.
        """
        if self.on_dispatch_thread():
            raise DispatcherError("flush() called from the dispatch thread")
        done = threading.Event()
        self.post(done.set)
        return done.wait(timeout)

    def on_dispatch_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def timer_count(self) -> int:
        """Timers armed and neither fired nor cancelled."""
        with self._timers_lock:
            return len(self._timers)

    def _forget_timer(self, handle: TimerHandle) -> None:
        with self._timers_lock:
            self._timers.discard(handle)

    def _on_timer(
        self,
        handle: TimerHandle,
        fn: Callable[..., Any],
        args: Tuple[Any, ...],
    ) -> None:
        # timer thread: do not touch engine state here
        self._forget_timer(handle)
        if not self._running or handle.cancelled:
            logger.debug("Timer fired after dispatcher stopped or timer cancelled, dropped")
            return
        try:
            self.post(self._run_timer, handle, fn, args)
        except DispatcherError:
            logger.debug("Timer fired while dispatcher was stopping, dropped")

    @staticmethod
    def _run_timer(
        handle: TimerHandle,
        fn: Callable[..., Any],
        args: Tuple[Any, ...],
    ) -> None:
        # cancelled after the timer fired but before the worker got here
        if handle.cancelled:
            logger.debug("Cancelled timer callback dropped")
            return
        fn(*args)

    def _run(self) -> None:
        """Worker thread: run tasks one at a time until the stop marker."""
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            fn, args = item
            try:
                fn(*args)
            except Exception as e:
                logger.error(f"Dispatched task {getattr(fn, '__name__', fn)!r} failed: {e}")
