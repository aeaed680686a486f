"""
TabCaption Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, List, Tuple

import pytest

from tabcaption.engine.config import Options
from tabcaption.engine.dispatcher import Dispatcher, TimerHandle
from tabcaption.engine.synchronizer import Synchronizer
from tabcaption.environment.memory import MemorySolution


# ---------------------------------------------------------------------------
# Deterministic dispatcher — no threads, timers fire on demand
# ---------------------------------------------------------------------------

class ManualTimer(TimerHandle):
    def __init__(self, delay_ms: int, fn: Callable[..., Any], args: Tuple[Any, ...]):
        super().__init__()
        self.delay_ms = delay_ms
        self.fn = fn
        self.args = args
        self.fired = False


class ManualDispatcher(Dispatcher):
    """
    Runs posted work immediately on the calling thread. Work posted while a
    task is running is queued and runs right after it, so tasks never
    interleave. Timers are only recorded; fire_timers() posts them, and a
    posted callback still runs if its handle is cancelled afterwards.
    """

    def __init__(self) -> None:
        self._queue: Deque[Tuple[Callable[..., Any], Tuple[Any, ...]]] = deque()
        self._busy = False
        self.timers: List[ManualTimer] = []
        self.posted = 0

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        self.posted += 1
        self._queue.append((fn, args))
        if self._busy:
            return
        self._busy = True
        try:
            while self._queue:
                task, task_args = self._queue.popleft()
                task(*task_args)
        finally:
            self._busy = False

    def call_later(self, delay_ms: int, fn: Callable[..., Any], *args: Any) -> TimerHandle:
        timer = ManualTimer(delay_ms, fn, args)
        self.timers.append(timer)
        return timer

    @property
    def pending_timers(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire_timers(self) -> int:
        """Fire every pending timer once; returns how many fired."""
        pending = self.pending_timers
        for timer in pending:
            timer.fired = True
            self.post(timer.fn, *timer.args)
        return len(pending)


class ListSink:
    """LogSink collecting lines in a list."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def output(self, line: str) -> None:
        self.lines.append(line)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_logging():
    """Remove handlers a test may have left on the package logger."""
    root = logging.getLogger("tabcaption")
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def options():
    return Options()


@pytest.fixture
def solution():
    return MemorySolution()


@pytest.fixture
def dispatcher():
    return ManualDispatcher()


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def make_sync(options, solution, dispatcher):
    """Factory for a Synchronizer wired to the fixtures above."""
    created: List[Synchronizer] = []

    def _make(**kwargs: Any) -> Synchronizer:
        sync = Synchronizer(options, solution, solution.events, dispatcher, **kwargs)
        created.append(sync)
        return sync

    yield _make

    for sync in created:
        sync.close()


@pytest.fixture
def two_projects(solution):
    """
    A solution with projects "cpp" and "cs"; cpp holds folders a/b/c.
    Returns (solution, cpp, cs).
    """
    cpp = solution.add_project("cpp")
    cs = solution.add_project("cs")
    solution.add_folders(cpp.root, "a/b/c")
    return solution, cpp, cs
