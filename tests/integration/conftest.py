"""
Integration test fixtures — the engine on its real worker thread.

These run the Synchronizer on a SerialDispatcher with real timers against
the in-memory environment, and forward the engine's log to a list sink.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

import pytest

from tabcaption.engine.config import Options
from tabcaption.engine.dispatcher import SerialDispatcher
from tabcaption.engine.logging import SinkHandler, attach_sink, detach_sink
from tabcaption.engine.synchronizer import Synchronizer
from tabcaption.environment.memory import MemorySolution


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: engine workflows on a live dispatcher")


@dataclass
class Engine:
    options: Options
    solution: MemorySolution
    dispatcher: SerialDispatcher
    sink: Any
    handler: SinkHandler
    sync: Optional[Synchronizer] = None
    created: List[Synchronizer] = field(default_factory=list)

    def start(self, **kwargs: Any) -> Synchronizer:
        self.sync = Synchronizer(
            self.options, self.solution, self.solution.events, self.dispatcher, **kwargs
        )
        self.created.append(self.sync)
        self.settle()
        return self.sync

    def settle(self) -> None:
        """Wait until everything posted so far has run."""
        assert self.dispatcher.flush(timeout=5.0)


@pytest.fixture
def engine(sink):
    options = Options()
    options.update(
        template="$(ProjectName):$(FolderPath):$(Filename)",
        ignore_single_project=False,
        logging=True,
        logging_level=2,
    )
    dispatcher = SerialDispatcher(name="integration-dispatch")
    dispatcher.start()
    handler = attach_sink(sink, options)

    eng = Engine(options, MemorySolution(), dispatcher, sink, handler)
    yield eng

    for sync in eng.created:
        dispatcher.post(sync.close)
    dispatcher.flush()
    dispatcher.stop()
    detach_sink(handler)
