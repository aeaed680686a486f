"""
TabCaption Logging — forwards engine log records to a host log sink.

Every module logs through the stdlib logger named after it
("tabcaption.engine.synchronizer", "tabcaption.template.expander", ...).
SinkHandler sits on the "tabcaption" logger and hands formatted lines to a
LogSink (an IDE output pane, a list in tests) only when the user enabled
logging, and only up to the chosen verbosity:

    logging_level   records forwarded
    0               errors
    1               + warnings
    2               + informational messages
    3               + traces (DEBUG)
    4               + variable expansion traces (VARIABLES)

Records logged with extra={ALWAYS: True} are forwarded at any verbosity
as long as logging is enabled.

A failing sink never disturbs the caller: handleError() deals with it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from tabcaption.engine.config import Options
    from tabcaption.environment.ports import LogSink

ROOT_LOGGER = "tabcaption"

# below DEBUG: template expansion is very chatty
VARIABLES = 5
logging.addLevelName(VARIABLES, "VARIABLES")

# record attribute that bypasses the verbosity threshold
ALWAYS = "always"

LEVEL_BY_VERBOSITY: Dict[int, int] = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.DEBUG,
    4: VARIABLES,
}


def threshold_for(verbosity: int) -> int:
    """Lowest stdlib level forwarded at the given logging_level."""
    verbosity = max(0, min(4, verbosity))
    return LEVEL_BY_VERBOSITY[verbosity]


class SinkFormatter(logging.Formatter):
    """Formats records as "component: message", component being the module name."""

    def format(self, record: logging.LogRecord) -> str:
        component = record.name.rsplit(".", 1)[-1]
        return f"{component}: {record.getMessage()}"


class SinkHandler(logging.Handler):
    """Logging handler gated by Options.logging and Options.logging_level."""

    def __init__(self, sink: "LogSink", options: "Options"):
        super().__init__(level=VARIABLES)
        self.sink = sink
        self.options = options
        self.setFormatter(SinkFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        if not self.options.logging:
            return
        below = record.levelno < threshold_for(self.options.logging_level)
        if below and not getattr(record, ALWAYS, False):
            return
        try:
            self.sink.output(self.format(record))
        except Exception:
            self.handleError(record)


def attach_sink(sink: "LogSink", options: "Options") -> SinkHandler:
    """Install a SinkHandler on the package logger and return it."""
    handler = SinkHandler(sink, options)
    root = logging.getLogger(ROOT_LOGGER)
    root.addHandler(handler)
    # the handler does the filtering; let every record reach it
    if root.level == logging.NOTSET or root.level > VARIABLES:
        root.setLevel(VARIABLES)
    return handler


def detach_sink(handler: SinkHandler) -> None:
    """Remove a handler installed by attach_sink()."""
    logging.getLogger(ROOT_LOGGER).removeHandler(handler)
    handler.close()
