"""Unit tests for tabcaption.engine.logging — SinkHandler and verbosity levels."""

import logging

import pytest

from tabcaption.engine.logging import (
    ALWAYS,
    VARIABLES,
    SinkHandler,
    attach_sink,
    detach_sink,
    threshold_for,
)


class TestThreshold:
    @pytest.mark.parametrize("verbosity, level", [
        (0, logging.ERROR),
        (1, logging.WARNING),
        (2, logging.INFO),
        (3, logging.DEBUG),
        (4, VARIABLES),
        (-1, logging.ERROR),
        (9, VARIABLES),
    ])
    def test_mapping(self, verbosity, level):
        assert threshold_for(verbosity) == level

    def test_variables_level_name(self):
        assert logging.getLevelName(VARIABLES) == "VARIABLES"


class TestSinkHandler:
    @pytest.fixture(autouse=True)
    def _attach(self, options, sink):
        options.logging = True
        self.options = options
        self.sink = sink
        self.handler = attach_sink(sink, options)
        self.log = logging.getLogger("tabcaption.engine.synchronizer")
        yield
        detach_sink(self.handler)

    def test_format(self):
        self.log.error("boom")
        assert self.sink.lines == ["synchronizer: boom"]

    def test_disabled_logging_forwards_nothing(self):
        self.options.logging = False
        self.log.error("boom")
        assert self.sink.lines == []

    def test_default_level_is_informational(self):
        self.log.error("e")
        self.log.warning("w")
        self.log.info("i")
        self.log.debug("d")
        self.log.log(VARIABLES, "v")
        assert self.sink.lines == ["synchronizer: e", "synchronizer: w", "synchronizer: i"]

    def test_errors_only(self):
        self.options.logging_level = 0
        self.log.warning("w")
        self.log.error("e")
        assert self.sink.lines == ["synchronizer: e"]

    def test_everything(self):
        self.options.logging_level = 4
        self.log.debug("d")
        self.log.log(VARIABLES, "v")
        assert self.sink.lines == ["synchronizer: d", "synchronizer: v"]

    def test_level_change_applies_immediately(self):
        self.log.debug("hidden")
        self.options.logging_level = 3
        self.log.debug("shown")
        assert self.sink.lines == ["synchronizer: shown"]

    def test_component_is_module_name(self):
        logging.getLogger("tabcaption.template.expander").error("x")
        assert self.sink.lines == ["expander: x"]

    def test_other_loggers_not_forwarded(self):
        logging.getLogger("somebody.else").error("x")
        assert self.sink.lines == []

    def test_always_bypasses_verbosity(self):
        self.options.logging_level = 0
        self.log.info("quiet")
        self.log.info("logging enabled", extra={ALWAYS: True})
        assert self.sink.lines == ["synchronizer: logging enabled"]

    def test_always_still_needs_logging_on(self):
        self.options.logging = False
        self.log.info("logging enabled", extra={ALWAYS: True})
        assert self.sink.lines == []

    def test_detach(self):
        detach_sink(self.handler)
        self.log.error("x")
        assert self.sink.lines == []


class TestFailingSink:
    def test_sink_error_does_not_propagate(self, options, monkeypatch):
        class BrokenSink:
            def output(self, line):
                raise OSError("pane closed")

        handled = []
        options.logging = True
        handler = SinkHandler(BrokenSink(), options)
        monkeypatch.setattr(handler, "handleError", handled.append)
        record = logging.LogRecord("tabcaption.x", logging.ERROR, __file__, 1, "msg", None, None)
        handler.emit(record)
        assert handled == [record]
