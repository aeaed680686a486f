"""
TabCaption Events — subscription registry and the change event contract.

Signal replaces multicast delegates: connect() returns a Subscription whose
dispose() removes the handler again. Handlers run synchronously on the
thread that calls emit(); consumers that need serialization (the
Synchronizer) marshal onto their dispatcher themselves.

ChangeEventSource is the contract between a host adapter and the engine:

    document_changed(document)   — a document was opened, renamed or moved
    containers_changed()         — a project or folder was added, removed
                                   or renamed; consumers must re-scan
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

logger = logging.getLogger("tabcaption.engine.events")


class Subscription:
    """Handle returned by Signal.connect(). Disposing twice is harmless."""

    __slots__ = ("_signal", "_handler")

    def __init__(self, signal: "Signal", handler: Callable[..., Any]):
        self._signal: Optional[Signal] = signal
        self._handler = handler

    def dispose(self) -> None:
        """Remove the handler from its signal."""
        if self._signal is None:
            return
        self._signal.disconnect(self._handler)
        self._signal = None

    @property
    def active(self) -> bool:
        return self._signal is not None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()


class Signal:
    """
    A named list of handlers.

    Example:
        changed = Signal("template_changed")
        sub = changed.connect(on_template_changed)
        changed.emit()
        sub.dispose()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: List[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> Subscription:
        """Register a handler; the same handler is only registered once."""
        if handler not in self._handlers:
            self._handlers.append(handler)
            logger.debug(f"Connected handler to {self.name}")
        return Subscription(self, handler)

    def disconnect(self, handler: Callable[..., Any]) -> None:
        """Remove a handler if present."""
        self._handlers = [h for h in self._handlers if h != handler]

    def emit(self, *args: Any) -> None:
        """Call every handler in registration order."""
        # copy, a handler may dispose its own subscription
        for handler in list(self._handlers):
            handler(*args)

    def clear(self) -> None:
        self._handlers.clear()

    @property
    def count(self) -> int:
        return len(self._handlers)


class ChangeEventSource:
    """
    Emitter of the two environment change events.

    Host adapters either subclass this or own an instance and call
    notify_document_changed() / notify_containers_changed() after
    normalizing whatever raw signals their host exposes.
    """

    def __init__(self) -> None:
        self.document_changed = Signal("document_changed")
        self.containers_changed = Signal("containers_changed")

    def notify_document_changed(self, document: Any) -> None:
        logger.debug(f"document {document.path} changed")
        self.document_changed.emit(document)

    def notify_containers_changed(self) -> None:
        logger.debug("containers changed")
        self.containers_changed.emit()
