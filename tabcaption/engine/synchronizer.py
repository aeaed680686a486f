"""
TabCaption Synchronizer — keeps document captions in line with the template.

Responsibilities:
1. Lifecycle: start() subscribes to the change events and fixes every open
   document; stop() unsubscribes and resets every caption to the bare name
2. Single-document updates on document_changed (opened, renamed, moved)
3. Full passes on containers_changed and on template / ignore-* option
   changes, since those can change the caption of unrelated documents
4. Bounded retry: documents are often reported open before their caption
   can be set (mostly while a project loads), so a failed full pass is
   retried every retry_delay_ms, at most max_failures attempts in a row

All state lives on the dispatcher's thread. Event and option handlers only
post work to the dispatcher; the retry timer does the same.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from tabcaption.engine.config import DEFAULT_MAX_FAILURES, DEFAULT_RETRY_DELAY_MS, Options
from tabcaption.engine.dispatcher import Dispatcher, TimerHandle
from tabcaption.engine.errors import DispatcherError
from tabcaption.engine.events import ChangeEventSource, Subscription
from tabcaption.engine.logging import ALWAYS
from tabcaption.template.expander import TemplateExpander
from tabcaption.template.registry import VariableRegistry
from tabcaption.template.variables import build_default_registry

if TYPE_CHECKING:
    from tabcaption.environment.ports import Document, Solution

logger = logging.getLogger("tabcaption.engine.synchronizer")


class Synchronizer:
    """
    The caption reconciliation engine.

    Usage:
        dispatcher = SerialDispatcher()
        dispatcher.start()
        sync = Synchronizer(options, solution, event_source, dispatcher)
        ...
        dispatcher.post(sync.close)

    If options.enabled is true, start() is posted from the constructor. The
    dispatcher must already be running; otherwise the failure is logged and
    the synchronizer stays stopped until start() is posted.
    start(), stop(), fix_all_documents() and close() must run on the
    dispatcher's thread.
    """

    def __init__(
        self,
        options: Options,
        solution: "Solution",
        events: ChangeEventSource,
        dispatcher: Dispatcher,
        registry: Optional[VariableRegistry] = None,
        max_failures: int = DEFAULT_MAX_FAILURES,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
    ):
        self.options = options
        self.solution = solution
        self.events = events
        self.dispatcher = dispatcher
        self.expander = TemplateExpander(
            registry or build_default_registry(), options, solution,
        )
        self.max_failures = max_failures
        self.retry_delay_ms = retry_delay_ms

        self._started = False
        self._failures = 0
        self._retry: Optional[TimerHandle] = None
        self._retry_generation = 0
        self._event_subscriptions: List[Subscription] = []

        # these live until close()
        self._option_subscriptions: List[Subscription] = [
            options.enabled_changed.connect(self._on_enabled_changed),
            options.template_changed.connect(self._on_template_changed),
            options.ignore_builtin_projects_changed.connect(
                self._on_ignore_builtin_projects_changed),
            options.ignore_single_project_changed.connect(
                self._on_ignore_single_project_changed),
            options.logging_changed.connect(self._on_logging_changed),
        ]

        if options.enabled:
            logger.info("initialized")
            try:
                dispatcher.post(self.start)
            except DispatcherError as e:
                logger.error(f"could not schedule start, staying stopped: {e}")
        else:
            logger.info("initialized but disabled in the options")

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Subscribe to change events and fix all open documents."""
        logger.debug("starting")

        if self._started:
            logger.error("already started")
            return

        self._started = True
        self._event_subscriptions = [
            self.events.document_changed.connect(self._on_document_changed),
            self.events.containers_changed.connect(self._on_containers_changed),
        ]
        self.fix_all_documents()

    def stop(self) -> None:
        """Unsubscribe, drop any pending retry and reset every caption."""
        logger.debug("stopping")

        if not self._started:
            logger.error("already stopped")
            return

        self._started = False
        for subscription in self._event_subscriptions:
            subscription.dispose()
        self._event_subscriptions = []

        self._cancel_retry()
        self._failures = 0
        self._reset_all_documents()

    def close(self) -> None:
        """Stop if needed and stop listening to option changes."""
        if self._started:
            self.stop()
        for subscription in self._option_subscriptions:
            subscription.dispose()
        self._option_subscriptions = []

    @property
    def started(self) -> bool:
        return self._started

    @property
    def failures(self) -> int:
        """Consecutive failed full passes."""
        return self._failures

    @property
    def retry_pending(self) -> bool:
        return self._retry is not None

    # -- passes --------------------------------------------------------------

    def fix_all_documents(self) -> bool:
        """
        Externally triggered full pass: resets the failure count first.

        Returns:
            True if every open document got its caption.
        """
        self._failures = 0
        return self._run_pass()

    def fix_document(self, document: "Document") -> bool:
        """Recompute and apply the caption of one document."""
        if self._fix_caption(document):
            return True

        # the frame probably isn't there yet; a full pass will pick it up
        logger.warning(f"document {document.path} not ready, deferring")
        self._failures = 0
        self._arm_retry()
        return False

    def _run_pass(self) -> bool:
        logger.info("fixing all documents")

        try:
            documents = list(self.solution.documents)
        except Exception as e:
            # the host sometimes fails to enumerate while projects load
            logger.error(f"enumerating documents failed, {e}")
            self._pass_failed()
            return False

        failed = False
        for document in documents:
            if not self._fix_caption(document):
                failed = True

        if failed:
            self._pass_failed()
            return False

        self._failures = 0
        self._cancel_retry()
        return True

    def _retry_pass(self, generation: int) -> None:
        if self._retry is None or generation != self._retry_generation:
            # the timer fired before it was cancelled or superseded
            logger.debug("stale retry dropped")
            return
        self._retry = None
        if not self._started:
            return
        logger.info(f"retrying, try {self._failures + 1}")
        self._run_pass()

    def _pass_failed(self) -> None:
        self._failures += 1

        if self._failures < self.max_failures:
            logger.warning(
                f"fixing all documents failed, try {self._failures}, "
                f"trying again in {self.retry_delay_ms} ms"
            )
            self._arm_retry()
        else:
            logger.error(
                f"fixing all documents failed {self._failures} times, bailing out"
            )
            self._cancel_retry()

    def _fix_caption(self, document: "Document") -> bool:
        try:
            caption = self.expander.expand(document)
            applied = document.set_caption(caption)
        except Exception as e:
            logger.error(f"fixing caption of {_describe(document)} failed, {e}")
            return False

        if applied:
            logger.debug(f"{document.path} set to {caption}")
        else:
            logger.debug(f"{document.path} has no frame yet")
        return bool(applied)

    def _reset_all_documents(self) -> None:
        logger.info("resetting all documents")

        try:
            documents = list(self.solution.documents)
        except Exception as e:
            logger.error(f"enumerating documents failed, {e}")
            return

        for document in documents:
            try:
                document.reset_caption()
            except Exception as e:
                logger.error(f"resetting caption of {_describe(document)} failed, {e}")

    # -- retry timer ---------------------------------------------------------

    def _arm_retry(self) -> None:
        # a new timer supersedes the pending one
        self._cancel_retry()
        self._retry_generation += 1
        self._retry = self.dispatcher.call_later(
            self.retry_delay_ms, self._retry_pass, self._retry_generation,
        )

    def _cancel_retry(self) -> None:
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None

    # -- event handlers (any thread) -----------------------------------------

    def _on_document_changed(self, document: "Document") -> None:
        self.dispatcher.post(self._handle_document_changed, document)

    def _on_containers_changed(self) -> None:
        self.dispatcher.post(self._handle_full_pass_trigger, "containers changed")

    def _on_enabled_changed(self) -> None:
        self.dispatcher.post(self._handle_enabled_changed, self.options.enabled)

    def _on_template_changed(self) -> None:
        self.dispatcher.post(self._handle_full_pass_trigger, "template option changed")

    def _on_ignore_builtin_projects_changed(self) -> None:
        self.dispatcher.post(
            self._handle_full_pass_trigger, "ignore built-in projects option changed")

    def _on_ignore_single_project_changed(self) -> None:
        self.dispatcher.post(
            self._handle_full_pass_trigger, "ignore single project option changed")

    def _on_logging_changed(self) -> None:
        if self.options.logging:
            logger.info("logging enabled", extra={ALWAYS: True})

    # -- dispatched handlers -------------------------------------------------

    def _handle_document_changed(self, document: "Document") -> None:
        if not self._started:
            return
        self.fix_document(document)

    def _handle_full_pass_trigger(self, reason: str) -> None:
        if not self._started:
            return
        logger.info(reason)
        self.fix_all_documents()

    def _handle_enabled_changed(self, enabled: bool) -> None:
        logger.info("enabled option changed")
        if enabled:
            self.start()
        else:
            self.stop()


def _describe(document: "Document") -> str:
    try:
        return document.path
    except Exception:
        return "?"
