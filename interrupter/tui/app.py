"""Textual TUI application for interactive Spot interruptions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from functools import partial

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.css.query import NoMatches
from textual.message import Message
from textual.widgets import Log, Static

from interrupter.constants import (
    DEFAULT_FORCE,
    DEFAULT_INTERRUPT_TIMEOUT_SECONDS,
    EXIT_CODE_ERROR,
    EXIT_CODE_SUCCESS,
)
from interrupter.core.interfaces import ActionInvoker, CandidateSource
from interrupter.core.selection import Candidate
from interrupter.core.session import (
    Command,
    Session,
    SessionResult,
    handle_candidates_failed,
    handle_candidates_loaded,
    handle_interrupt_finished,
    handle_key,
    start,
)
from interrupter.core.view import render_view
from interrupter.logging import TuiLogHandler, TuiLogMessage

logger = logging.getLogger(__name__)

SELECTOR_ID = "selector"


class CandidatesLoaded(Message):
    """Candidate source responded."""

    def __init__(self, candidates: list[Candidate]) -> None:
        self.candidates = candidates
        super().__init__()


class CandidatesFailed(Message):
    """Candidate source raised."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        super().__init__()


class InterruptFinished(Message):
    """Action invoker returned or raised."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        super().__init__()


class InterrupterTUI(App[SessionResult]):
    """Interactive selector that interrupts the chosen Spot instances.

    The app owns a single ``Session`` value and replaces it on every event.
    Collaborator calls run in thread workers and report back through
    messages, so the session is only ever touched on the app's event loop.

    Parameters
    ----------
    source : CandidateSource
        Lists the selectable instances, once per session
    invoker : ActionInvoker
        Interrupts the confirmed selection, at most once per session
    timeout : float
        Seconds the interruption call may take
    force : bool
        Force flag passed through to the invoker
    start_worker : bool
        Whether to request candidates on mount (default: True)
        Set to False for tests that verify the loading state

    Attributes
    ----------
    session : Session
        Current session state
    """

    CSS = """
    #selector-panel {
        height: auto;
        padding: 0 1;
    }

    #log-panel {
        height: 1fr;
        border-top: solid $primary;
    }
    """

    AUTO_FOCUS = None

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        source: CandidateSource,
        invoker: ActionInvoker,
        timeout: float = DEFAULT_INTERRUPT_TIMEOUT_SECONDS,
        force: bool = DEFAULT_FORCE,
        start_worker: bool = True,
    ) -> None:
        super().__init__()
        self.source = source
        self.invoker = invoker
        self.timeout = timeout
        self.force = force
        self._start_worker = start_worker
        self.session: Session = start()
        self.original_handlers: list[logging.Handler] = []
        self.log_widget: Log | None = None

    def compose(self) -> ComposeResult:
        """Compose TUI layout.

        Yields
        ------
        Container
            Selector panel with the rendered session view
        Container
            Log panel receiving log records
        """
        with Container(id="selector-panel"):
            yield Static(render_view(self.session), id=SELECTOR_ID, markup=False)
        with Container(id="log-panel"):
            log = Log()
            log.can_focus = False
            yield log

    def on_mount(self) -> None:
        """Handle mount event - route logging to the log panel and start loading."""
        root_logger = logging.getLogger()
        self.original_handlers = root_logger.handlers[:]

        log_widget = self.query_one(Log)
        self.log_widget = log_widget
        tui_handler = TuiLogHandler(self, log_widget)
        tui_handler.setFormatter(logging.Formatter("%(message)s"))

        root_logger.handlers = [tui_handler]

        for boto_module in ["botocore", "boto3", "urllib3"]:
            logging.getLogger(boto_module).setLevel(logging.WARNING)

        if self._start_worker:
            self.start_loading()

    def on_unmount(self) -> None:
        """Restore the logging handlers replaced on mount."""
        logging.getLogger().handlers = self.original_handlers

    async def on_tui_log_message(self, message: TuiLogMessage) -> None:
        """Append log messages emitted from worker threads to the log widget."""
        if self.log_widget is None:
            return

        self.log_widget.write_line(message.text)

    def start_loading(self) -> None:
        """Request candidates on a daemon thread.

        The listing call has no timeout, and quitting while it is in flight
        must not wait for it, so it runs outside Textual's worker manager.
        """
        threading.Thread(
            target=self.load_candidates, name="list-candidates", daemon=True
        ).start()

    def load_candidates(self) -> None:
        """Fetch candidates in a worker thread and report back."""
        try:
            candidates = list(self.source.list_candidates())
        except Exception as e:
            logger.error("Failed to list Spot instances: %s", e)
            self.post_message(CandidatesFailed(e))
            return

        self.post_message(CandidatesLoaded(candidates))

    def run_interrupt(self, instance_ids: Iterable[str]) -> None:
        """Invoke the interruption in a worker thread and report back."""
        try:
            self.invoker.interrupt(instance_ids, self.timeout, self.force)
        except Exception as e:
            logger.error("Failed to interrupt Spot instances: %s", e)
            self.post_message(InterruptFinished(e))
            return

        self.post_message(InterruptFinished())

    def on_candidates_loaded(self, message: CandidatesLoaded) -> None:
        self.apply_session(handle_candidates_loaded(self.session, message.candidates))

    def on_candidates_failed(self, message: CandidatesFailed) -> None:
        self.apply_session(handle_candidates_failed(self.session, message.error))

    def on_interrupt_finished(self, message: InterruptFinished) -> None:
        self.apply_session(handle_interrupt_finished(self.session, message.error))

    def on_key(self, event: events.Key) -> None:
        """Handle key press events.

        Parameters
        ----------
        event : events.Key
            Key event
        """
        self.handle_key_press(event.key)

    async def action_quit(self) -> None:
        """Handle quit action (ctrl+c or ctrl+q) like the q key."""
        self.handle_key_press("q")

    def handle_key_press(self, key: str) -> None:
        """Feed a key through the session and carry out the resulting command.

        Parameters
        ----------
        key : str
            Textual key name
        """
        session, command = handle_key(self.session, key)

        if command is Command.INTERRUPT:
            instance_ids = session.model.confirmed_selection()
            logger.info("Interrupting %d selected instance(s)", len(instance_ids))
            self.run_worker(
                partial(self.run_interrupt, instance_ids),
                name="interrupt",
                thread=True,
                exit_on_error=False,
            )

        self.apply_session(session)

    def apply_session(self, session: Session) -> None:
        """Replace the session, redraw, and exit when it has just terminated."""
        already_terminated = self.session.terminated
        self.session = session

        try:
            self.query_one(f"#{SELECTOR_ID}", Static).update(render_view(session))
        except NoMatches as e:
            logger.debug("Failed to update selector widget: %s", e)

        result = session.result

        if result is not None and not already_terminated:
            return_code = EXIT_CODE_SUCCESS if result.succeeded else EXIT_CODE_ERROR
            self.exit(result, return_code=return_code)
