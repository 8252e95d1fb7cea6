"""State machine for one interactive interruption session.

A session moves through LOADING -> BROWSING -> CONFIRMING -> TERMINATED.
Every transition is a pure function returning a new ``Session``; the event
loop replaces its session value with the result and carries out the returned
``Command``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

from interrupter.constants import (
    CONFIRM_KEYS,
    DOWN_KEYS,
    QUIT_KEYS,
    TOGGLE_KEYS,
    UP_KEYS,
)
from interrupter.core.selection import Candidate, SelectionModel


class SessionState(Enum):
    LOADING = "loading"
    BROWSING = "browsing"
    CONFIRMING = "confirming"
    TERMINATED = "terminated"


class Outcome(Enum):
    """How a session terminated."""

    QUIT = "quit"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


class Command(Enum):
    """Side effect requested by a transition."""

    NONE = "none"
    QUIT = "quit"
    INTERRUPT = "interrupt"


@dataclass(frozen=True)
class SessionResult:
    """Termination value of a session.

    Attributes
    ----------
    outcome : Outcome
        How the session ended
    instance_ids : frozenset[str]
        Identifiers handed to the action invoker, empty if it was never called
    error : Exception | None
        Collaborator failure that ended the session
    """

    outcome: Outcome
    instance_ids: frozenset[str] = field(default_factory=frozenset)
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Session:
    state: SessionState = SessionState.LOADING
    model: SelectionModel = field(default_factory=SelectionModel)
    outcome: Outcome | None = None
    error: Exception | None = None

    @property
    def terminated(self) -> bool:
        return self.state is SessionState.TERMINATED

    @property
    def result(self) -> SessionResult | None:
        """Termination value, or None while the session is still running."""
        if not self.terminated or self.outcome is None:
            return None

        instance_ids: frozenset[str] = frozenset()

        if self.outcome is Outcome.INTERRUPTED or (
            self.outcome is Outcome.FAILED and self.model.loaded
        ):
            instance_ids = self.model.confirmed_selection()

        return SessionResult(outcome=self.outcome, instance_ids=instance_ids, error=self.error)


def start() -> Session:
    """Return the initial session, waiting for candidates."""
    return Session()


def _terminate(session: Session, outcome: Outcome, error: Exception | None = None) -> Session:
    return replace(session, state=SessionState.TERMINATED, outcome=outcome, error=error)


def handle_candidates_loaded(session: Session, candidates: Iterable[Candidate]) -> Session:
    """Apply a successful source response.

    Responses arriving outside LOADING (e.g. after the operator quit) are ignored.
    """
    if session.state is not SessionState.LOADING:
        return session

    return replace(
        session,
        state=SessionState.BROWSING,
        model=session.model.on_candidates_loaded(candidates),
    )


def handle_candidates_failed(session: Session, error: Exception) -> Session:
    """Apply a source failure; fatal while loading."""
    if session.state is not SessionState.LOADING:
        return session

    return _terminate(session, Outcome.FAILED, error)


def handle_interrupt_finished(session: Session, error: Exception | None = None) -> Session:
    """Apply completion of the interruption call, successful or not."""
    if session.state is not SessionState.CONFIRMING:
        return session

    if error is not None:
        return _terminate(session, Outcome.FAILED, error)

    return _terminate(session, Outcome.INTERRUPTED)


def handle_key(session: Session, key: str) -> tuple[Session, Command]:
    """Apply a key press.

    Parameters
    ----------
    session : Session
        Current session
    key : str
        Textual key name (e.g., ``"up"``, ``"space"``, ``"ctrl+c"``)

    Returns
    -------
    tuple[Session, Command]
        The next session and the side effect the event loop must perform
    """
    state = session.state

    if state in (SessionState.TERMINATED, SessionState.CONFIRMING):
        return session, Command.NONE

    if key in QUIT_KEYS:
        return _terminate(session, Outcome.QUIT), Command.QUIT

    if state is SessionState.LOADING:
        return session, Command.NONE

    model = session.model

    if key in UP_KEYS:
        return replace(session, model=model.move_up()), Command.NONE

    if key in DOWN_KEYS:
        return replace(session, model=model.move_down()), Command.NONE

    if key in TOGGLE_KEYS:
        return replace(session, model=model.toggle_selection()), Command.NONE

    if key in CONFIRM_KEYS:
        if not model.selected:
            return session, Command.NONE
        return replace(session, state=SessionState.CONFIRMING), Command.INTERRUPT

    return session, Command.NONE
