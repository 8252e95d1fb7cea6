"""Contracts for the collaborators of the interactive session."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from interrupter.core.selection import Candidate


@runtime_checkable
class CandidateSource(Protocol):
    """Produces the instances an operator can select."""

    def list_candidates(self) -> list[Candidate]:
        """Return the current candidates.

        Returns
        -------
        list[Candidate]
            Candidates in display order

        Raises
        ------
        Exception
            Any failure; the session treats it as fatal
        """
        ...


@runtime_checkable
class ActionInvoker(Protocol):
    """Performs the interruption on a confirmed selection."""

    def interrupt(self, instance_ids: Iterable[str], timeout: float, force: bool) -> None:
        """Interrupt the given instances.

        Parameters
        ----------
        instance_ids : Iterable[str]
            Unordered instance IDs
        timeout : float
            Seconds the call may take
        force : bool
            Collaborator-defined force flag

        Raises
        ------
        Exception
            Any failure; the session terminates without retrying
        """
        ...
