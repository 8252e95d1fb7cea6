"""Core interrupter functionality."""

from __future__ import annotations

from interrupter.core.interfaces import ActionInvoker, CandidateSource
from interrupter.core.selection import Candidate, SelectionModel
from interrupter.core.session import (
    Command,
    Outcome,
    Session,
    SessionResult,
    SessionState,
)

__all__ = [
    "ActionInvoker",
    "CandidateSource",
    "Candidate",
    "SelectionModel",
    "Command",
    "Outcome",
    "Session",
    "SessionResult",
    "SessionState",
]
