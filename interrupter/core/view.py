"""Text rendering of a session."""

from __future__ import annotations

from interrupter.core.session import Session

QUIT_HINT = "\nPress q to quit.\n"
LOADING_TEXT = "Finding Spot instances...\n\n" + QUIT_HINT
EMPTY_TEXT = "There are currently no Spot instances running...\n\n" + QUIT_HINT
HEADER_TEXT = "Which Spot instances would you like to interrupt?\n\n"


def render_view(session: Session) -> str:
    """Render the selector frame for a session.

    Parameters
    ----------
    session : Session
        Session to render

    Returns
    -------
    str
        Loading text before candidates arrive, the empty-result text when
        none were found, otherwise one row per candidate
    """
    model = session.model

    if not model.loaded:
        return LOADING_TEXT

    if model.is_empty:
        return EMPTY_TEXT

    rows = [HEADER_TEXT]

    for index, candidate in enumerate(model.candidates):
        cursor = ">" if index == model.cursor else " "
        checked = "x" if model.is_selected(index) else " "
        rows.append(f"{cursor} [{checked}] {candidate.instance_id} ({candidate.label})\n")

    rows.append(QUIT_HINT)
    return "".join(rows)
