"""Selection bookkeeping for the interactive instance selector."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Candidate:
    """A selectable instance.

    Parameters
    ----------
    instance_id : str
        Stable instance identifier
    label : str
        Human readable name, empty when the instance has none
    """

    instance_id: str
    label: str = ""


@dataclass(frozen=True)
class SelectionModel:
    """Candidates, cursor and selected indices.

    The model is immutable: every transition returns a new instance.

    Selection is keyed by index into ``candidates``. Indices stay valid only
    because the candidate list is loaded once per session; refreshing the list
    mid-session would require keying the selection by instance ID instead.

    Attributes
    ----------
    candidates : tuple[Candidate, ...]
        Candidates in source response order
    cursor : int
        Index of the highlighted candidate, meaningful only when
        ``candidates`` is non-empty
    selected : frozenset[int]
        Indices of selected candidates
    loaded : bool
        Whether the candidate source has responded
    """

    candidates: tuple[Candidate, ...] = ()
    cursor: int = 0
    selected: frozenset[int] = field(default_factory=frozenset)
    loaded: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    def on_candidates_loaded(self, candidates: Iterable[Candidate]) -> SelectionModel:
        """Populate the model from a source response.

        Expected once per session. A second call resets cursor and selection.
        """
        return SelectionModel(candidates=tuple(candidates), loaded=True)

    def move_up(self) -> SelectionModel:
        if self.cursor <= 0:
            return self
        return replace(self, cursor=self.cursor - 1)

    def move_down(self) -> SelectionModel:
        if self.cursor >= len(self.candidates) - 1:
            return self
        return replace(self, cursor=self.cursor + 1)

    def toggle_selection(self) -> SelectionModel:
        """Flip the selection state of the candidate under the cursor."""
        if self.is_empty:
            return self
        return replace(self, selected=self.selected ^ {self.cursor})

    def is_selected(self, index: int) -> bool:
        return index in self.selected

    def confirmed_selection(self) -> frozenset[str]:
        """Return the instance IDs of the selected candidates.

        Returns
        -------
        frozenset[str]
            Selected instance IDs; unordered
        """
        return frozenset(self.candidates[index].instance_id for index in self.selected)
