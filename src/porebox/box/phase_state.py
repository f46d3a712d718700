"""Storage of the phase state of every vertex of a grid.

The store keeps the phase states of the current iterate and of the last accepted time
step in a double-buffered arena. Accepting or discarding a time step only moves buffer
indices, the first write after either operation copies the accepted buffer before it is
modified.

"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from .._core import PhaseState
from .node_state import as_phase_state

__all__ = ["PhaseStateStore"]

logger = logging.getLogger(__name__)


class PhaseStateStore:
    """Current and previously accepted phase state of each vertex.

    Parameters:
        phase_states: Initial phase state of each vertex. Used both as current and as
            previous state.

    Raises:
        InvalidPhaseStateError: If one of the initial values is not a phase state.

    """

    def __init__(self, phase_states: Iterable[int]) -> None:
        initial = np.array(
            [as_phase_state(s) for s in phase_states], dtype=np.int8
        )
        self._buffers: list[np.ndarray] = [initial, initial.copy()]
        """The two buffers of the arena."""

        self._cur: int = 0
        """Index of the buffer holding the current phase states."""

        self._prev: int = 0
        """Index of the buffer holding the accepted phase states. Equal to
        :attr:`_cur` as long as the current states were not modified."""

        self._switched: bool = False

    def __len__(self) -> int:
        return self._buffers[self._cur].size

    def __getitem__(self, vertex: int) -> PhaseState:
        return PhaseState(int(self._buffers[self._cur][vertex]))

    def __setitem__(self, vertex: int, phase_state: int) -> None:
        self.set(vertex, phase_state)

    def __repr__(self) -> str:
        counts = np.bincount(self._buffers[self._cur], minlength=len(PhaseState))
        summary = ", ".join(f"{s.name}: {counts[s]}" for s in PhaseState)
        return f"Phase states of {len(self)} vertices ({summary})"

    @property
    def current(self) -> np.ndarray:
        """Read-only view of the current phase states."""
        view = self._buffers[self._cur].view()
        view.flags.writeable = False
        return view

    @property
    def previous(self) -> np.ndarray:
        """Read-only view of the phase states of the last accepted time step."""
        view = self._buffers[self._prev].view()
        view.flags.writeable = False
        return view

    def previous_at(self, vertex: int) -> PhaseState:
        """Phase state of a vertex at the last accepted time step."""
        return PhaseState(int(self._buffers[self._prev][vertex]))

    @property
    def switched(self) -> bool:
        """Whether the last switch pass changed the phase state of any vertex."""
        return self._switched

    @switched.setter
    def switched(self, value: bool) -> None:
        self._switched = bool(value)

    def set(self, vertex: int, phase_state: int) -> None:
        """Set the current phase state of a vertex.

        Raises:
            InvalidPhaseStateError: If ``phase_state`` is not a phase state.

        """
        state = as_phase_state(phase_state)
        if self._cur == self._prev:
            # Copy on first write, the accepted states stay in the other buffer.
            other = 1 - self._prev
            np.copyto(self._buffers[other], self._buffers[self._prev])
            self._cur = other
        self._buffers[self._cur][vertex] = state

    def commit(self) -> None:
        """Accept the current phase states, and clear the switched flag."""
        self._prev = self._cur
        self._switched = False

    def rollback(self) -> None:
        """Reset the current phase states to the accepted ones, and clear the
        switched flag."""
        self._cur = self._prev
        self._switched = False

    def reset(self, phase_states: Iterable[int]) -> None:
        """Overwrite current and accepted phase states, e.g. at a restart."""
        states = np.array([as_phase_state(s) for s in phase_states], dtype=np.int8)
        if states.size != len(self):
            raise ValueError(f"Expected {len(self)} phase states, got {states.size}.")
        np.copyto(self._buffers[0], states)
        self._cur = self._prev = 0
        self._switched = False
        logger.debug(f"Reset {self!r}")
