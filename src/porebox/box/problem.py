"""Container of the external collaborators of the two-phase two-component model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

import numpy as np

from .._core import PhaseState
from ..materials.fluids import FluidPhase
from ..materials.material_law import MaterialLaw
from ..materials.soil import Soil
from ..materials.solubility import Solubility

__all__ = ["TwoPhaseTwoComponentProblem"]


InitialPhaseState = Union[PhaseState, Callable[[int, np.ndarray], PhaseState]]
"""A phase state for all vertices, or a function of the vertex index and position."""


@dataclass
class TwoPhaseTwoComponentProblem:
    """Constitutive relations, matrix properties and body forces of a problem.

    The discretization treats all members as black boxes and only calls the methods
    of the abstract interfaces in :mod:`porebox.materials`.

    """

    material_law: MaterialLaw
    """Capillary pressure and relative permeabilities."""

    solubility: Solubility
    """Solubility limits of the components in the foreign phases."""

    wetting_phase: FluidPhase
    """Properties of the wetting phase."""

    nonwetting_phase: FluidPhase
    """Properties of the nonwetting phase."""

    soil: Soil
    """Permeability, porosity and thermal properties of the porous matrix."""

    gravity: Optional[np.ndarray] = None
    """Gravitational acceleration in ``[m / s^2]``. Defaults to zero."""

    initial_phase_state: InitialPhaseState = PhaseState.BOTH_PHASES
    """Phase state of the vertices at the start of a simulation."""

    def fluid_phase(self, phase: int) -> FluidPhase:
        """Fluid phase by index, see :data:`~porebox._core.W_PHASE`."""
        return (self.wetting_phase, self.nonwetting_phase)[phase]

    def gravity_vector(self, dim: int) -> np.ndarray:
        """Gravity restricted to the first ``dim`` coordinates.

        Raises:
            ValueError: If the gravity vector has fewer than ``dim`` entries.

        """
        if self.gravity is None:
            return np.zeros(dim)
        g = np.asarray(self.gravity, dtype=float).ravel()
        if g.size < dim:
            raise ValueError(f"Gravity has {g.size} entries, {dim} are required.")
        return g[:dim].copy()

    def phase_state_at(self, vertex: int, position: np.ndarray) -> PhaseState:
        """Initial phase state of a vertex."""
        if callable(self.initial_phase_state):
            return PhaseState(self.initial_phase_state(vertex, position))
        return PhaseState(self.initial_phase_state)
