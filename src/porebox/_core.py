"""This private module contains central assumptions and data for the entire
porebox package: the layout of the primary variable and equation vectors, the phase and
component indices, and the discrete phase states.

Changes here should be done with much care.

"""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "PW_INDEX",
    "SWITCH_INDEX",
    "TEMPERATURE_INDEX",
    "W_COMP_EQ",
    "N_COMP_EQ",
    "ENERGY_EQ",
    "W_PHASE",
    "N_PHASE",
    "W_COMP",
    "N_COMP",
    "NUM_PHASES",
    "NUM_COMPONENTS",
    "R_IDEAL_MOL",
    "T_DEFAULT",
    "SWITCH_TOLERANCE",
    "DISAPPEARANCE_TOLERANCE",
    "HARMONIC_MEAN_EPS",
    "PhaseState",
]


PW_INDEX: int = 0
"""Index of the wetting phase pressure in a vector of primary variables."""

SWITCH_INDEX: int = 1
"""Index of the switching primary variable.

Its meaning depends on the :class:`PhaseState` of the vertex, see there.

"""

TEMPERATURE_INDEX: int = 2
"""Index of the temperature in the primary variables of the non-isothermal model."""

W_COMP_EQ: int = 0
"""Index of the mass balance of the wetting component in a residual vector."""

N_COMP_EQ: int = 1
"""Index of the mass balance of the nonwetting component in a residual vector."""

ENERGY_EQ: int = 2
"""Index of the energy balance in a residual vector of the non-isothermal model."""

W_PHASE: int = 0
"""Index of the wetting phase."""

N_PHASE: int = 1
"""Index of the nonwetting phase."""

W_COMP: int = 0
"""Index of the wetting component (e.g. water)."""

N_COMP: int = 1
"""Index of the nonwetting component (e.g. air)."""

NUM_PHASES: int = 2
NUM_COMPONENTS: int = 2

R_IDEAL_MOL: float = 8.31446261815324
"""Universal gas constant in ``[J / K mol]``."""

T_DEFAULT: float = 283.15
"""Ambient temperature ``[K]`` of the isothermal model."""

SWITCH_TOLERANCE: float = 2e-5
"""Relative tolerance by which a dissolved mass fraction must exceed its solubility
limit before the phase appears.

The switching primary variable of a vertex with a newly appeared phase is set this far
inside the two-phase region.

"""

DISAPPEARANCE_TOLERANCE: float = 1e-5
"""Absolute tolerance below zero a saturation must reach before its phase
disappears."""

HARMONIC_MEAN_EPS: float = 1e-20
"""Regularization of the entry-wise harmonic mean of permeability tensors."""


class PhaseState(IntEnum):
    """Enum object for the phases present at a vertex.

    The phase state determines the meaning of the switching primary variable
    (:data:`SWITCH_INDEX`):

    - :attr:`BOTH_PHASES`: saturation of the nonwetting phase.
    - :attr:`WETTING_ONLY`: mass fraction of the nonwetting component in the wetting
      phase.
    - :attr:`NONWETTING_ONLY`: mass fraction of the wetting component in the
      nonwetting phase.

    """

    NONWETTING_ONLY = 0
    WETTING_ONLY = 1
    BOTH_PHASES = 2
