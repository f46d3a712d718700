"""Switching of primary variables when a phase appears or disappears at a vertex.

The second primary variable of a vertex is the nonwetting saturation if both phases
are present, and the mass fraction of the dissolved component if only one phase is
present. After each nonlinear iteration the phase state of every vertex is checked:

- A phase appears if the dissolved component exceeds its solubility limit in the only
  present phase by a relative tolerance.
- A phase disappears if its saturation falls below zero by an absolute tolerance.

"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

import numpy as np

from .._core import (
    DISAPPEARANCE_TOLERANCE,
    PW_INDEX,
    SWITCH_INDEX,
    SWITCH_TOLERANCE,
    PhaseState,
)
from ..grids import BoxGrid
from .energy import EnergyModel
from .node_state import as_phase_state
from .phase_state import PhaseStateStore
from .problem import TwoPhaseTwoComponentProblem
from .utils import PhaseSwitchConflictError

__all__ = ["SwitchDecision", "primary_variable_switch", "run_switch_pass"]

logger = logging.getLogger(__name__)


class SwitchDecision(NamedTuple):
    """Outcome of the switch check of a single vertex."""

    phase_state: PhaseState
    """The new phase state, equal to the old one if nothing happened."""

    value: Optional[float]
    """New value of the switching primary variable, None if nothing happened."""

    event: str = ""
    """Description of the phase transition."""


def primary_variable_switch(
    node_solution: np.ndarray,
    phase_state: int,
    position: np.ndarray,
    problem: TwoPhaseTwoComponentProblem,
    temperature: float,
    tolerance: float = SWITCH_TOLERANCE,
    disappearance_tolerance: float = DISAPPEARANCE_TOLERANCE,
) -> SwitchDecision:
    """Check whether the phase state of a vertex changes.

    Parameters:
        node_solution: Primary variables of the vertex.
        phase_state: Current phase state of the vertex.
        position: Coordinates of the vertex.
        problem: Constitutive relations.
        temperature: Temperature of the vertex.
        tolerance: Relative tolerance for the appearance of a phase. The switching
            variable of a vertex where a phase appeared is set this far into the
            two-phase region.
        disappearance_tolerance: Absolute tolerance for the disappearance of a phase.

    Raises:
        InvalidPhaseStateError: If ``phase_state`` is not a phase state.
        PhaseSwitchConflictError: If more than one transition is triggered.

    Returns:
        The new phase state and, if it changed, the new value of the switching
        variable.

    """
    state = as_phase_state(phase_state)
    p_w = node_solution[PW_INDEX]
    x = node_solution[SWITCH_INDEX]

    if state == PhaseState.BOTH_PHASES:
        sat_w = 1.0 - x
    elif state == PhaseState.WETTING_ONLY:
        sat_w = 1.0
    else:
        sat_w = 0.0
    p_n = p_w + problem.material_law.capillary_pressure(sat_w, position)

    candidates: list[SwitchDecision] = []
    if state == PhaseState.NONWETTING_ONLY:
        x_max = problem.solubility.x_wn(p_n, temperature)
        if x > x_max * (1.0 + tolerance):
            candidates.append(
                SwitchDecision(
                    PhaseState.BOTH_PHASES, 1.0 - tolerance, "Wetting phase appears"
                )
            )
    elif state == PhaseState.WETTING_ONLY:
        x_max = problem.solubility.x_aw(p_n, temperature)
        if x > x_max * (1.0 + tolerance):
            candidates.append(
                SwitchDecision(
                    PhaseState.BOTH_PHASES, tolerance, "Nonwetting phase appears"
                )
            )
    else:
        sat_n = x
        if sat_n < -disappearance_tolerance:
            candidates.append(
                SwitchDecision(
                    PhaseState.WETTING_ONLY,
                    problem.solubility.x_aw(p_n, temperature),
                    "Nonwetting phase disappears",
                )
            )
        if sat_w < -disappearance_tolerance:
            candidates.append(
                SwitchDecision(
                    PhaseState.NONWETTING_ONLY,
                    problem.solubility.x_wn(p_n, temperature),
                    "Wetting phase disappears",
                )
            )

    if len(candidates) > 1:
        raise PhaseSwitchConflictError(
            "Conflicting phase transitions: "
            + ", ".join(c.event for c in candidates)
            + "."
        )
    if not candidates:
        return SwitchDecision(state, None)
    return candidates[0]


def run_switch_pass(
    solution: np.ndarray,
    phase_states: PhaseStateStore,
    grid: BoxGrid,
    problem: TwoPhaseTwoComponentProblem,
    energy: EnergyModel,
    tolerance: float = SWITCH_TOLERANCE,
    disappearance_tolerance: float = DISAPPEARANCE_TOLERANCE,
) -> bool:
    """Check the phase state of all vertices, and switch primary variables.

    The switching variable in ``solution`` and the current phase states are modified in
    place. The switched flag of ``phase_states`` is set to the return value.

    Parameters:
        solution: Primary variables, shape ``(num_nodes, num_equations)``.
        phase_states: Phase states of the vertices.
        grid: The grid.
        problem: Constitutive relations.
        energy: Energy model, providing the temperature of the vertices.
        tolerance: See :func:`primary_variable_switch`.
        disappearance_tolerance: See :func:`primary_variable_switch`.

    Returns:
        True if the phase state of any vertex changed.

    """
    switched = False
    for vertex in range(grid.num_nodes):
        position = grid.vertex_position(vertex)
        decision = primary_variable_switch(
            solution[vertex],
            phase_states[vertex],
            position,
            problem,
            energy.temperature(solution[vertex]),
            tolerance,
            disappearance_tolerance,
        )
        if decision.value is None:
            continue
        logger.info(f"{decision.event} at vertex {vertex}, coordinates: {position}")
        solution[vertex, SWITCH_INDEX] = decision.value
        phase_states[vertex] = decision.phase_state
        switched = True

    phase_states.switched = switched
    return switched
