"""Secondary variables of a single vertex, derived from its primary variables.

All terms of the discretization are evaluated from the :class:`NodeState` of the
vertices of a cell. The state is a pure function of the primary variables, the phase
state and the position of the vertex, see :func:`update_node_state`.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np

from .._core import (
    N_COMP,
    N_PHASE,
    NUM_COMPONENTS,
    NUM_PHASES,
    PW_INDEX,
    SWITCH_INDEX,
    W_COMP,
    W_PHASE,
    PhaseState,
)
from .utils import InvalidPhaseStateError

if TYPE_CHECKING:
    from .energy import EnergyModel
    from .problem import TwoPhaseTwoComponentProblem

__all__ = ["NodeState", "as_phase_state", "update_node_state"]


@dataclass
class NodeState:
    """Cached secondary variables of a vertex."""

    p_w: float
    """Pressure of the wetting phase."""

    p_c: float
    """Capillary pressure."""

    p_n: float
    """Pressure of the nonwetting phase, ``p_w + p_c``."""

    sat_w: float
    """Saturation of the wetting phase."""

    sat_n: float
    """Saturation of the nonwetting phase, ``1 - sat_w``."""

    density: np.ndarray
    """Mass density per phase."""

    mobility: np.ndarray
    """Relative permeability divided by viscosity, per phase."""

    mass_fraction: np.ndarray
    """Mass fractions indexed ``[component, phase]``. Each column sums to one."""

    phase_state: PhaseState
    """Phase state the secondary variables were computed with."""

    temperature: float

    enthalpy: np.ndarray = field(default_factory=lambda: np.zeros(NUM_PHASES))
    """Specific enthalpy per phase. Only set by non-isothermal models."""

    internal_energy: np.ndarray = field(default_factory=lambda: np.zeros(NUM_PHASES))
    """Specific internal energy per phase. Only set by non-isothermal models."""

    @property
    def saturation(self) -> np.ndarray:
        """Saturations indexed by phase."""
        return np.array([self.sat_w, self.sat_n])

    @property
    def pressure(self) -> np.ndarray:
        """Pressures indexed by phase."""
        return np.array([self.p_w, self.p_n])


def as_phase_state(value: int) -> PhaseState:
    """Convert an integer tag to a phase state.

    Tags that are not whole numbers are rejected rather than truncated.

    Raises:
        InvalidPhaseStateError: If ``value`` is not a valid phase state.

    """
    try:
        tag = int(value)
    except (TypeError, ValueError, OverflowError) as err:
        raise InvalidPhaseStateError(f"Invalid phase state {value!r}.") from err
    if tag != value:
        raise InvalidPhaseStateError(f"Invalid phase state {value!r}.")
    try:
        return PhaseState(tag)
    except ValueError as err:
        raise InvalidPhaseStateError(f"Invalid phase state {value!r}.") from err



def update_node_state(
    node_solution: np.ndarray,
    phase_state: int,
    position: np.ndarray,
    problem: TwoPhaseTwoComponentProblem,
    temperature: float,
    energy: Optional[EnergyModel] = None,
) -> NodeState:
    """Compute the secondary variables of a vertex.

    Parameters:
        node_solution: Primary variables of the vertex.
        phase_state: Phase state of the vertex, determining the meaning of the
            switching primary variable.
        position: Coordinates of the vertex.
        problem: Constitutive relations.
        temperature: Temperature of the vertex.
        energy: ``default=None``

            Energy model, which may add energy related quantities to the state.

    Raises:
        InvalidPhaseStateError: If ``phase_state`` is not a valid phase state.

    Returns:
        The secondary variables.

    """
    state = as_phase_state(phase_state)
    p_w = float(node_solution[PW_INDEX])
    x = float(node_solution[SWITCH_INDEX])

    if state == PhaseState.BOTH_PHASES:
        sat_n = x
    elif state == PhaseState.WETTING_ONLY:
        sat_n = 0.0
    elif state == PhaseState.NONWETTING_ONLY:
        sat_n = 1.0
    else:
        raise InvalidPhaseStateError(f"Invalid phase state {state!r}.")
    sat_w = 1.0 - sat_n

    p_c = float(problem.material_law.capillary_pressure(sat_w, position))
    p_n = p_w + p_c

    # Mass fractions of the dissolved components, fixed by the solubility limits in
    # the two-phase region.
    if state == PhaseState.BOTH_PHASES:
        x_w_n = problem.solubility.x_aw(p_n, temperature)
        x_n_w = problem.solubility.x_wn(p_n, temperature)
    elif state == PhaseState.WETTING_ONLY:
        x_w_n = x
        x_n_w = 0.0
    else:
        x_w_n = 0.0
        x_n_w = x

    mass_fraction = np.zeros((NUM_COMPONENTS, NUM_PHASES))
    mass_fraction[N_COMP, W_PHASE] = x_w_n
    mass_fraction[W_COMP, W_PHASE] = 1.0 - x_w_n
    mass_fraction[W_COMP, N_PHASE] = x_n_w
    mass_fraction[N_COMP, N_PHASE] = 1.0 - x_n_w

    wetting = problem.wetting_phase
    nonwetting = problem.nonwetting_phase
    density = np.array(
        [
            wetting.density(temperature, p_w, x_w_n),
            nonwetting.density(temperature, p_n, x_n_w),
        ]
    )
    mobility = np.array(
        [
            problem.material_law.relperm_w(sat_w, position)
            / wetting.viscosity(temperature, p_w, x_w_n),
            problem.material_law.relperm_n(sat_n, position)
            / nonwetting.viscosity(temperature, p_n, x_n_w),
        ]
    )

    node_state = NodeState(
        p_w=p_w,
        p_c=p_c,
        p_n=p_n,
        sat_w=sat_w,
        sat_n=sat_n,
        density=density,
        mobility=mobility,
        mass_fraction=mass_fraction,
        phase_state=state,
        temperature=temperature,
    )
    if energy is not None:
        energy.update_node_state(node_state, problem)
    return node_state
