"""Energy balance of the two-phase two-component model.

The local assembler calls the hooks of an :class:`EnergyModel` at fixed points of the
evaluation of storage and flux terms. :class:`Isothermal` leaves all hooks empty and
prescribes a constant temperature, :class:`NonIsothermal` adds the temperature as third
primary variable and the energy balance as third equation.

"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

import numpy as np

from .._core import ENERGY_EQ, NUM_PHASES, T_DEFAULT, TEMPERATURE_INDEX

if TYPE_CHECKING:
    from ..grids import SubControlVolumeFace
    from ..materials.soil import Soil
    from .node_state import NodeState
    from .problem import TwoPhaseTwoComponentProblem

__all__ = ["EnergyModel", "Isothermal", "NonIsothermal"]


class EnergyModel(abc.ABC):
    """Interface of the energy extension of the box model."""

    num_equations: int
    """Number of primary variables, and of equations, per vertex."""

    @abc.abstractmethod
    def temperature(self, node_solution: np.ndarray) -> float:
        """Temperature of a vertex with the given primary variables."""

    def update_node_state(
        self, state: NodeState, problem: TwoPhaseTwoComponentProblem
    ) -> None:
        """Add energy related secondary variables to a freshly computed state."""

    def heat_storage(
        self, storage: np.ndarray, state: NodeState, porosity: float, soil: Soil
    ) -> None:
        """Add the stored energy of a sub-control volume to ``storage``."""

    def update_temperature_gradient(
        self,
        gradient: np.ndarray,
        shape_gradient: np.ndarray,
        node_solution: np.ndarray,
    ) -> None:
        """Add the contribution of a vertex to the temperature gradient at a face."""

    def advective_heat_flux(
        self,
        flux: np.ndarray,
        darcy_flux: np.ndarray,
        upwind_weight: float,
        upstream: tuple[NodeState, NodeState],
        downstream: tuple[NodeState, NodeState],
    ) -> None:
        """Add the heat transported with the phases across a face to ``flux``.

        Parameters:
            flux: Face flux to be modified.
            darcy_flux: Volumetric flux of each phase.
            upwind_weight: Weight of the upstream vertex.
            upstream: Upstream state per phase.
            downstream: Downstream state per phase.

        """

    def diffusive_heat_flux(
        self,
        flux: np.ndarray,
        face: SubControlVolumeFace,
        temperature_gradient: np.ndarray,
        soil: Soil,
    ) -> None:
        """Add the conductive heat flux across a face to ``flux``."""


class Isothermal(EnergyModel):
    """Constant temperature, no energy balance.

    Parameters:
        temperature: Temperature in ``[K]``.

    """

    num_equations = 2

    def __init__(self, temperature: float = T_DEFAULT) -> None:
        self._temperature = float(temperature)

    def __repr__(self) -> str:
        return f"Isothermal energy model at {self._temperature} K"

    def temperature(self, node_solution: np.ndarray) -> float:
        return self._temperature


class NonIsothermal(EnergyModel):
    """Energy balance with the temperature as additional primary variable.

    Fluids and solid are in local thermal equilibrium. Heat is transported by
    advection with the phases and by conduction through the fluid filled porous
    medium.

    """

    num_equations = 3

    def __repr__(self) -> str:
        return "Non-isothermal energy model"

    def temperature(self, node_solution: np.ndarray) -> float:
        return float(node_solution[TEMPERATURE_INDEX])

    def update_node_state(
        self, state: NodeState, problem: TwoPhaseTwoComponentProblem
    ) -> None:
        for phase, pressure in enumerate((state.p_w, state.p_n)):
            fluid = problem.fluid_phase(phase)
            # Fraction of the component dissolved in the phase.
            dissolved = state.mass_fraction[1 - phase, phase]
            state.enthalpy[phase] = fluid.enthalpy(
                state.temperature, pressure, dissolved
            )
            state.internal_energy[phase] = fluid.internal_energy(
                state.temperature, pressure, dissolved
            )

    def heat_storage(
        self, storage: np.ndarray, state: NodeState, porosity: float, soil: Soil
    ) -> None:
        fluid_energy = np.sum(state.density * state.internal_energy * state.saturation)
        solid_energy = (
            soil.density * soil.specific_heat_capacity * state.temperature
        )
        storage[ENERGY_EQ] = porosity * fluid_energy + (1.0 - porosity) * solid_energy

    def update_temperature_gradient(
        self,
        gradient: np.ndarray,
        shape_gradient: np.ndarray,
        node_solution: np.ndarray,
    ) -> None:
        gradient += shape_gradient * node_solution[TEMPERATURE_INDEX]

    def advective_heat_flux(
        self,
        flux: np.ndarray,
        darcy_flux: np.ndarray,
        upwind_weight: float,
        upstream: tuple[NodeState, NodeState],
        downstream: tuple[NodeState, NodeState],
    ) -> None:
        for phase in range(NUM_PHASES):
            up = upstream[phase]
            down = downstream[phase]
            flux[ENERGY_EQ] += darcy_flux[phase] * (
                upwind_weight
                * up.density[phase]
                * up.mobility[phase]
                * up.enthalpy[phase]
                + (1.0 - upwind_weight)
                * down.density[phase]
                * down.mobility[phase]
                * down.enthalpy[phase]
            )

    def diffusive_heat_flux(
        self,
        flux: np.ndarray,
        face: SubControlVolumeFace,
        temperature_gradient: np.ndarray,
        soil: Soil,
    ) -> None:
        # Fourier's law, outflow from vertex i.
        flux[ENERGY_EQ] -= soil.thermal_conductivity * np.dot(
            temperature_gradient, face.normal
        )
