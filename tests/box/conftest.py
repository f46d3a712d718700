"""Problem setups shared by the tests of the box discretization.

The fluids have constant properties and the material law is linear, such that storage
terms and fluxes can be computed by hand.

"""

from __future__ import annotations

from typing import Callable

import numpy as np
import pytest

import porebox as pb

WETTING_DENSITY = 1000.0
NONWETTING_DENSITY = 1.2
WETTING_VISCOSITY = 1e-3
NONWETTING_VISCOSITY = 2e-5
PERMEABILITY = 1e-12
POROSITY = 0.25
MAX_CAPILLARY_PRESSURE = 1000.0
X_AW = 1e-3
X_WN = 2e-2


def make_problem(**kwargs) -> pb.TwoPhaseTwoComponentProblem:
    """Problem with constant fluid properties. Keyword arguments replace the default
    members."""
    members = dict(
        material_law=pb.LinearMaterialLaw(max_pressure=MAX_CAPILLARY_PRESSURE),
        solubility=pb.ConstantSolubility(x_aw=X_AW, x_wn=X_WN),
        wetting_phase=pb.ConstantPhase(
            density_value=WETTING_DENSITY,
            viscosity_value=WETTING_VISCOSITY,
            specific_heat_capacity=4000.0,
        ),
        nonwetting_phase=pb.ConstantPhase(
            density_value=NONWETTING_DENSITY,
            viscosity_value=NONWETTING_VISCOSITY,
            specific_heat_capacity=1000.0,
        ),
        soil=pb.Soil(permeability=PERMEABILITY, porosity=POROSITY),
    )
    members.update(kwargs)
    return pb.TwoPhaseTwoComponentProblem(**members)


@pytest.fixture
def problem_factory() -> Callable[..., pb.TwoPhaseTwoComponentProblem]:
    return make_problem


@pytest.fixture
def problem() -> pb.TwoPhaseTwoComponentProblem:
    return make_problem()


@pytest.fixture
def cell_assembler(
    problem: pb.TwoPhaseTwoComponentProblem,
) -> Callable[..., pb.LocalAssembler]:
    """Factory of a local assembler on the single cell of the unit interval.

    The returned function takes the local solution, the phase states of the two
    vertices and optionally parameters and an energy model. The previous solution
    equals the current one.

    """

    def _make(
        solution: np.ndarray,
        phase_states: tuple[int, int] = (
            pb.PhaseState.BOTH_PHASES,
            pb.PhaseState.BOTH_PHASES,
        ),
        params: dict | None = None,
        energy: pb.EnergyModel | None = None,
    ) -> pb.LocalAssembler:
        grid = pb.line_grid(1)
        store = pb.PhaseStateStore(phase_states)
        assembler = pb.LocalAssembler(problem, store, energy=energy, params=params)
        solution = np.asarray(solution, dtype=float)
        assembler.set_cell(grid.cell_geometry(0), solution, solution)
        return assembler

    return _make
