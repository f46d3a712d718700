"""Global assembly and phase-state management of the two-phase two-component model.

The model owns the phase states of all vertices, and provides the hooks a Newton-type
solver calls around the nonlinear iterations of a time step:

- :meth:`TwoPhaseTwoComponentModel.assemble` after each update of the solution.
- :meth:`TwoPhaseTwoComponentModel.run_switch_pass` after each iteration.
- :meth:`TwoPhaseTwoComponentModel.update_successful` once a time step converged.
- :meth:`TwoPhaseTwoComponentModel.update_failed_try` if the iteration failed and
  the time step is repeated.

"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import numpy as np
import scipy.sparse as sps

import porebox as pb

from .._core import (
    DISAPPEARANCE_TOLERANCE,
    HARMONIC_MEAN_EPS,
    N_COMP,
    N_PHASE,
    SWITCH_TOLERANCE,
    T_DEFAULT,
    W_COMP,
    W_PHASE,
)
from ..grids import BoxGrid
from .energy import EnergyModel, Isothermal, NonIsothermal
from .local_assembler import LocalAssembler
from .node_state import update_node_state
from .phase_state import PhaseStateStore
from .problem import TwoPhaseTwoComponentProblem
from .switch import run_switch_pass

__all__ = ["TwoPhaseTwoComponentModel"]

logger = logging.getLogger(__name__)

module_sections = ["assembly", "models"]


class TwoPhaseTwoComponentModel:
    """Box discretization of two-phase two-component flow on a grid.

    Parameters:
        grid: The grid.
        problem: Constitutive relations, matrix properties and initial phase states.
        params: ``default=None``

            Parameters. In addition to those of
            :class:`~porebox.box.local_assembler.LocalAssembler`, the model supports

            - ``'switch_tolerance'``: Relative tolerance for the appearance of a phase.
            - ``'disappearance_tolerance'``: Absolute tolerance for the disappearance
              of a phase.
            - ``'non_isothermal'``: Solve the energy balance with the temperature as
              third primary variable. Defaults to False.

        energy: ``default=None``

            Energy model. Overrides ``params['non_isothermal']`` if given.

    """

    def __init__(
        self,
        grid: BoxGrid,
        problem: TwoPhaseTwoComponentProblem,
        params: Optional[dict[str, Any]] = None,
        energy: Optional[EnergyModel] = None,
    ) -> None:
        default_params: dict[str, Any] = {
            "upwind_weight": 1.0,
            "switch_tolerance": SWITCH_TOLERANCE,
            "disappearance_tolerance": DISAPPEARANCE_TOLERANCE,
            "harmonic_mean_eps": HARMONIC_MEAN_EPS,
            "enable_diffusion": False,
            "diffusion_coefficients": (2e-9, 2.25e-5),
            "numerical_epsilon": 1e-8,
            "temperature": T_DEFAULT,
            "non_isothermal": False,
        }
        if params is not None:
            default_params.update(params)
        self.params = default_params
        """Parameters of the model."""

        self.grid = grid
        self.problem = problem

        if energy is None:
            energy = (
                NonIsothermal()
                if self.params["non_isothermal"]
                else Isothermal(self.params["temperature"])
            )
        self.energy: EnergyModel = energy
        """Energy model, shared with the local assembler."""

        self.phase_states = PhaseStateStore(self.initial_phase_states())
        """Current and accepted phase states of the vertices."""

        self.local_assembler = LocalAssembler(
            problem, self.phase_states, self.energy, self.params
        )
        """Assembler of the cell contributions."""

    def __repr__(self) -> str:
        return (
            f"Two-phase two-component box model on {self.grid!r}, "
            f"{self.energy!r}, {self.phase_states!r}"
        )

    @property
    def num_equations(self) -> int:
        """Number of equations, and primary variables, per vertex."""
        return self.energy.num_equations

    @property
    def num_dofs(self) -> int:
        """Total number of degrees of freedom."""
        return self.grid.num_nodes * self.num_equations

    @property
    def switched(self) -> bool:
        """Whether the last switch pass changed any phase state."""
        return self.phase_states.switched

    def initial_phase_states(self) -> list[int]:
        """Phase states of all vertices as prescribed by the problem."""
        return [
            self.problem.phase_state_at(v, self.grid.vertex_position(v))
            for v in range(self.grid.num_nodes)
        ]

    def reset_phase_states(self) -> None:
        """Reset current and accepted phase states to the initial ones."""
        self.phase_states.reset(self.initial_phase_states())

    @pb.time_logger(sections=module_sections)
    def run_switch_pass(self, solution: np.ndarray) -> bool:
        """Switch primary variables of vertices where a phase appears or disappears.

        Parameters:
            solution: Primary variables, shape ``(num_nodes, num_equations)``. The
                switching variable is modified in place.

        Returns:
            True if the phase state of any vertex changed.

        """
        self._check_solution(solution)
        switched = run_switch_pass(
            solution,
            self.phase_states,
            self.grid,
            self.problem,
            self.energy,
            self.params["switch_tolerance"],
            self.params["disappearance_tolerance"],
        )
        if switched:
            logger.debug(f"Switch pass finished, {self.phase_states!r}")
        return switched

    def commit_phase_state(self) -> None:
        """Accept the current phase states."""
        self.phase_states.commit()

    def rollback_phase_state(self) -> None:
        """Reset the current phase states to the accepted ones."""
        self.phase_states.rollback()

    def update_successful(self) -> None:
        """Called after a converged time step."""
        self.commit_phase_state()

    def update_failed_try(self, solution: np.ndarray) -> None:
        """Called after a failed nonlinear iteration, before the time step is repeated.

        The phase states are reset to the accepted ones, and the switch pass is run on
        ``solution``, which usually is the solution of the previous time step.

        """
        self.rollback_phase_state()
        self.run_switch_pass(solution)

    @pb.time_logger(sections=module_sections)
    def assemble(
        self, solution: np.ndarray, previous_solution: np.ndarray, dt: float
    ) -> tuple[np.ndarray, sps.csr_matrix]:
        """Assemble residual and Jacobian of the discrete balance equations.

        Parameters:
            solution: Primary variables at the current iterate, shape ``(num_nodes,
                num_equations)``.
            previous_solution: Primary variables at the previous time step.
            dt: Time step size.

        Raises:
            ValueError: If ``dt`` is not positive, or a solution has the wrong shape.

        Returns:
            The residual, with the equations of each vertex stored contiguously, and
            its Jacobian with respect to the primary variables in the same ordering.

        """
        if dt <= 0:
            raise ValueError(f"Time step size must be positive, got {dt}.")
        self._check_solution(solution)
        self._check_solution(previous_solution)

        tic = time.time()
        n = self.num_equations
        residual = np.zeros(self.num_dofs)
        rows: list[np.ndarray] = []
        cols: list[np.ndarray] = []
        data: list[np.ndarray] = []
        for c in range(self.grid.num_cells):
            geo = self.grid.cell_geometry(c)
            self.local_assembler.set_cell(
                geo, solution[geo.vertices], previous_solution[geo.vertices]
            )
            local_residual = self.local_assembler.local_residual(dt)
            local_jacobian = self.local_assembler.local_jacobian(dt, local_residual)

            dofs = (geo.vertices[:, None] * n + np.arange(n)).ravel()
            np.add.at(residual, dofs, local_residual.ravel())
            rows.append(np.repeat(dofs, dofs.size))
            cols.append(np.tile(dofs, dofs.size))
            data.append(local_jacobian.ravel())

        # Duplicate entries are summed in the conversion.
        jacobian = sps.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(self.num_dofs, self.num_dofs),
        ).tocsr()
        logger.debug(f"Assembled linear system in {time.time() - tic:.2e} seconds.")
        return residual, jacobian

    def vtk_fields(self, solution: np.ndarray) -> dict[str, np.ndarray]:
        """Secondary variables at the vertices, for visualization.

        Parameters:
            solution: Primary variables, shape ``(num_nodes, num_equations)``.

        Returns:
            Vertex fields keyed by name.

        """
        self._check_solution(solution)
        names = [
            "pW",
            "pN",
            "pC",
            "Sw",
            "Sn",
            "mobW",
            "mobN",
            "Xaw",
            "Xaa",
            "Xww",
            "Xwa",
            "T",
            "phase state",
        ]
        fields = {name: np.zeros(self.grid.num_nodes) for name in names}
        for v in range(self.grid.num_nodes):
            state = update_node_state(
                solution[v],
                self.phase_states[v],
                self.grid.vertex_position(v),
                self.problem,
                self.energy.temperature(solution[v]),
                self.energy,
            )
            fields["pW"][v] = state.p_w
            fields["pN"][v] = state.p_n
            fields["pC"][v] = state.p_c
            fields["Sw"][v] = state.sat_w
            fields["Sn"][v] = state.sat_n
            fields["mobW"][v] = state.mobility[W_PHASE]
            fields["mobN"][v] = state.mobility[N_PHASE]
            # Mass fraction of component in phase, air (a) and water (w).
            fields["Xaw"][v] = state.mass_fraction[N_COMP, W_PHASE]
            fields["Xaa"][v] = state.mass_fraction[N_COMP, N_PHASE]
            fields["Xww"][v] = state.mass_fraction[W_COMP, W_PHASE]
            fields["Xwa"][v] = state.mass_fraction[W_COMP, N_PHASE]
            fields["T"][v] = state.temperature
            fields["phase state"][v] = state.phase_state
        return fields

    def _check_solution(self, solution: np.ndarray) -> None:
        shape = (self.grid.num_nodes, self.num_equations)
        if np.shape(solution) != shape:
            raise ValueError(
                f"Expected a solution of shape {shape}, got {np.shape(solution)}."
            )
