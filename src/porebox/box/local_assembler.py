"""Local assembly of the box discretization on a single cell.

The :class:`LocalAssembler` evaluates storage terms of the sub-control volumes and
fluxes across the sub-control-volume faces of one cell at a time. Secondary variables
of the vertices are cached in :class:`~porebox.box.node_state.NodeState` objects, for
the current iterate and the previous time step.

Perturbing a single primary variable, as required for a numerical Jacobian, only
recomputes the cached state of the perturbed vertex, see :meth:`LocalAssembler.deflect`
and :meth:`LocalAssembler.restore`.

Example:

    .. code:: python

        assembler = LocalAssembler(problem, phase_states)
        assembler.set_cell(grid.cell_geometry(0), solution[v], previous[v])
        with assembler.deflected(0, pb.PW_INDEX, solution[v[0], 0] + 1.0):
            flux = assembler.compute_flux(0)

"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import numpy as np

from .._core import (
    HARMONIC_MEAN_EPS,
    N_COMP,
    N_COMP_EQ,
    N_PHASE,
    NUM_PHASES,
    T_DEFAULT,
    W_COMP,
    W_COMP_EQ,
    W_PHASE,
    PhaseState,
)
from ..grids import CellGeometry, SubControlVolumeFace
from .energy import EnergyModel, Isothermal
from .node_state import NodeState, update_node_state
from .phase_state import PhaseStateStore
from .problem import TwoPhaseTwoComponentProblem
from .utils import DeflectionError, harmonic_mean_tensor

__all__ = ["LocalAssembler"]


@dataclass
class _Deflection:
    """Record of the unperturbed data of a deflected vertex."""

    node: int
    solution: np.ndarray
    state: NodeState


class LocalAssembler:
    """Storage and flux terms of the two-phase two-component box model on a cell.

    Supported parameters are

    - ``'upwind_weight'``: Weight of the upstream vertex in the advective fluxes,
      in ``[0, 1]``. Defaults to 1 (full upwinding).
    - ``'harmonic_mean_eps'``: Regularization of the harmonic mean of the vertex
      permeabilities.
    - ``'enable_diffusion'``: Add molecular diffusion to the component fluxes.
      Defaults to False.
    - ``'diffusion_coefficients'``: Diffusion coefficients in the wetting and the
      nonwetting phase, in ``[m^2 / s]``.
    - ``'numerical_epsilon'``: Relative perturbation of the primary variables for
      the numerical Jacobian.
    - ``'temperature'``: Temperature of the isothermal model, used only if no energy
      model is given.

    Parameters:
        problem: Constitutive relations.
        phase_states: Phase states of the vertices of the grid.
        energy: ``default=None``

            Energy model. Defaults to an isothermal model.
        params: ``default=None``

            Parameters, see above.

    Raises:
        ValueError: If the upwind weight is outside ``[0, 1]``.

    """

    def __init__(
        self,
        problem: TwoPhaseTwoComponentProblem,
        phase_states: PhaseStateStore,
        energy: Optional[EnergyModel] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        default_params: dict[str, Any] = {
            "upwind_weight": 1.0,
            "harmonic_mean_eps": HARMONIC_MEAN_EPS,
            "enable_diffusion": False,
            "diffusion_coefficients": (2e-9, 2.25e-5),
            "numerical_epsilon": 1e-8,
            "temperature": T_DEFAULT,
        }
        if params is not None:
            default_params.update(params)
        self.params = default_params
        """Parameters of the discretization."""

        if not 0.0 <= self.params["upwind_weight"] <= 1.0:
            raise ValueError(
                f"Upwind weight {self.params['upwind_weight']} not in [0, 1]."
            )

        self.problem = problem
        self.phase_states = phase_states
        self.energy: EnergyModel = (
            Isothermal(self.params["temperature"]) if energy is None else energy
        )

        self.geometry: Optional[CellGeometry] = None
        """Geometry of the cell currently assembled."""

        self.current_solution: np.ndarray = np.zeros((0, self.num_equations))
        """Primary variables of the cell vertices at the current iterate."""

        self.previous_solution: np.ndarray = np.zeros((0, self.num_equations))
        """Primary variables of the cell vertices at the previous time step."""

        self.current_cache: list[NodeState] = []
        """Secondary variables of the cell vertices at the current iterate."""

        self.previous_cache: list[NodeState] = []
        """Secondary variables of the cell vertices at the previous time step."""

        self._deflection: Optional[_Deflection] = None

    @property
    def num_equations(self) -> int:
        """Number of equations, and primary variables, per vertex."""
        return self.energy.num_equations

    def set_cell(
        self,
        geometry: CellGeometry,
        current_solution: np.ndarray,
        previous_solution: np.ndarray,
    ) -> None:
        """Prepare the assembly of a cell and fill both caches.

        Parameters:
            geometry: Geometry of the cell.
            current_solution: Primary variables of the cell vertices at the current
                iterate, shape ``(num_vertices, num_equations)``.
            previous_solution: Primary variables at the previous time step.

        Raises:
            DeflectionError: If a vertex of the previous cell is still deflected.
            ValueError: If the solutions have the wrong shape.

        """
        if self._deflection is not None:
            raise DeflectionError(
                f"Vertex {self._deflection.node} is deflected, restore it first."
            )
        shape = (geometry.num_vertices, self.num_equations)
        current = np.array(current_solution, dtype=float)
        previous = np.array(previous_solution, dtype=float)
        if current.shape != shape or previous.shape != shape:
            raise ValueError(
                f"Expected local solutions of shape {shape}, got {current.shape} "
                f"and {previous.shape}."
            )
        self.geometry = geometry
        self.current_solution = current
        self.previous_solution = previous
        self.rebuild_cache(use_previous=False)
        self.rebuild_cache(use_previous=True)

    def rebuild_cache(self, use_previous: bool = False) -> None:
        """Recompute the cached secondary variables of all vertices of the cell.

        Parameters:
            use_previous: If True, the cache of the previous time step is rebuilt, using
                the accepted phase states. Otherwise the cache of the current iterate.

        """
        geo = self._cell()
        cache = []
        for k, vertex in enumerate(geo.vertices):
            if use_previous:
                cache.append(
                    self._update_node(
                        self.previous_solution[k],
                        self.phase_states.previous_at(vertex),
                        k,
                    )
                )
            else:
                cache.append(
                    self._update_node(
                        self.current_solution[k], self.phase_states[vertex], k
                    )
                )
        if use_previous:
            self.previous_cache = cache
        else:
            self.current_cache = cache

    def compute_storage(self, scv: int, use_previous: bool = False) -> np.ndarray:
        """Conserved quantities per unit volume in a sub-control volume.

        Parameters:
            scv: Local index of the vertex of the sub-control volume.
            use_previous: Evaluate at the previous time step instead of the current
                iterate.

        Returns:
            Mass of each component, and the energy for non-isothermal models, per
            unit volume.

        """
        geo = self._cell()
        state = self.previous_cache[scv] if use_previous else self.current_cache[scv]
        porosity = self.problem.soil.porosity(geo.vertices[scv], geo.positions[scv])

        storage = np.zeros(self.num_equations)
        saturation = state.saturation
        for comp, eq in ((W_COMP, W_COMP_EQ), (N_COMP, N_COMP_EQ)):
            storage[eq] = porosity * np.sum(
                state.density * saturation * state.mass_fraction[comp]
            )
        self.energy.heat_storage(storage, state, porosity, self.problem.soil)
        return storage

    def face_permeability(self, face: SubControlVolumeFace) -> np.ndarray:
        """Harmonic mean of the permeabilities of the two vertices of a face."""
        geo = self._cell()
        soil = self.problem.soil
        K_i = soil.permeability(geo.vertices[face.i], geo.positions[face.i])
        K_j = soil.permeability(geo.vertices[face.j], geo.positions[face.j])
        return harmonic_mean_tensor(K_i, K_j, self.params["harmonic_mean_eps"])

    def darcy_flux(self, face_index: int) -> np.ndarray:
        """Volumetric flux of each phase across a face, without mobility.

        The flux is positive for flow from vertex ``i`` to vertex ``j`` of the face.

        """
        return self._face_gradients(self._cell().faces[face_index])[0]

    def compute_flux(self, face_index: int) -> np.ndarray:
        """Outflow of the conserved quantities from vertex ``i`` to vertex ``j`` of a
        sub-control-volume face.

        Parameters:
            face_index: Index of the face in the cell.

        Returns:
            Mass flux of each component, and the energy flux for non-isothermal
            models.

        """
        geo = self._cell()
        face = geo.faces[face_index]
        darcy, fraction_grad, temperature_grad = self._face_gradients(face)

        cache = self.current_cache
        alpha = self.params["upwind_weight"]
        flux = np.zeros(self.num_equations)

        upstream = []
        downstream = []
        for phase in range(NUM_PHASES):
            if darcy[phase] >= 0:
                up, down = cache[face.i], cache[face.j]
            else:
                up, down = cache[face.j], cache[face.i]
            upstream.append(up)
            downstream.append(down)
            for comp, eq in ((W_COMP, W_COMP_EQ), (N_COMP, N_COMP_EQ)):
                flux[eq] += darcy[phase] * (
                    alpha
                    * up.density[phase]
                    * up.mobility[phase]
                    * up.mass_fraction[comp, phase]
                    + (1.0 - alpha)
                    * down.density[phase]
                    * down.mobility[phase]
                    * down.mass_fraction[comp, phase]
                )

        self.energy.advective_heat_flux(
            flux, darcy, alpha, tuple(upstream), tuple(downstream)
        )
        self.energy.diffusive_heat_flux(
            flux, face, temperature_grad, self.problem.soil
        )

        if self.params["enable_diffusion"]:
            self._add_diffusive_flux(flux, face, fraction_grad)
        return flux

    def deflect(self, node: int, component: int, value: float) -> None:
        """Set a primary variable of a vertex and update its cached state.

        The unperturbed solution and state of the vertex are recorded on the first
        deflection, and put back by :meth:`restore`. Repeated deflections of the same
        vertex are allowed.

        Parameters:
            node: Local index of the vertex.
            component: Index of the primary variable.
            value: New value of the primary variable.

        Raises:
            DeflectionError: If another vertex is deflected.

        """
        if self._deflection is None:
            self._deflection = _Deflection(
                node=node,
                solution=self.current_solution[node].copy(),
                state=self.current_cache[node],
            )
        elif self._deflection.node != node:
            raise DeflectionError(
                f"Cannot deflect vertex {node} while vertex "
                f"{self._deflection.node} is deflected."
            )
        vertex = self._cell().vertices[node]
        self.current_solution[node, component] = value
        self.current_cache[node] = self._update_node(
            self.current_solution[node], self.phase_states[vertex], node
        )

    def restore(self, node: int, component: int) -> None:
        """Undo all deflections of a vertex.

        Raises:
            DeflectionError: If the vertex is not deflected.

        """
        if self._deflection is None or self._deflection.node != node:
            raise DeflectionError(f"Vertex {node} is not deflected.")
        self.current_solution[node] = self._deflection.solution
        self.current_cache[node] = self._deflection.state
        self._deflection = None

    @contextmanager
    def deflected(
        self, node: int, component: int, value: float
    ) -> Iterator[NodeState]:
        """Deflect a primary variable for the duration of a ``with`` block.

        The vertex is restored when the block is left, also if an exception is raised.
        Within a block deflecting the same vertex, only the inner deflection is undone.

        Yields:
            The cached state of the deflected vertex.

        """
        nested = self._deflection is not None and self._deflection.node == node
        if nested:
            saved_value = self.current_solution[node, component]
            saved_state = self.current_cache[node]
        try:
            self.deflect(node, component, value)
            yield self.current_cache[node]
        finally:
            if nested:
                self.current_solution[node, component] = saved_value
                self.current_cache[node] = saved_state
            elif self._deflection is not None and self._deflection.node == node:
                self.restore(node, component)

    def local_residual(self, dt: float) -> np.ndarray:
        """Residual of the balance equations of all vertices of the cell.

        Parameters:
            dt: Time step size.

        Returns:
            Residual of shape ``(num_vertices, num_equations)``.

        """
        geo = self._cell()
        residual = np.zeros((geo.num_vertices, self.num_equations))
        for scv in range(geo.num_vertices):
            residual[scv] = (
                (
                    self.compute_storage(scv)
                    - self.compute_storage(scv, use_previous=True)
                )
                * geo.scv_volumes[scv]
                / dt
            )
        for f, face in enumerate(geo.faces):
            flux = self.compute_flux(f)
            residual[face.i] += flux
            residual[face.j] -= flux
        return residual

    def local_jacobian(
        self, dt: float, residual: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """Finite difference approximation of the derivative of the local residual.

        Parameters:
            dt: Time step size.
            residual: ``default=None``

                The unperturbed local residual, if already computed.

        Returns:
            Jacobian of shape ``(num_vertices * num_equations, num_vertices *
            num_equations)``. Rows and columns are ordered vertex by vertex.

        """
        geo = self._cell()
        if residual is None:
            residual = self.local_residual(dt)
        base = residual.ravel()
        n = self.num_equations
        jacobian = np.zeros((base.size, geo.num_vertices * n))
        eps = self.params["numerical_epsilon"]
        for node in range(geo.num_vertices):
            for component in range(n):
                value = self.current_solution[node, component]
                delta = max(eps * abs(value), 1e-10)
                with self.deflected(node, component, value + delta):
                    perturbed = self.local_residual(dt).ravel()
                jacobian[:, node * n + component] = (perturbed - base) / delta
        return jacobian

    def _cell(self) -> CellGeometry:
        if self.geometry is None:
            raise ValueError("No cell set, call set_cell first.")
        return self.geometry

    def _update_node(
        self, node_solution: np.ndarray, phase_state: PhaseState, local_index: int
    ) -> NodeState:
        return update_node_state(
            node_solution,
            phase_state,
            self._cell().positions[local_index],
            self.problem,
            self.energy.temperature(node_solution),
            self.energy,
        )

    def _face_gradients(
        self, face: SubControlVolumeFace
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Darcy fluxes, and gradients of the dissolved mass fractions and the
        temperature at a face."""
        geo = self._cell()
        cache = self.current_cache

        pressure_grad = np.zeros((NUM_PHASES, geo.dim))
        fraction_grad = np.zeros((NUM_PHASES, geo.dim))
        temperature_grad = np.zeros(geo.dim)
        for k, state in enumerate(cache):
            shape_grad = face.grad[k]
            pressure_grad[W_PHASE] += shape_grad * state.p_w
            pressure_grad[N_PHASE] += shape_grad * state.p_n
            fraction_grad[W_PHASE] += shape_grad * state.mass_fraction[N_COMP, W_PHASE]
            fraction_grad[N_PHASE] += shape_grad * state.mass_fraction[W_COMP, N_PHASE]
            self.energy.update_temperature_gradient(
                temperature_grad, shape_grad, self.current_solution[k]
            )

        # Potential gradients, with the density of vertex i.
        gravity = self.problem.gravity_vector(geo.dim)
        for phase in range(NUM_PHASES):
            pressure_grad[phase] -= cache[face.i].density[phase] * gravity

        K = self.face_permeability(face)
        darcy = np.array(
            [
                -np.dot(K @ pressure_grad[phase], face.normal)
                for phase in range(NUM_PHASES)
            ]
        )
        return darcy, fraction_grad, temperature_grad

    def _add_diffusive_flux(
        self,
        flux: np.ndarray,
        face: SubControlVolumeFace,
        fraction_grad: np.ndarray,
    ) -> None:
        """Add Fickian diffusion of the dissolved components to ``flux``."""
        cache = self.current_cache
        state_i, state_j = cache[face.i], cache[face.j]
        d_w, d_n = self.params["diffusion_coefficients"]

        # No diffusion in a phase which is absent at one of the vertices.
        states = (state_i.phase_state, state_j.phase_state)
        if PhaseState.NONWETTING_ONLY in states:
            d_w = 0.0
        if PhaseState.WETTING_ONLY in states:
            d_n = 0.0

        density = 0.5 * (state_i.density + state_j.density)
        # Outflow of the nonwetting component in the wetting phase, and of the wetting
        # component in the nonwetting phase. The solvent moves in opposite direction.
        out_n_in_w = (
            -d_w * density[W_PHASE] * np.dot(fraction_grad[W_PHASE], face.normal)
        )
        out_w_in_n = (
            -d_n * density[N_PHASE] * np.dot(fraction_grad[N_PHASE], face.normal)
        )
        flux[W_COMP_EQ] += out_w_in_n - out_n_in_w
        flux[N_COMP_EQ] += out_n_in_w - out_w_in_n
