"""Tests of the storage and flux terms of the local assembler, and of the
perturbation of vertex states.

All tests use the single cell of the unit interval, with the vertex at ``x = 0`` as
local vertex 0 (``i`` of the only face) and the vertex at ``x = 1`` as local vertex 1
(``j``). The face normal points in positive x-direction and has unit area.

"""

from __future__ import annotations

import numpy as np
import pytest

import porebox as pb


def advective_flux(q, up, down, weight=1.0):
    """Component fluxes for given Darcy fluxes and upstream/downstream states."""
    flux = np.zeros(2)
    for phase in range(2):
        for comp in range(2):
            flux[comp] += q[phase] * (
                weight
                * up[phase].density[phase]
                * up[phase].mobility[phase]
                * up[phase].mass_fraction[comp, phase]
                + (1 - weight)
                * down[phase].density[phase]
                * down[phase].mobility[phase]
                * down[phase].mass_fraction[comp, phase]
            )
    return flux


def test_storage(cell_assembler, problem):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    storage = assembler.compute_storage(0)
    rho_w = problem.wetting_phase.density_value
    rho_n = problem.nonwetting_phase.density_value
    phi = 0.25
    assert np.isclose(
        storage[pb.W_COMP_EQ], phi * (rho_w * 0.7 * (1 - 1e-3) + rho_n * 0.3 * 2e-2)
    )
    assert np.isclose(
        storage[pb.N_COMP_EQ], phi * (rho_n * 0.3 * (1 - 2e-2) + rho_w * 0.7 * 1e-3)
    )
    # Previous and current solution coincide.
    assert np.array_equal(storage, assembler.compute_storage(0, use_previous=True))


def test_flux_from_i_to_j(cell_assembler):
    """Pressure decreases from i to j: the flow is directed from i to j, i is
    upstream and the outflow from i is positive."""
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    i, j = assembler.current_cache

    q = -1e-12 * np.array([j.p_w - i.p_w, j.p_n - i.p_n])
    assert np.all(q > 0)
    assert np.allclose(assembler.darcy_flux(0), q, rtol=1e-12, atol=0)

    flux = assembler.compute_flux(0)
    assert np.allclose(flux, advective_flux(q, (i, i), (j, j)), rtol=1e-12, atol=0)
    assert np.all(flux > 0)


def test_flux_from_j_to_i(cell_assembler):
    """Reversed pressure gradient: j is upstream, the outflow from i is negative."""
    assembler = cell_assembler([[1e5, 0.3], [2e5, 0.6]])
    i, j = assembler.current_cache

    q = -1e-12 * np.array([j.p_w - i.p_w, j.p_n - i.p_n])
    assert np.all(q < 0)
    flux = assembler.compute_flux(0)
    assert np.allclose(flux, advective_flux(q, (j, j), (i, i)), rtol=1e-12, atol=0)
    assert np.all(flux < 0)


def test_upwind_direction_per_phase(cell_assembler):
    """Capillary pressure drives the nonwetting phase against the wetting phase."""
    # p_w drops by 100 Pa from i to j, p_n increases by 400 Pa.
    assembler = cell_assembler([[1e5, 0.1], [1e5 - 100, 0.6]])
    i, j = assembler.current_cache
    q = assembler.darcy_flux(0)
    assert q[pb.W_PHASE] > 0
    assert q[pb.N_PHASE] < 0
    flux = assembler.compute_flux(0)
    assert np.allclose(flux, advective_flux(q, (i, j), (j, i)), rtol=1e-12, atol=0)


def test_zero_flux(cell_assembler):
    assembler = cell_assembler([[1e5, 0.3], [1e5, 0.3]])
    assert np.all(assembler.darcy_flux(0) == 0)
    assert np.all(assembler.compute_flux(0) == 0)


def test_upwind_weight(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]], params={"upwind_weight": 0.5})
    i, j = assembler.current_cache
    q = assembler.darcy_flux(0)
    flux = assembler.compute_flux(0)
    assert np.allclose(
        flux, advective_flux(q, (i, i), (j, j), weight=0.5), rtol=1e-12, atol=0
    )


@pytest.mark.parametrize("weight", [-0.1, 1.5])
def test_invalid_upwind_weight(cell_assembler, weight):
    with pytest.raises(ValueError):
        cell_assembler([[1e5, 0.3], [1e5, 0.3]], params={"upwind_weight": weight})


def test_hydrostatic_wetting_phase(problem_factory):
    """Gravity balances the pressure gradient of a hydrostatic wetting phase."""
    problem = problem_factory(gravity=np.array([-9.81, 0.0, 0.0]))
    grid = pb.line_grid(1)
    store = pb.PhaseStateStore([pb.PhaseState.BOTH_PHASES] * 2)
    assembler = pb.LocalAssembler(problem, store)
    rho_w = problem.wetting_phase.density_value
    solution = np.array([[1e5, 0.3], [1e5 - 9.81 * rho_w, 0.3]])
    assembler.set_cell(grid.cell_geometry(0), solution, solution)
    q = assembler.darcy_flux(0)
    assert abs(q[pb.W_PHASE]) < 1e-20
    # The light nonwetting phase rises in positive x-direction.
    assert q[pb.N_PHASE] > 0


def test_heterogeneous_permeability(problem_factory):
    problem = problem_factory(
        soil=pb.Soil(
            permeability=pb.SecondOrderTensor(np.array([4e-12, 1e-12])),
            porosity=0.25,
        )
    )
    grid = pb.line_grid(1)
    store = pb.PhaseStateStore([pb.PhaseState.BOTH_PHASES] * 2)
    assembler = pb.LocalAssembler(problem, store)
    solution = np.array([[2e5, 0.3], [1e5, 0.3]])
    assembler.set_cell(grid.cell_geometry(0), solution, solution)
    face = grid.cell_geometry(0).faces[0]
    assert np.isclose(assembler.face_permeability(face)[0, 0], 1.6e-12)
    assert np.isclose(assembler.darcy_flux(0)[pb.W_PHASE], 1.6e-12 * 1e5)


def test_diffusion(cell_assembler):
    solution = [[1e5, 2e-3], [1e5, 1e-3]]
    states = (pb.PhaseState.WETTING_ONLY, pb.PhaseState.WETTING_ONLY)
    # Diffusion is off by default.
    assembler = cell_assembler(solution, states)
    assert np.all(assembler.compute_flux(0) == 0)

    assembler = cell_assembler(solution, states, params={"enable_diffusion": True})
    flux = assembler.compute_flux(0)
    # The dissolved component diffuses from i to j, the solvent in the opposite
    # direction.
    expected = 2e-9 * 1000.0 * 1e-3
    assert np.isclose(flux[pb.N_COMP_EQ], expected)
    assert np.isclose(flux[pb.W_COMP_EQ], -expected)


def test_no_diffusion_in_absent_phase(cell_assembler):
    """The wetting phase is absent at j, no diffusion takes place in it."""
    solution = [[1e5, 0.3], [1e5, 1e-2]]
    states = (pb.PhaseState.BOTH_PHASES, pb.PhaseState.NONWETTING_ONLY)
    params = {"enable_diffusion": True, "diffusion_coefficients": (1.0, 0.0)}
    assembler = cell_assembler(solution, states, params=params)
    with_diffusion = assembler.compute_flux(0)
    assembler = cell_assembler(solution, states)
    assert np.allclose(with_diffusion, assembler.compute_flux(0), rtol=1e-14, atol=0)


def test_deflect_and_restore_are_bit_identical(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    solution = assembler.current_solution.copy()
    cache = list(assembler.current_cache)
    flux = assembler.compute_flux(0)
    storage = assembler.compute_storage(0)

    assembler.deflect(0, pb.PW_INDEX, 2.5e5)
    assert assembler.current_solution[0, pb.PW_INDEX] == 2.5e5
    assert assembler.current_cache[0] is not cache[0]
    assert assembler.current_cache[0].p_w == 2.5e5
    # Only the deflected vertex is updated.
    assert assembler.current_cache[1] is cache[1]
    assert not np.array_equal(assembler.compute_flux(0), flux)

    # Repeated deflections of the same vertex.
    assembler.deflect(0, pb.SWITCH_INDEX, 0.5)
    assembler.restore(0, pb.SWITCH_INDEX)

    assert np.array_equal(assembler.current_solution, solution)
    assert assembler.current_cache[0] is cache[0]
    assert np.array_equal(assembler.compute_flux(0), flux)
    assert np.array_equal(assembler.compute_storage(0), storage)


def test_illegal_deflections(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    with pytest.raises(pb.DeflectionError):
        assembler.restore(0, pb.PW_INDEX)

    assembler.deflect(0, pb.PW_INDEX, 2.5e5)
    with pytest.raises(pb.DeflectionError):
        assembler.deflect(1, pb.PW_INDEX, 2.5e5)
    with pytest.raises(pb.DeflectionError):
        assembler.restore(1, pb.PW_INDEX)
    with pytest.raises(pb.DeflectionError):
        assembler.set_cell(
            assembler.geometry,
            assembler.current_solution,
            assembler.previous_solution,
        )
    assembler.restore(0, pb.PW_INDEX)


def test_deflected_context(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    solution = assembler.current_solution.copy()
    state = assembler.current_cache[1]

    with assembler.deflected(1, pb.SWITCH_INDEX, 0.7) as deflected_state:
        assert deflected_state.sat_n == 0.7
        # Nested deflection of the same vertex.
        with assembler.deflected(1, pb.PW_INDEX, 3e5):
            assert assembler.current_cache[1].p_w == 3e5
            assert assembler.current_cache[1].sat_n == 0.7
        assert assembler.current_solution[1, pb.PW_INDEX] == 1e5
        assert assembler.current_cache[1] is deflected_state

    assert assembler.current_cache[1] is state
    assert np.array_equal(assembler.current_solution, solution)

    # The vertex is restored if the block is left by an exception.
    with pytest.raises(RuntimeError):
        with assembler.deflected(1, pb.PW_INDEX, 3e5):
            raise RuntimeError
    assert assembler.current_cache[1] is state
    assert np.array_equal(assembler.current_solution, solution)

    # A failing deflection of another vertex leaves the first one deflected.
    with assembler.deflected(0, pb.PW_INDEX, 3e5):
        with pytest.raises(pb.DeflectionError):
            with assembler.deflected(1, pb.PW_INDEX, 3e5):
                pass
        assert assembler.current_solution[0, pb.PW_INDEX] == 3e5
    assert np.array_equal(assembler.current_solution, solution)


def test_local_residual_is_conservative(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    residual = assembler.local_residual(dt=10.0)
    assert residual.shape == (2, 2)
    assert np.allclose(residual[0], assembler.compute_flux(0), rtol=1e-14, atol=0)
    assert np.allclose(residual.sum(axis=0), 0, atol=1e-20)


def test_local_residual_time_derivative(problem):
    grid = pb.line_grid(1)
    store = pb.PhaseStateStore([pb.PhaseState.BOTH_PHASES] * 2)
    assembler = pb.LocalAssembler(problem, store)
    current = np.array([[1e5, 0.4], [1e5, 0.4]])
    previous = np.array([[1e5, 0.3], [1e5, 0.3]])
    assembler.set_cell(grid.cell_geometry(0), current, previous)

    dt = 2.0
    expected = (
        (assembler.compute_storage(0) - assembler.compute_storage(0, use_previous=True))
        * 0.5
        / dt
    )
    residual = assembler.local_residual(dt)
    assert np.allclose(residual[0], expected)
    assert np.allclose(residual[1], expected)


def test_local_jacobian(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    dt = 10.0
    residual = assembler.local_residual(dt)
    jacobian = assembler.local_jacobian(dt)
    assert jacobian.shape == (4, 4)
    # The solution is left untouched.
    assert np.array_equal(assembler.local_residual(dt), residual)

    # With constant fluid properties, the residual is linear in the pressures.
    for node in range(2):
        with assembler.deflected(
            node, pb.PW_INDEX, assembler.current_solution[node, 0] + 1.0
        ):
            perturbed = assembler.local_residual(dt)
        column = jacobian[:, node * 2 + pb.PW_INDEX]
        assert np.allclose(column, (perturbed - residual).ravel(), rtol=1e-5)


def test_wrong_local_solution_shape(cell_assembler):
    assembler = cell_assembler([[2e5, 0.3], [1e5, 0.6]])
    with pytest.raises(ValueError):
        assembler.set_cell(assembler.geometry, np.zeros((2, 3)), np.zeros((2, 3)))


def test_previous_cache_uses_accepted_phase_states(problem):
    """The previous time step is evaluated with the phase states of the last
    accepted time step, also after a vertex was switched in the current iterate."""
    W = pb.PhaseState.WETTING_ONLY
    B = pb.PhaseState.BOTH_PHASES
    store = pb.PhaseStateStore([B, B])
    store[0] = W
    assembler = pb.LocalAssembler(problem, store)
    current = np.array([[1e5, 5e-4], [1e5, 0.3]])
    previous = np.array([[1e5, 0.3], [1e5, 0.3]])
    assembler.set_cell(pb.line_grid(1).cell_geometry(0), current, previous)

    assert assembler.current_cache[0].phase_state == W
    assert assembler.current_cache[0].sat_n == 0
    assert assembler.previous_cache[0].phase_state == B
    assert np.isclose(assembler.previous_cache[0].sat_n, 0.3)

    rho_w = problem.wetting_phase.density_value
    rho_n = problem.nonwetting_phase.density_value
    phi = 0.25
    storage = assembler.compute_storage(0, use_previous=True)
    assert np.isclose(
        storage[pb.W_COMP_EQ], phi * (rho_w * 0.7 * (1 - 1e-3) + rho_n * 0.3 * 2e-2)
    )
    assert np.isclose(
        storage[pb.N_COMP_EQ], phi * (rho_n * 0.3 * (1 - 2e-2) + rho_w * 0.7 * 1e-3)
    )

    # Once accepted, the switched state also applies to the previous time step.
    store.commit()
    assembler.rebuild_cache(use_previous=True)
    assert assembler.previous_cache[0].phase_state == W
    assert assembler.previous_cache[0].sat_n == 0
